"""FlightGear serial bridge.

Relays FlightGear generic-protocol traffic between a cockpit device on a serial
line and the simulator's UDP ports, either byte for byte or only when a field
actually changed.
"""

__version__ = "1.0.0"

from .bridge import Bridge
from .cancel import CancelToken
from .config import BridgeConfig, build_config, load_config_file
from .errors import ConfigError, SerialPortNotFound
from .forwarder import BasicForwarder, Forwarder, ForwarderMode, SmartForwarder, create_forwarder

__all__ = [
    "__version__",
    "Bridge",
    "BridgeConfig",
    "CancelToken",
    "ConfigError",
    "SerialPortNotFound",
    "Forwarder",
    "ForwarderMode",
    "BasicForwarder",
    "SmartForwarder",
    "build_config",
    "create_forwarder",
    "load_config_file",
]
