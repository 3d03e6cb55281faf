"""Transports used by the bridge: a serial line and two UDP endpoints.

The pyserial-asyncio backed `SerialTransport` lives in
`fgbridge.transports.serial_async` and is imported on demand.
"""

from .base import RxBuffer, SerialStreamInterface, TransportInterface
from .mock import MockDatagramTransport, MockSerialTransport
from .udp import DatagramReceiver, DatagramSender

__all__ = [
    "TransportInterface",
    "SerialStreamInterface",
    "RxBuffer",
    "DatagramReceiver",
    "DatagramSender",
    "MockSerialTransport",
    "MockDatagramTransport",
]
