"""Bridge configuration: option validation, config files and port lookup.

Options may come from a JSON/YAML file and from the command line; command-line
values win. Single-valued options that are given more than once are rejected,
as are unparsable numbers and out-of-range ports. All problems are collected
and raised together in one `ConfigError`.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

try:
    import yaml  # type: ignore
except Exception:  # pragma: no cover - optional dependency
    yaml = None

from serial.tools import list_ports

from fgbridge.errors import ConfigError, SerialPortNotFound
from fgbridge.forwarder import ForwarderMode

DEFAULT_BAUDRATE = 9600
DEFAULT_OUT_IP = "127.0.0.1"

_FILE_KEYS = {"com", "baud", "udp_in_port", "udp_out_port", "udp_out_ip", "mode", "debug"}
_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


@dataclass(slots=True)
class BridgeConfig:
    """Validated settings for one bridge run."""

    serial_port: str
    udp_in_port: int
    udp_out_port: int
    udp_out_ip: str = DEFAULT_OUT_IP
    baudrate: int = DEFAULT_BAUDRATE
    mode: ForwarderMode = ForwarderMode.SMART
    debug: bool = False


def load_config_file(path: str | Path) -> Dict[str, Any]:
    """Read a JSON/YAML file into a dict of raw option values."""

    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(file_path)

    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() in {".yaml", ".yml"}:
        if yaml is None:
            raise RuntimeError("PyYAML is required to load YAML configs")
        try:
            raw = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigError([f"Malformed YAML in {file_path}: {e}"]) from e
    else:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError([f"Malformed JSON in {file_path}: {e}"]) from e

    if not isinstance(raw, dict):
        raise ConfigError(["Configuration must be an object/dict"])
    unknown = sorted(set(raw) - _FILE_KEYS)
    if unknown:
        raise ConfigError([f"Unrecognized configuration key: {key}" for key in unknown])
    return raw


def _single(name: str, values: Optional[Sequence[Any]], fallback: Any, problems: List[str]) -> Any:
    if not values:
        return fallback
    if len(values) > 1:
        problems.append(f"{name} can only be assigned once")
    return values[0]


def _as_int(name: str, value: Any, problems: List[str]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        problems.append(f"Unrecognized value for {name}: {value!r}")
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        problems.append(f"Unrecognized value for {name}: {value!r}")
        return None


def _check_port(name: str, raw: Any, port: Optional[int], problems: List[str]) -> None:
    if raw is None:
        problems.append(f"{name} is required")
    elif port is not None and not 0 < port <= 0xFFFF:
        problems.append(f"{name} out of range (1..65535): {port}")


def _parse_mode(value: Any, problems: List[str]) -> ForwarderMode:
    if isinstance(value, ForwarderMode):
        return value
    try:
        return ForwarderMode(str(value).strip().lower())
    except ValueError:
        problems.append(f"Unrecognized forwarder mode: {value!r}")
        return ForwarderMode.SMART


def _parse_flag(name: str, value: Any, problems: List[str]) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    problems.append(f"Unrecognized value for {name}: {value!r}")
    return False


def build_config(
    *,
    com: Optional[Sequence[str]] = None,
    baud: Optional[Sequence[Any]] = None,
    udp_in_port: Optional[Sequence[Any]] = None,
    udp_out_port: Optional[Sequence[Any]] = None,
    udp_out_ip: Optional[Sequence[str]] = None,
    copypast: bool = False,
    debug: bool = False,
    file_values: Optional[Dict[str, Any]] = None,
) -> BridgeConfig:
    """Merge command-line values over file values and validate the result.

    Command-line options arrive as lists so that repeated options can be
    detected; `file_values` is the dict returned by `load_config_file`.
    """
    problems: List[str] = []
    defaults = file_values or {}

    serial_port = _single("--com", com, defaults.get("com"), problems)
    baudrate = _as_int("the baud rate", _single("--baud", baud, defaults.get("baud", DEFAULT_BAUDRATE), problems), problems)
    in_port_raw = _single("--udp-in-port", udp_in_port, defaults.get("udp_in_port"), problems)
    in_port = _as_int("--udp-in-port", in_port_raw, problems)
    out_port_raw = _single("--udp-out-port", udp_out_port, defaults.get("udp_out_port"), problems)
    out_port = _as_int("--udp-out-port", out_port_raw, problems)
    out_ip = _single("--udp-out-ip", udp_out_ip, defaults.get("udp_out_ip", DEFAULT_OUT_IP), problems)

    if not serial_port or not str(serial_port).strip():
        problems.append("--com is required")
    if baudrate is not None and baudrate <= 0:
        problems.append(f"Baud rate must be positive: {baudrate}")
    _check_port("--udp-in-port", in_port_raw, in_port, problems)
    _check_port("--udp-out-port", out_port_raw, out_port, problems)
    if not out_ip or not str(out_ip).strip():
        problems.append("--udp-out-ip must not be empty")

    mode = ForwarderMode.BASIC if copypast else _parse_mode(defaults.get("mode", "smart"), problems)
    file_debug = _parse_flag("debug", defaults.get("debug", False), problems)

    if problems:
        raise ConfigError(problems)

    return BridgeConfig(
        serial_port=str(serial_port).strip(),
        udp_in_port=in_port,
        udp_out_port=out_port,
        udp_out_ip=str(out_ip).strip(),
        baudrate=baudrate if baudrate is not None else DEFAULT_BAUDRATE,
        mode=mode,
        debug=debug or file_debug,
    )


def available_serial_ports() -> List[str]:
    return [p.device for p in list_ports.comports()]


def check_serial_port(port: str) -> None:
    """Raise SerialPortNotFound unless `port` is present on this machine.

    pyserial URLs (loop://, socket://host:port, rfc2217://...) are not
    enumerable and are accepted as-is.
    """
    if "://" in port:
        return
    if port not in available_serial_ports():
        raise SerialPortNotFound(port)
