"""Forwarders relaying between the serial line and the simulator's UDP ports."""
from __future__ import annotations

import enum

from fgbridge.cancel import CancelToken
from fgbridge.transports.base import SerialStreamInterface, TransportInterface

from .base import Forwarder, ForwarderState, ForwarderStats
from .basic import BasicForwarder
from .codec import FieldVector, LineFramer
from .smart import SmartForwarder


class ForwarderMode(enum.Enum):
    SMART = "smart"
    BASIC = "basic"


_FORWARDERS = {
    ForwarderMode.SMART: SmartForwarder,
    ForwarderMode.BASIC: BasicForwarder,
}


def create_forwarder(
    mode: ForwarderMode,
    serial: SerialStreamInterface,
    sender: TransportInterface,
    receiver: TransportInterface,
    token: CancelToken,
) -> Forwarder:
    return _FORWARDERS[mode](serial, sender, receiver, token)


__all__ = [
    "Forwarder",
    "ForwarderMode",
    "ForwarderState",
    "ForwarderStats",
    "BasicForwarder",
    "SmartForwarder",
    "FieldVector",
    "LineFramer",
    "create_forwarder",
]
