"""Forwarder contract shared by the Basic and Smart relays.

A forwarder owns two asyncio tasks: one moving serial input towards the
simulator and one moving simulator datagrams onto the serial line. It does not
own the transports or the cancellation token; whoever built it stops it by
cancelling the token and then awaiting `wait_for_stop()`.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import List, Optional

from fgbridge.cancel import CancelToken
from fgbridge.transports.base import SerialStreamInterface, TransportInterface

logger = logging.getLogger("fgbridge.forwarder")

# Pause before re-checking a serial port that reports itself closed
CLOSED_PORT_RETRY_S = 0.1


class ForwarderState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class ForwarderStats:
    serial_bytes_in: int = 0
    records_in: int = 0
    datagrams_in: int = 0
    datagrams_sent: int = 0
    serial_writes: int = 0
    suppressed: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


class Forwarder(ABC):
    name = "forwarder"

    def __init__(
        self,
        serial: SerialStreamInterface,
        sender: TransportInterface,
        receiver: TransportInterface,
        token: CancelToken,
    ):
        self.serial = serial
        self.sender = sender
        self.receiver = receiver
        self.token = token
        self.stats = ForwarderStats()
        self.failed = asyncio.Event()
        self._state = ForwarderState.IDLE
        self._tasks: List[asyncio.Task] = []
        self._error: Optional[BaseException] = None

    @property
    def state(self) -> ForwarderState:
        return self._state

    def start(self) -> None:
        """Launch the serial->UDP and UDP->serial relay loops."""
        if self._state is not ForwarderState.IDLE:
            raise RuntimeError(f"{type(self).__name__} can only be started once")
        logger.debug("Starting %s forwarder relay loops", self.name)
        self._state = ForwarderState.RUNNING
        self._tasks = [
            asyncio.create_task(self._run_loop(self._serial_to_udp(), "serial->udp")),
            asyncio.create_task(self._run_loop(self._udp_to_serial(), "udp->serial")),
        ]

    async def wait_for_stop(self) -> None:
        """Wait until both relay loops have exited.

        Cancellation has to be requested on the token, this only waits. An
        exception that killed a loop is re-raised once both loops are done.
        """
        if self._state is ForwarderState.IDLE:
            raise RuntimeError(f"{type(self).__name__} was never started")
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._state = ForwarderState.STOPPED
        logger.debug("%s forwarder stopped", self.name)
        if self._error is not None:
            raise self._error

    async def _run_loop(self, loop_coro, label: str) -> None:
        logger.debug("%s loop %s started", self.name, label)
        try:
            await loop_coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("%s loop %s failed: %s", self.name, label, e)
            if self._error is None:
                self._error = e
            self.failed.set()
            raise
        logger.debug("%s loop %s exited", self.name, label)

    async def _pause_while_closed(self) -> None:
        await self.token.guard(asyncio.sleep(CLOSED_PORT_RETRY_S))

    @abstractmethod
    async def _serial_to_udp(self) -> None:
        ...

    @abstractmethod
    async def _udp_to_serial(self) -> None:
        ...
