"""UDP endpoints for the simulator side of the bridge.

FlightGear's generic protocol talks plain UDP: it sends to one port and listens
on another. `DatagramReceiver` binds the listening side, `DatagramSender` is
connected to the simulator's input port. Each endpoint only works in one
direction; the opposite call raises, like a passive transport would.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

from .base import TransportInterface

logger = logging.getLogger("fgbridge.transports.udp")


class _QueueingProtocol(asyncio.DatagramProtocol):
    """Dispatches received datagrams into the owner's queue."""

    def __init__(self, queue: "asyncio.Queue[bytes]"):
        self._queue = queue

    def datagram_received(self, data: bytes, addr):
        self._queue.put_nowait(data)

    def error_received(self, exc):
        logger.debug("UDP error received: %s", exc)


class DatagramReceiver(TransportInterface):
    """Bound UDP socket receiving datagrams from any sender."""

    def __init__(self, port: int, host: str = "0.0.0.0"):
        self.host = host
        self.port = port
        self.connected = False
        self.rx_queue: asyncio.Queue[bytes] = asyncio.Queue()
        self._transport: Optional[asyncio.DatagramTransport] = None

    async def connect(self):
        if self.connected:
            return
        loop = asyncio.get_running_loop()
        self._transport, _ = await loop.create_datagram_endpoint(
            lambda: _QueueingProtocol(self.rx_queue),
            local_addr=(self.host, self.port),
        )
        self.connected = True
        logger.info("Listening for UDP on %s:%d", self.host, self.port)

    async def disconnect(self):
        self.connected = False
        if self._transport:
            self._transport.close()
            self._transport = None

    async def send(self, data: bytes):
        raise RuntimeError("DatagramReceiver is receive-only")

    async def receive(self) -> bytes:
        return await self.rx_queue.get()

    @property
    def local_address(self) -> Optional[Tuple[str, int]]:
        if not self._transport:
            return None
        return self._transport.get_extra_info("sockname")


class DatagramSender(TransportInterface):
    """UDP socket connected to a single destination."""

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.connected = False
        self._transport: Optional[asyncio.DatagramTransport] = None

    async def connect(self):
        if self.connected:
            return
        loop = asyncio.get_running_loop()
        self._transport, _ = await loop.create_datagram_endpoint(
            asyncio.DatagramProtocol,
            remote_addr=(self.host, self.port),
        )
        self.connected = True
        logger.info("Sending UDP to %s:%d", self.host, self.port)

    async def disconnect(self):
        self.connected = False
        if self._transport:
            self._transport.close()
            self._transport = None

    async def send(self, data: bytes):
        if not self.connected or not self._transport:
            raise RuntimeError("DatagramSender: not connected")
        self._transport.sendto(data)

    async def receive(self) -> bytes:
        raise RuntimeError("DatagramSender is send-only")
