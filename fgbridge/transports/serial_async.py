import asyncio
import logging
from typing import Optional

import serial_asyncio

from .base import RxBuffer, SerialStreamInterface

logger = logging.getLogger("fgbridge.transports.serial")


class _SerialProtocol(asyncio.Protocol):
    def __init__(self, owner: "SerialTransport"):
        self._owner = owner

    def connection_made(self, transport):
        self._owner._on_connection_made(transport)

    def data_received(self, data: bytes):
        self._owner.rx_buffer.feed(data)

    def connection_lost(self, exc):
        self._owner._on_connection_lost(exc)

    def pause_writing(self):
        self._owner._writable.clear()

    def resume_writing(self):
        self._owner._writable.set()


class SerialTransport(SerialStreamInterface):
    """Serial line opened through pyserial-asyncio.

    Incoming bytes are collected into an `RxBuffer` so that callers can ask how
    many bytes are waiting and read them in one pass.
    """

    def __init__(self, port: str, baudrate: int = 9600):
        self.port = port
        self.baudrate = baudrate
        self.connected = False
        self.rx_buffer = RxBuffer()
        self._transport: Optional[asyncio.Transport] = None
        self._writable = asyncio.Event()
        self._writable.set()

    async def connect(self):
        if self.connected:
            return
        logger.debug("SerialTransport.connect: opening port=%s baud=%s", self.port, self.baudrate)
        loop = asyncio.get_running_loop()
        # connection_made() is only scheduled, keep the transport we get back
        self._transport, _ = await serial_asyncio.create_serial_connection(
            loop,
            lambda: _SerialProtocol(self),
            self.port,
            baudrate=self.baudrate,
        )
        self.connected = True
        logger.info("Serial port %s opened @ %d baud", self.port, self.baudrate)

    async def disconnect(self):
        self.connected = False
        if self._transport:
            try:
                self._transport.close()
            except Exception:
                pass
            self._transport = None
        logger.info("Serial port %s closed", self.port)

    @property
    def is_open(self) -> bool:
        return (
            self.connected
            and self._transport is not None
            and not self._transport.is_closing()
        )

    @property
    def in_waiting(self) -> int:
        return len(self.rx_buffer)

    async def read(self, size: int = 1) -> bytes:
        return await self.rx_buffer.read(size)

    async def send(self, data: bytes):
        if not self.connected or not self._transport:
            raise RuntimeError("SerialTransport: not connected")
        self._transport.write(data)
        await self._writable.wait()
        if not self.is_open:
            raise ConnectionError(f"Serial port {self.port} closed while writing")

    async def receive(self) -> bytes:
        return await self.rx_buffer.read_all()

    def _on_connection_made(self, transport):
        self._transport = transport

    def _on_connection_lost(self, exc):
        if exc is not None:
            logger.warning("Serial port %s lost: %s", self.port, exc)
        self.connected = False
        # release writers blocked on a paused transport
        self._writable.set()
