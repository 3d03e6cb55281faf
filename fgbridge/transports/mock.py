import asyncio
from typing import List

from .base import RxBuffer, SerialStreamInterface, TransportInterface


class MockSerialTransport(SerialStreamInterface):
    """In-memory serial line: `feed` plays the device, `written` collects writes."""

    def __init__(self):
        self.connected = False
        self.rx_buffer = RxBuffer()
        self.written: List[bytes] = []

    async def connect(self):
        self.connected = True

    async def disconnect(self):
        self.connected = False

    @property
    def is_open(self) -> bool:
        return self.connected

    @property
    def in_waiting(self) -> int:
        return len(self.rx_buffer)

    def feed(self, data: bytes) -> None:
        self.rx_buffer.feed(data)

    async def read(self, size: int = 1) -> bytes:
        return await self.rx_buffer.read(size)

    async def send(self, data: bytes):
        if not self.connected:
            raise RuntimeError("Not connected")
        self.written.append(bytes(data))

    async def receive(self) -> bytes:
        return await self.rx_buffer.read_all()


class MockDatagramTransport(TransportInterface):
    """In-memory UDP endpoint: `inject` plays the simulator, `sent` collects datagrams."""

    def __init__(self):
        self.connected = False
        self.rx_queue: asyncio.Queue[bytes] = asyncio.Queue()
        self.sent: List[bytes] = []

    async def connect(self):
        self.connected = True

    async def disconnect(self):
        self.connected = False

    def inject(self, data: bytes) -> None:
        self.rx_queue.put_nowait(bytes(data))

    async def send(self, data: bytes):
        if not self.connected:
            raise RuntimeError("Not connected")
        self.sent.append(bytes(data))

    async def receive(self) -> bytes:
        return await self.rx_queue.get()
