import asyncio
from abc import ABC, abstractmethod


class TransportInterface(ABC):
    @abstractmethod
    async def connect(self):
        pass

    @abstractmethod
    async def disconnect(self):
        pass

    @abstractmethod
    async def send(self, data: bytes):
        pass

    @abstractmethod
    async def receive(self) -> bytes:
        pass


class SerialStreamInterface(TransportInterface):
    """Duplex byte stream with pyserial-like status queries.

    `receive` returns whatever is buffered (at least one byte), `read(n)`
    returns at most `n` bytes and may return fewer.
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @property
    @abstractmethod
    def in_waiting(self) -> int:
        pass

    @abstractmethod
    async def read(self, size: int = 1) -> bytes:
        pass

    async def write(self, data: bytes):
        return await self.send(data)


class RxBuffer:
    """Receive buffer shared by the serial protocol and its readers."""

    def __init__(self):
        self._data = bytearray()
        self._ready = asyncio.Event()

    def __len__(self) -> int:
        return len(self._data)

    def feed(self, data: bytes) -> None:
        if not data:
            return
        self._data.extend(data)
        self._ready.set()

    async def _wait(self) -> None:
        while not self._data:
            self._ready.clear()
            await self._ready.wait()

    def _take(self, size: int) -> bytes:
        chunk = bytes(self._data[:size])
        del self._data[:size]
        if not self._data:
            self._ready.clear()
        return chunk

    async def read(self, size: int) -> bytes:
        if size <= 0:
            return b""
        await self._wait()
        return self._take(size)

    async def read_all(self) -> bytes:
        await self._wait()
        return self._take(len(self._data))
