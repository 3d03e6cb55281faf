import asyncio

import pytest

from fgbridge.cancel import CancelToken
from fgbridge.transports.mock import MockDatagramTransport, MockSerialTransport


class Rig:
    """Mock serial line + UDP pair wired to one cancellation token."""

    def __init__(self):
        self.serial = MockSerialTransport()
        self.sender = MockDatagramTransport()
        self.receiver = MockDatagramTransport()
        for t in (self.serial, self.sender, self.receiver):
            t.connected = True
        self.token = CancelToken()

    def forwarder(self, cls):
        return cls(self.serial, self.sender, self.receiver, self.token)

    async def wait_until(self, predicate, timeout: float = 1.0):
        async def poll():
            while not predicate():
                await asyncio.sleep(0.005)

        await asyncio.wait_for(poll(), timeout)

    async def settle(self):
        await asyncio.sleep(0.05)

    async def stop(self, fwd):
        self.token.cancel()
        await asyncio.wait_for(fwd.wait_for_stop(), timeout=1.0)


@pytest.fixture
def rig():
    return Rig()
