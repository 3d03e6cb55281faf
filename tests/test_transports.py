import asyncio

import pytest

from fgbridge.cancel import CancelToken
from fgbridge.forwarder import SmartForwarder
from fgbridge.transports.base import RxBuffer
from fgbridge.transports.mock import MockDatagramTransport, MockSerialTransport
from fgbridge.transports.serial_async import SerialTransport, _SerialProtocol
from fgbridge.transports.udp import DatagramReceiver, DatagramSender


@pytest.mark.asyncio
async def test_udp_loopback():
    receiver = DatagramReceiver(0, host="127.0.0.1")
    await receiver.connect()
    port = receiver.local_address[1]
    sender = DatagramSender("127.0.0.1", port)
    await sender.connect()
    try:
        await sender.send(b"1,2,3\n")
        data = await asyncio.wait_for(receiver.receive(), timeout=2.0)
        assert data == b"1,2,3\n"
    finally:
        await sender.disconnect()
        await receiver.disconnect()


@pytest.mark.asyncio
async def test_udp_endpoints_are_one_way():
    receiver = DatagramReceiver(0, host="127.0.0.1")
    sender = DatagramSender("127.0.0.1", 9)
    with pytest.raises(RuntimeError):
        await receiver.send(b"x")
    with pytest.raises(RuntimeError):
        await sender.receive()
    with pytest.raises(RuntimeError):
        await sender.send(b"x")


@pytest.mark.asyncio
async def test_rx_buffer_partial_reads():
    buf = RxBuffer()
    buf.feed(b"abcdef")
    assert await buf.read(1) == b"a"
    assert len(buf) == 5
    assert await buf.read(10) == b"bcdef"
    assert len(buf) == 0


@pytest.mark.asyncio
async def test_rx_buffer_read_waits_for_data():
    buf = RxBuffer()
    pending = asyncio.ensure_future(buf.read(1))
    await asyncio.sleep(0.01)
    assert not pending.done()
    buf.feed(b"z")
    assert await asyncio.wait_for(pending, timeout=1.0) == b"z"


@pytest.mark.asyncio
async def test_mock_serial_read_and_write():
    serial = MockSerialTransport()
    assert not serial.is_open
    await serial.connect()
    serial.feed(b"12")
    assert serial.in_waiting == 2
    assert await serial.receive() == b"12"
    await serial.write(b"out")
    assert serial.written == [b"out"]


@pytest.mark.asyncio
async def test_mock_datagram_requires_connect():
    t = MockDatagramTransport()
    with pytest.raises(RuntimeError):
        await t.send(b"x")


@pytest.mark.asyncio
async def test_serial_transport_not_connected():
    serial = SerialTransport("COM19", 9600)
    assert not serial.is_open
    assert serial.in_waiting == 0
    with pytest.raises(RuntimeError):
        await serial.write(b"x")


class _PausedSerialLink:
    """Stands in for the pyserial-asyncio transport of an open port."""

    def __init__(self):
        self.writes = []

    def write(self, data):
        self.writes.append(bytes(data))

    def is_closing(self):
        return False

    def close(self):
        pass


@pytest.mark.asyncio
async def test_serial_write_released_when_link_drops():
    serial = SerialTransport("COM19", 9600)
    link = _PausedSerialLink()
    serial._transport = link
    serial.connected = True
    protocol = _SerialProtocol(serial)
    protocol.pause_writing()

    sender, receiver = MockDatagramTransport(), MockDatagramTransport()
    sender.connected = receiver.connected = True
    token = CancelToken()
    fwd = SmartForwarder(serial, sender, receiver, token)
    fwd.start()

    receiver.inject(b"1,2,3")
    for _ in range(100):
        if link.writes:
            break
        await asyncio.sleep(0.005)
    assert link.writes == [b"1,2,3"]
    assert not fwd.failed.is_set()

    protocol.connection_lost(OSError("device unplugged"))
    assert not serial.is_open
    await asyncio.wait_for(fwd.failed.wait(), timeout=1.0)

    token.cancel()
    with pytest.raises(ConnectionError):
        await asyncio.wait_for(fwd.wait_for_stop(), timeout=1.0)
