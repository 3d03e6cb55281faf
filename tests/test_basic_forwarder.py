import asyncio

import pytest

from fgbridge.forwarder import BasicForwarder, ForwarderMode, SmartForwarder, create_forwarder


@pytest.mark.asyncio
async def test_serial_bytes_mirrored_to_udp(rig):
    fwd = rig.forwarder(BasicForwarder)
    fwd.start()
    try:
        payload = b"\x00\xff1,2,3\n1,2,3\n"
        rig.serial.feed(payload)
        await rig.wait_until(lambda: b"".join(rig.sender.sent) == payload)
        rig.serial.feed(b"tail")
        await rig.wait_until(lambda: b"".join(rig.sender.sent) == payload + b"tail")
        assert fwd.stats.serial_bytes_in == len(payload) + 4
    finally:
        await rig.stop(fwd)


@pytest.mark.asyncio
async def test_datagrams_written_verbatim_without_suppression(rig):
    fwd = rig.forwarder(BasicForwarder)
    fwd.start()
    try:
        rig.receiver.inject(b"1,2,3\n")
        rig.receiver.inject(b"1,2,3\n")
        rig.receiver.inject(b"\x01\x02")
        await rig.wait_until(lambda: len(rig.serial.written) == 3)
        assert rig.serial.written == [b"1,2,3\n", b"1,2,3\n", b"\x01\x02"]
    finally:
        await rig.stop(fwd)


@pytest.mark.asyncio
async def test_empty_datagram_not_written(rig):
    fwd = rig.forwarder(BasicForwarder)
    fwd.start()
    try:
        rig.receiver.inject(b"")
        await rig.wait_until(lambda: fwd.stats.datagrams_in == 1)
        await rig.settle()
        assert rig.serial.written == []
    finally:
        await rig.stop(fwd)


@pytest.mark.asyncio
async def test_closed_port_is_rechecked(rig):
    rig.serial.connected = False
    fwd = rig.forwarder(BasicForwarder)
    rig.serial.feed(b"abc")
    fwd.start()
    try:
        await rig.settle()
        assert rig.sender.sent == []
        rig.serial.connected = True
        await rig.wait_until(lambda: b"".join(rig.sender.sent) == b"abc")
    finally:
        await rig.stop(fwd)


@pytest.mark.asyncio
async def test_cancellation_while_port_closed(rig):
    rig.serial.connected = False
    fwd = rig.forwarder(BasicForwarder)
    fwd.start()
    await asyncio.sleep(0.01)
    await rig.stop(fwd)


def test_create_forwarder_selects_variant(rig):
    assert isinstance(
        create_forwarder(ForwarderMode.BASIC, rig.serial, rig.sender, rig.receiver, rig.token),
        BasicForwarder,
    )
    assert isinstance(
        create_forwarder(ForwarderMode.SMART, rig.serial, rig.sender, rig.receiver, rig.token),
        SmartForwarder,
    )
