"""Raw passthrough forwarder.

Mirrors bytes in both directions without looking at them. Useful for
debugging a device or when the protocol is not line based.
"""
from __future__ import annotations

import logging

from .base import Forwarder

logger = logging.getLogger("fgbridge.forwarder.basic")


class BasicForwarder(Forwarder):
    name = "basic"

    async def _serial_to_udp(self) -> None:
        while not self.token.cancelled:
            if not self.serial.is_open:
                await self._pause_while_closed()
                continue

            first = await self.token.guard(self.serial.read(1))
            if first is None or self.token.cancelled:
                break
            if not first or not self.serial.is_open:
                continue

            data = first
            to_read = self.serial.in_waiting
            if to_read > 0:
                data += await self.serial.read(to_read)
            self.stats.serial_bytes_in += len(data)

            if self.token.cancelled:
                break
            logger.debug("serial -> udp %d bytes: %r", len(data), data)
            await self.sender.send(data)
            self.stats.datagrams_sent += 1

    async def _udp_to_serial(self) -> None:
        while not self.token.cancelled:
            data = await self.token.guard(self.receiver.receive())
            if data is None or self.token.cancelled:
                break
            self.stats.datagrams_in += 1
            if not data:
                continue
            if not self.serial.is_open:
                logger.debug("Serial port closed, dropping %d bytes", len(data))
                continue
            logger.debug("udp -> serial %d bytes: %r", len(data), data)
            await self.serial.write(data)
            self.stats.serial_writes += 1
