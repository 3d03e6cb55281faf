"""Differential forwarder.

Both sides of the FlightGear generic protocol keep repeating full snapshots
even when nothing moved. The smart forwarder remembers the last value of every
field position per direction and only relays a record when at least one field
differs from what was relayed before.
"""
from __future__ import annotations

import logging
from typing import List

from .base import Forwarder
from .codec import FieldVector, LineFramer, decode_text, split_fields

logger = logging.getLogger("fgbridge.forwarder.smart")


class SmartForwarder(Forwarder):
    name = "smart"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Each vector is only touched by the loop that fills it
        self.to_serial = FieldVector()
        self.from_serial = FieldVector()
        self._framer = LineFramer()

    # --- UDP -> Serial ---

    async def _udp_to_serial(self) -> None:
        while not self.token.cancelled:
            datagram = await self.token.guard(self.receiver.receive())
            if datagram is None or self.token.cancelled:
                break
            self.stats.datagrams_in += 1

            if not self.serial.is_open:
                logger.debug("Serial port closed, dropping datagram %r", datagram)
                continue

            data = decode_text(datagram)
            if not self.to_serial.update(split_fields(data)):
                self.stats.suppressed += 1
                continue

            logger.debug("Simulator output changed, writing to serial: %r", data)
            await self.serial.write(datagram)
            self.stats.serial_writes += 1

    # --- Serial -> UDP ---

    async def _serial_to_udp(self) -> None:
        first_round = True
        while not self.token.cancelled:
            if not self.serial.is_open:
                await self._pause_while_closed()
                continue

            # One byte at a time keeps the read short enough to notice cancellation
            first = await self.token.guard(self.serial.read(1))
            if first is None or self.token.cancelled:
                break
            if not first or not self.serial.is_open:
                continue

            chunk = first
            to_read = self.serial.in_waiting
            if to_read > 0:
                chunk += await self.serial.read(to_read)
            self.stats.serial_bytes_in += len(chunk)

            records = self._framer.feed(chunk)
            if not records:
                continue
            self.stats.records_in += len(records)

            if first_round:
                # The first snapshot may have been caught halfway through
                self._prime(records)
                first_round = False
                continue

            for record in records:
                if self.token.cancelled:
                    return
                await self._forward_record(record)

    def _prime(self, records: List[str]) -> None:
        for record in records:
            self.from_serial.prime(split_fields(record))
        self.stats.suppressed += len(records)
        logger.debug("Primed %d field(s) from %d initial record(s)", len(self.from_serial), len(records))

    async def _forward_record(self, record: str) -> None:
        if not self.from_serial.update(split_fields(record)):
            self.stats.suppressed += 1
            return
        payload = self.from_serial.to_record()
        logger.debug("Serial output changed, sending to simulator: %r", payload)
        await self.sender.send(payload)
        self.stats.datagrams_sent += 1
