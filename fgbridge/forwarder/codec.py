"""Line/field codec for FlightGear generic-protocol records.

A record is a line of comma-separated values terminated by a newline. There is
no escaping: a comma or newline inside a value breaks framing.
"""
from __future__ import annotations

from typing import Iterator, List

RECORD_SEPARATOR = b"\n"
FIELD_SEPARATOR = ","
ENCODING = "ascii"


def decode_text(data: bytes) -> str:
    return data.decode(ENCODING, errors="replace")


def encode_text(text: str) -> bytes:
    return text.encode(ENCODING, errors="replace")


def split_fields(record: str) -> List[str]:
    """Split a record into its fields; an empty record is one empty field."""
    return record.split(FIELD_SEPARATOR)


class LineFramer:
    """Accumulates raw serial bytes and yields complete records.

    The unterminated tail stays buffered until its newline arrives.
    """

    def __init__(self):
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def pending(self) -> bytes:
        return bytes(self._buffer)

    def feed(self, data: bytes) -> List[str]:
        self._buffer.extend(data)
        return list(self._drain())

    def _drain(self) -> Iterator[str]:
        while True:
            end = self._buffer.find(RECORD_SEPARATOR)
            if end < 0:
                return
            line = bytes(self._buffer[:end])
            del self._buffer[:end + 1]
            yield decode_text(line)


class FieldVector:
    """Last-seen value per field position for one direction.

    Positions are created on first sight with an empty value and are never
    removed, so a shorter record leaves the higher positions untouched.
    """

    def __init__(self):
        self._values: List[str] = []

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, index: int) -> str:
        return self._values[index]

    @property
    def values(self) -> List[str]:
        return list(self._values)

    def ensure(self, index: int) -> None:
        """Grow the vector so that `index` exists, filling new slots with ''."""
        missing = index + 1 - len(self._values)
        if missing > 0:
            self._values.extend([""] * missing)

    def prime(self, fields: List[str]) -> None:
        """Create the positions of `fields` without comparing or storing values."""
        if fields:
            self.ensure(len(fields) - 1)

    def update(self, fields: List[str]) -> bool:
        """Store `fields` position by position; True if any value changed."""
        changed = False
        for index, value in enumerate(fields):
            self.ensure(index)
            if self._values[index] != value:
                self._values[index] = value
                changed = True
        return changed

    def join(self) -> str:
        return FIELD_SEPARATOR.join(self._values)

    def to_record(self) -> bytes:
        return encode_text(self.join()) + RECORD_SEPARATOR
