"""Minimal protobuf wire-format reader for GTFS-Realtime feeds.

Only the handful of operations the feed decoders need are supported: varints,
fixed32/fixed64, length-delimited payloads and field skipping. Unknown fields
are always skipped, so new fields added to the feeds are ignored safely.
"""

import struct
from typing import Tuple

WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_LENGTH_DELIMITED = 2
WIRE_FIXED32 = 5

_UINT64_MASK = (1 << 64) - 1


class WireFormatError(ValueError):
    """Raised when the buffer ends in the middle of a value."""


class VarintWireReader:
    """Cursor over an immutable byte buffer."""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self.pos = 0

    def __len__(self) -> int:
        return len(self._data)

    def has_more(self) -> bool:
        return self.pos < len(self._data)

    def read_varint(self) -> int:
        """Read a base-128 varint as an unsigned 64-bit integer."""
        result = 0
        shift = 0
        while True:
            if self.pos >= len(self._data):
                raise WireFormatError(f"truncated varint at offset {self.pos}")
            byte = self._data[self.pos]
            self.pos += 1
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result & _UINT64_MASK
            shift += 7

    def read_tag(self) -> Tuple[int, int]:
        """Read a field tag and return ``(field_number, wire_type)``."""
        tag = self.read_varint()
        return tag >> 3, tag & 0x7

    def read_fixed32(self) -> int:
        return struct.unpack("<I", self._take(4))[0]

    def read_fixed64(self) -> int:
        return struct.unpack("<Q", self._take(8))[0]

    def read_length_delimited(self, length: int) -> bytes:
        """Return the next ``length`` bytes, clamped to the end of the buffer."""
        end = min(self.pos + length, len(self._data))
        chunk = self._data[self.pos:end]
        self.pos = end
        return chunk

    def read_string(self, length: int) -> str:
        return self.read_length_delimited(length).decode("utf-8", errors="replace")

    def read_message(self) -> "VarintWireReader":
        """Read a length prefix and return a reader bounded to that sub-message."""
        return VarintWireReader(self.read_length_delimited(self.read_varint()))

    def skip_field(self, wire_type: int) -> bool:
        """Skip over a field value.

        Returns False for an unrecognized wire type; the caller must stop
        decoding the enclosing message.
        """
        if wire_type == WIRE_VARINT:
            self.read_varint()
        elif wire_type == WIRE_FIXED64:
            self.pos += 8
        elif wire_type == WIRE_LENGTH_DELIMITED:
            self.pos += self.read_varint()
        elif wire_type == WIRE_FIXED32:
            self.pos += 4
        else:
            return False
        return True

    def _take(self, size: int) -> bytes:
        if self.pos + size > len(self._data):
            raise WireFormatError(f"truncated {size}-byte value at offset {self.pos}")
        chunk = self._data[self.pos:self.pos + size]
        self.pos += size
        return chunk
