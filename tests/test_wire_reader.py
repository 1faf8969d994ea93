"""Tests for VarintWireReader."""

import unittest
import sys
from pathlib import Path

# Add src to path so we can import spokeexpress
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from feed_builders import encode_varint
from spokeexpress.wire_reader import (
    WIRE_FIXED32,
    WIRE_FIXED64,
    WIRE_LENGTH_DELIMITED,
    WIRE_VARINT,
    VarintWireReader,
    WireFormatError,
)


class TestVarints(unittest.TestCase):
    """Test varint and tag decoding."""

    def test_one_byte_varint(self):
        self.assertEqual(VarintWireReader(b"\x01").read_varint(), 1)

    def test_varint_round_trip(self):
        values = [0, 127, 128, 16383, 16384, 1_700_000_000, (1 << 35) - 1]
        reader = VarintWireReader(b"".join(encode_varint(v) for v in values))
        self.assertEqual([reader.read_varint() for _ in values], values)
        self.assertFalse(reader.has_more())

    def test_two_varints(self):
        reader = VarintWireReader(b"\x96\x01\x05")
        self.assertEqual(reader.read_varint(), 150)
        self.assertEqual(reader.read_varint(), 5)
        self.assertFalse(reader.has_more())

    def test_multi_byte_varint(self):
        reader = VarintWireReader(b"\xac\x02")
        self.assertEqual(reader.read_varint(), 300)
        self.assertEqual(reader.pos, 2)

    def test_varint_is_unsigned_64_bit(self):
        reader = VarintWireReader(b"\xff" * 9 + b"\x01")
        self.assertEqual(reader.read_varint(), (1 << 64) - 1)

    def test_truncated_varint_raises(self):
        reader = VarintWireReader(b"\x80\x80")
        with self.assertRaises(WireFormatError):
            reader.read_varint()

    def test_wire_format_error_is_value_error(self):
        self.assertTrue(issubclass(WireFormatError, ValueError))

    def test_read_tag(self):
        reader = VarintWireReader(b"\x08\x12\x2a")
        self.assertEqual(reader.read_tag(), (1, WIRE_VARINT))
        self.assertEqual(reader.read_tag(), (2, WIRE_LENGTH_DELIMITED))
        self.assertEqual(reader.read_tag(), (5, WIRE_LENGTH_DELIMITED))


class TestFixedWidth(unittest.TestCase):
    """Test little-endian fixed-width values."""

    def test_fixed32(self):
        reader = VarintWireReader(b"\x01\x02\x00\x00")
        self.assertEqual(reader.read_fixed32(), 0x0201)

    def test_fixed64(self):
        reader = VarintWireReader(b"\x00\x00\x00\x00\x01\x00\x00\x00")
        self.assertEqual(reader.read_fixed64(), 1 << 32)

    def test_truncated_fixed_values_raise(self):
        with self.assertRaises(WireFormatError):
            VarintWireReader(b"\x01\x02").read_fixed32()
        with self.assertRaises(WireFormatError):
            VarintWireReader(b"\x01\x02\x03\x04").read_fixed64()


class TestLengthDelimited(unittest.TestCase):
    """Test byte, string and sub-message reads."""

    def test_read_string(self):
        reader = VarintWireReader(b"G33N")
        self.assertEqual(reader.read_string(4), "G33N")

    def test_invalid_utf8_is_replaced(self):
        reader = VarintWireReader(b"\xffA")
        self.assertEqual(reader.read_string(2), "\ufffdA")

    def test_length_past_end_is_clamped(self):
        reader = VarintWireReader(b"abc")
        self.assertEqual(reader.read_length_delimited(10), b"abc")
        self.assertFalse(reader.has_more())

    def test_read_message_is_bounded(self):
        reader = VarintWireReader(b"\x02\x08\x01\x08\x02")
        sub = reader.read_message()

        self.assertEqual(len(sub), 2)
        self.assertEqual(sub.read_tag(), (1, WIRE_VARINT))
        self.assertEqual(sub.read_varint(), 1)
        self.assertFalse(sub.has_more())

        # Outer reader continues after the sub-message
        self.assertEqual(reader.pos, 3)
        self.assertEqual(reader.read_tag(), (1, WIRE_VARINT))


class TestSkipField(unittest.TestCase):
    """Test skipping over unknown fields."""

    def test_skip_each_wire_type(self):
        reader = VarintWireReader(b"\xac\x02")
        self.assertTrue(reader.skip_field(WIRE_VARINT))
        self.assertEqual(reader.pos, 2)

        reader = VarintWireReader(b"\x03abcX")
        self.assertTrue(reader.skip_field(WIRE_LENGTH_DELIMITED))
        self.assertEqual(reader.pos, 4)

        reader = VarintWireReader(bytes(8))
        self.assertTrue(reader.skip_field(WIRE_FIXED64))
        self.assertEqual(reader.pos, 8)

        reader = VarintWireReader(bytes(4))
        self.assertTrue(reader.skip_field(WIRE_FIXED32))
        self.assertEqual(reader.pos, 4)

    def test_unknown_wire_type_returns_false(self):
        reader = VarintWireReader(b"\x01\x02")
        self.assertFalse(reader.skip_field(3))
        self.assertFalse(reader.skip_field(7))
        self.assertEqual(reader.pos, 0)

    def test_skip_past_end_stops_reading(self):
        reader = VarintWireReader(b"\x7fab")
        self.assertTrue(reader.skip_field(WIRE_LENGTH_DELIMITED))
        self.assertFalse(reader.has_more())


if __name__ == "__main__":
    unittest.main()
