from __future__ import annotations

import io
import random
import unittest

from igatool.constants import DEFAULT_BUFFER_SIZE, KEY_PERIOD, check_buffer_size
from igatool.errors import TruncatedReadError, VarUintError
from igatool.transform import KeyPolicy, PayloadTransform, data_key, transform
from igatool.varuint import (
    decode_varuint,
    encode_packed_string,
    encode_varuint,
    read_packed_string,
    read_packed_string_until,
    read_varuint,
    write_varuint,
)


def _sample_values():
    values = {0, 1, 2, 0x7F, 0x80, 0xFF, 0x100, 0xFFFFFFFF, 0x80000000, 0x7FFFFFFF}
    for k in range(1, 5):
        edge = 1 << (7 * k)
        values.update({edge - 1, edge, edge + 1})
    rng = random.Random(1234)
    values.update(rng.randrange(0, 1 << 32) for _ in range(500))
    return sorted(values)


class VarUintTests(unittest.TestCase):
    def test_known_encodings(self):
        self.assertEqual(encode_varuint(0), b"\x01")
        self.assertEqual(encode_varuint(1), b"\x03")
        self.assertEqual(encode_varuint(5), b"\x0b")
        self.assertEqual(encode_varuint(127), b"\xff")
        self.assertEqual(encode_varuint(128), b"\x02\x01")
        self.assertEqual(encode_varuint(300), b"\x04\x59")
        self.assertEqual(encode_varuint(1 << 28), b"\x02\x00\x00\x00\x01")
        self.assertEqual(encode_varuint(0xFFFFFFFF), b"\x1e\xfe\xfe\xfe\xff")

    def test_zero_is_one_byte(self):
        self.assertEqual(len(encode_varuint(0)), 1)

    def test_roundtrip(self):
        for v in _sample_values():
            enc = encode_varuint(v)
            self.assertLessEqual(len(enc), 5)
            self.assertEqual(decode_varuint(enc), (v, len(enc)))
            self.assertEqual(read_varuint(io.BytesIO(enc)), v)

    def test_stream_position_after_read(self):
        buf = io.BytesIO()
        write_varuint(buf, 300)
        write_varuint(buf, 0)
        buf.seek(0)
        self.assertEqual(read_varuint(buf), 300)
        self.assertEqual(buf.tell(), 2)
        self.assertEqual(read_varuint(buf), 0)
        self.assertEqual(buf.tell(), 3)

    def test_leading_zero_byte_is_absorbed(self):
        self.assertEqual(decode_varuint(b"\x00\xc3"), (0x61, 2))
        self.assertEqual(read_varuint(io.BytesIO(b"\x00\x00\x03")), 1)

    def test_out_of_range_values_rejected(self):
        with self.assertRaises(VarUintError):
            encode_varuint(-1)
        with self.assertRaises(VarUintError):
            encode_varuint(1 << 32)
        with self.assertRaises(VarUintError):
            decode_varuint(b"\xfe" * 5 + b"\xff")
        self.assertTrue(issubclass(VarUintError, ValueError))

    def test_truncated_input(self):
        with self.assertRaises(TruncatedReadError):
            decode_varuint(b"\x02")
        with self.assertRaises(TruncatedReadError):
            read_varuint(io.BytesIO(b""))
        with self.assertRaises(OSError):
            read_varuint(io.BytesIO(b"\x02\x00"))


class PackedStringTests(unittest.TestCase):
    def test_known_encoding(self):
        self.assertEqual(encode_packed_string(b"A"), b"\x83")
        self.assertEqual(encode_packed_string(b"a"), b"\xc3")
        self.assertEqual(encode_packed_string(b"\x80"), b"\x02\x01")
        self.assertEqual(encode_packed_string(b""), b"")

    def test_roundtrip_fixed_length(self):
        rng = random.Random(99)
        samples = [b"", b"a", b"a.txt", b"bgm/title.ogg", bytes(range(128))]
        samples += [bytes(rng.randrange(0, 128) for _ in range(n)) for n in (3, 17, 64)]
        for s in samples:
            enc = encode_packed_string(s)
            buf = io.BytesIO(enc + b"\x01trailing")
            self.assertEqual(read_packed_string(buf, len(s)), s)
            self.assertEqual(buf.tell(), len(enc))

    def test_read_until_end_offset(self):
        enc = encode_packed_string(b"script.s")
        buf = io.BytesIO(b"\x03" + enc + b"payload")
        buf.seek(1)
        self.assertEqual(read_packed_string_until(buf, 1 + len(enc)), b"script.s")
        self.assertEqual(buf.tell(), 1 + len(enc))

    def test_read_until_end_with_stray_bytes(self):
        name = b"voice.s"
        enc = b"".join((b"\x00" if b & 0x40 else b"") + encode_varuint(b) for b in name)
        self.assertGreater(len(enc), len(name))
        buf = io.BytesIO(enc)
        self.assertEqual(read_packed_string_until(buf, len(enc)), name)


class TransformTests(unittest.TestCase):
    def test_key_derivation(self):
        self.assertEqual(data_key("b.s"), 0xFF)
        self.assertEqual(data_key("dir/script.s"), 0xFF)
        self.assertEqual(data_key("a.txt"), 0x00)
        self.assertEqual(data_key("a.S"), 0x00)
        self.assertEqual(data_key("s"), 0x00)
        self.assertEqual(data_key("a.txt", KeyPolicy.FORCED), 0xFF)
        self.assertEqual(data_key("b.s", KeyPolicy.FORCED), 0xFF)

    def test_known_output(self):
        self.assertEqual(transform(b"\x00\x00\x00", 0x00), b"\x02\x03\x04")
        self.assertEqual(transform(b"\x00", 0xFF), b"\xfd")
        self.assertEqual(transform(b"hello", 0x00), bytes(b ^ (i + 2) for i, b in enumerate(b"hello")))

    def test_self_inverse(self):
        data = bytes(random.Random(7).randrange(256) for _ in range(1000))
        for key in (0x00, 0xFF, 0x5A):
            for start in (0, 3, 255, 256, 1000):
                once = transform(data, key, start)
                self.assertEqual(transform(once, key, start), data)

    def test_period_is_256(self):
        for key in (0x00, 0xFF):
            self.assertEqual(transform(b"\x41", key, 0), transform(b"\x41", key, 256))
            self.assertNotEqual(transform(b"\x41", key, 0), transform(b"\x41", key, 1))

    def test_running_index_spans_chunks(self):
        data = bytes(range(256)) * 5 + b"xyz"
        whole = transform(data, 0xFF)
        xf = PayloadTransform(0xFF)
        out = bytearray()
        pos = 0
        for size in (1, 7, 300, 255, 2, 600, 10_000):
            out += xf.apply(data[pos : pos + size])
            pos += size
        self.assertEqual(bytes(out), whole)
        self.assertEqual(xf.position, len(data))

    def test_chunk_local_index_is_wrong(self):
        data = bytes(range(200)) * 3
        whole = transform(data, 0x00)
        chunked = b"".join(transform(data[i : i + 100], 0x00) for i in range(0, len(data), 100))
        self.assertNotEqual(chunked, whole)

    def test_empty_input(self):
        xf = PayloadTransform(0xFF, position=10)
        self.assertEqual(xf.apply(b""), b"")
        self.assertEqual(xf.position, 10)

    def test_key_must_be_a_byte(self):
        with self.assertRaises(ValueError):
            PayloadTransform(0x100)

    def test_buffer_size_must_cover_whole_key_periods(self):
        self.assertEqual(check_buffer_size(DEFAULT_BUFFER_SIZE), DEFAULT_BUFFER_SIZE)
        self.assertEqual(check_buffer_size(KEY_PERIOD), KEY_PERIOD)
        for bad in (0, -KEY_PERIOD, KEY_PERIOD + 1, 1000):
            with self.assertRaises(ValueError):
                check_buffer_size(bad)


if __name__ == "__main__":
    unittest.main()
