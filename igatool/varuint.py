from __future__ import annotations

"""
VarUint and packed-string codecs used by the IGA entry table and name block.

VarUint
- Unsigned 32-bit value split into 7-bit groups, most significant first
- Each byte: group << 1, with bit 0 set only on the terminating byte
- Leading all-zero groups are skipped; the last group is always written,
  so 0 encodes as the single byte 0x01
- Decoding accumulates value = (value << 7) | byte until bit 0 of the
  accumulator is set, then drops the flag with value >> 1. Stray 0x00 bytes
  ahead of a value are therefore absorbed without changing it.

Packed string
- One VarUint per byte, no delimiter and no length prefix
- Read either a known number of values or until the stream reaches an
  absolute end offset
"""

from typing import BinaryIO, Tuple

from .constants import UINT32_MAX, VARUINT_END_FLAG, VARUINT_GROUP_BITS, VARUINT_GROUP_MASK
from .errors import TruncatedReadError, VarUintError


_GROUP_SHIFTS = (28, 21, 14, 7, 0)


def encode_varuint(n: int) -> bytes:
    if n < 0 or n > UINT32_MAX:
        raise VarUintError(f"varuint: {n} does not fit in 32 bits")
    out = bytearray()
    started = False
    for shift in _GROUP_SHIFTS:
        group = (n >> shift) & VARUINT_GROUP_MASK
        end = shift == 0
        started = started or group != 0
        if started or end:
            out.append((group << 1) | (VARUINT_END_FLAG if end else 0))
    return bytes(out)


def _finish(value: int) -> int:
    value >>= 1
    if value > UINT32_MAX:
        raise VarUintError("varuint: value exceeds 32 bits")
    return value


def decode_varuint(data: bytes, pos: int = 0) -> Tuple[int, int]:
    value = 0
    while not value & VARUINT_END_FLAG:
        if pos >= len(data):
            raise TruncatedReadError("varuint: truncated")
        value = (value << VARUINT_GROUP_BITS) | data[pos]
        pos += 1
    return _finish(value), pos


def read_varuint(f: BinaryIO) -> int:
    value = 0
    while not value & VARUINT_END_FLAG:
        b = f.read(1)
        if not b:
            raise TruncatedReadError("varuint: unexpected end of stream")
        value = (value << VARUINT_GROUP_BITS) | b[0]
    return _finish(value)


def write_varuint(f: BinaryIO, n: int) -> int:
    return f.write(encode_varuint(n))


def encode_packed_string(data: bytes) -> bytes:
    return b"".join(encode_varuint(b) for b in data)


def read_packed_string(f: BinaryIO, length: int) -> bytes:
    # Values wider than a byte keep only their low 8 bits
    return bytes(read_varuint(f) & 0xFF for _ in range(length))


def read_packed_string_until(f: BinaryIO, end: int) -> bytes:
    out = bytearray()
    while f.tell() < end:
        out.append(read_varuint(f) & 0xFF)
    return bytes(out)
