from __future__ import annotations

"""Position-dependent XOR applied to IGA member payloads.

Byte ``i`` of a member (counted from the start of that member, never from
the start of an I/O buffer) is XORed with ``(i + 2) ^ key``. The keystream
repeats every 256 bytes and the transform is its own inverse, so the same
object both encodes and decodes.
"""

import enum

from Cryptodome.Util.strxor import strxor

from .constants import ENCRYPTED_SUFFIX, KEY_ENCRYPTED, KEY_INDEX_BIAS, KEY_PERIOD, KEY_PLAIN


class KeyPolicy(enum.Enum):
    NAME_BASED = "name"
    FORCED = "forced"


def data_key(name: str, policy: KeyPolicy = KeyPolicy.NAME_BASED) -> int:
    """Return the single-byte payload key for a member called ``name``."""
    if policy is KeyPolicy.FORCED or name.endswith(ENCRYPTED_SUFFIX):
        return KEY_ENCRYPTED
    return KEY_PLAIN


def _period_table(key: int) -> bytes:
    return bytes(((i + KEY_INDEX_BIAS) ^ key) & 0xFF for i in range(KEY_PERIOD))


class PayloadTransform:
    """Stateful transform for one member; ``position`` is the running byte index."""

    def __init__(self, key: int, position: int = 0):
        if not 0 <= key <= 0xFF:
            raise ValueError("key must be a single byte")
        self.key = key
        self.position = position
        self._table = _period_table(key)

    def keystream(self, start: int, length: int) -> bytes:
        phase = start % KEY_PERIOD
        reps = (phase + length) // KEY_PERIOD + 1
        return (self._table * reps)[phase : phase + length]

    def apply(self, data: bytes) -> bytes:
        if not data:
            return b""
        out = strxor(bytes(data), self.keystream(self.position, len(data)))
        self.position += len(data)
        return out


def transform(data: bytes, key: int, start: int = 0) -> bytes:
    return PayloadTransform(key, position=start).apply(data)
