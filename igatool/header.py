from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO

from .constants import IGA_PADDING, IGA_SIGNATURE, IGA_UNKNOWN
from .errors import SignatureError, TruncatedReadError


_HEADER_STRUCT = struct.Struct("<4s4s8s")


@dataclass(frozen=True)
class Header:
    signature: bytes
    unknown: bytes
    padding: bytes

    @property
    def is_standard(self) -> bool:
        return self.unknown == IGA_UNKNOWN and self.padding == IGA_PADDING


def pack_header() -> bytes:
    return _HEADER_STRUCT.pack(IGA_SIGNATURE, IGA_UNKNOWN, IGA_PADDING)


def read_header(f: BinaryIO) -> Header:
    f.seek(0)
    signature = f.read(len(IGA_SIGNATURE))
    if signature != IGA_SIGNATURE:
        raise SignatureError(signature)
    rest = f.read(_HEADER_STRUCT.size - len(IGA_SIGNATURE))
    if len(rest) != _HEADER_STRUCT.size - len(IGA_SIGNATURE):
        raise TruncatedReadError("Header too short")
    _sig, unknown, padding = _HEADER_STRUCT.unpack(signature + rest)
    return Header(signature=signature, unknown=unknown, padding=padding)
