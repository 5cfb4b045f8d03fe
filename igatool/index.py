from __future__ import annotations

"""
Entry table and name block of an IGA archive.

Layout after the fixed header
- varuint(table_len) || table_len bytes of (name_offset, offset, size) varuint triples
- varuint(names_len) || names_len bytes of packed names, in entry order
- member payloads, each starting at data_start + offset

name_offset counts name characters, not encoded bytes. Names are therefore
sliced by the delta between adjacent name_offsets, except for the last one,
which is read until the end of the name block. Some producers emit a stray
0x00 ahead of certain name bytes; the stray byte is swallowed by the varuint
decoder, so deltas still hold for every name but the last, while
names_len - name_offset(last) would overcount it.

Everything here works on any seekable binary stream (io.BytesIO included)
and never touches the filesystem.
"""

from dataclasses import dataclass
from typing import BinaryIO, List, Sequence, Tuple

from .constants import IGA_ENTRIES_OFFSET, UINT32_MAX
from .errors import ArchiveSizeError, EntryRangeError, EntryTableError, InvalidEntryNameError, NameTableError
from .varuint import (
    encode_packed_string,
    encode_varuint,
    read_packed_string,
    read_packed_string_until,
    read_varuint,
)


# Names are single-byte strings; latin-1 maps every byte value 1:1
NAME_ENCODING = "latin-1"


@dataclass(frozen=True)
class TableEntry:
    name_offset: int
    offset: int
    size: int


@dataclass(frozen=True)
class Entry:
    name_offset: int
    name: str
    offset: int  # absolute file offset once resolved
    size: int

    @property
    def end(self) -> int:
        return self.offset + self.size


@dataclass(frozen=True)
class Index:
    entries: Tuple[Entry, ...]
    table_length: int
    names_length: int
    data_start: int


def encode_name(name: str) -> bytes:
    try:
        return name.encode(NAME_ENCODING)
    except UnicodeEncodeError as exc:
        raise InvalidEntryNameError(f"Entry name is not a single-byte string: {name!r}") from exc


def decode_name(raw: bytes) -> str:
    return raw.decode(NAME_ENCODING)


# -------- reading --------

def read_entry_table(f: BinaryIO) -> Tuple[List[TableEntry], int]:
    """Read the length-prefixed entry table at the current position.

    The declared length is authoritative: triples are read until the stream
    reaches the end of the table.
    """
    table_length = read_varuint(f)
    end = f.tell() + table_length
    rows: List[TableEntry] = []
    while f.tell() < end:
        name_offset = read_varuint(f)
        offset = read_varuint(f)
        size = read_varuint(f)
        if f.tell() > end:
            raise EntryTableError(f"Entry {len(rows)} overruns the entry table ({table_length} bytes)")
        rows.append(TableEntry(name_offset=name_offset, offset=offset, size=size))
    return rows, table_length


def read_names(f: BinaryIO, rows: Sequence[TableEntry]) -> Tuple[List[str], int, int]:
    """Read the length-prefixed name block for ``rows``.

    Returns (names, names_length, names_end) where names_end is the absolute
    stream position right after the block, i.e. data_start.
    """
    names_length = read_varuint(f)
    names_end = f.tell() + names_length
    names: List[str] = []
    last = len(rows) - 1
    for i, row in enumerate(rows):
        if i < last:
            name_length = rows[i + 1].name_offset - row.name_offset
            if name_length < 0:
                raise NameTableError(
                    f"Name offsets decrease between entries {i} and {i + 1} "
                    f"({row.name_offset} > {rows[i + 1].name_offset})"
                )
            raw = read_packed_string(f, name_length)
        else:
            raw = read_packed_string_until(f, names_end)
        if f.tell() > names_end:
            raise NameTableError(f"Name of entry {i} overruns the name block ({names_length} bytes)")
        names.append(decode_name(raw))
    return names, names_length, names_end


def resolve_entries(rows: Sequence[TableEntry], names: Sequence[str], data_start: int, file_size: int) -> List[Entry]:
    entries: List[Entry] = []
    for row, name in zip(rows, names):
        offset = data_start + row.offset
        if offset + row.size > file_size:
            raise EntryRangeError(offset, row.size, file_size)
        entries.append(Entry(name_offset=row.name_offset, name=name, offset=offset, size=row.size))
    return entries


def read_index(f: BinaryIO, file_size: int, table_offset: int = IGA_ENTRIES_OFFSET) -> Index:
    f.seek(table_offset)
    rows, table_length = read_entry_table(f)
    names, names_length, data_start = read_names(f, rows)
    entries = resolve_entries(rows, names, data_start, file_size)
    return Index(
        entries=tuple(entries),
        table_length=table_length,
        names_length=names_length,
        data_start=data_start,
    )


# -------- building --------

def _check_u32(value: int, what: str) -> int:
    if value > UINT32_MAX:
        raise ArchiveSizeError(f"{what} ({value}) does not fit in 32 bits")
    return value


def build_index(members: Sequence[Tuple[str, int]]) -> Tuple[List[TableEntry], bytes, bytes]:
    """Lay out ``(name, size)`` members in order.

    Returns (rows, table_bytes, names_bytes). Offsets in ``rows`` are
    relative to data_start.
    """
    rows: List[TableEntry] = []
    table = bytearray()
    names = bytearray()
    name_offset = 0
    offset = 0
    for name, size in members:
        raw_name = encode_name(name)
        row = TableEntry(
            name_offset=_check_u32(name_offset, f"Name offset of {name!r}"),
            offset=_check_u32(offset, f"Data offset of {name!r}"),
            size=_check_u32(size, f"Size of {name!r}"),
        )
        rows.append(row)
        table += encode_varuint(row.name_offset)
        table += encode_varuint(row.offset)
        table += encode_varuint(row.size)
        names += encode_packed_string(raw_name)
        name_offset += len(raw_name)
        offset += size
    return rows, bytes(table), bytes(names)


def pack_index(table: bytes, names: bytes) -> bytes:
    return (
        encode_varuint(_check_u32(len(table), "Entry table length"))
        + table
        + encode_varuint(_check_u32(len(names), "Name block length"))
        + names
    )
