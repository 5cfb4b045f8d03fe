from __future__ import annotations

import io
import os
from typing import BinaryIO, List, Optional

from .constants import DEFAULT_BUFFER_SIZE, check_buffer_size
from .errors import IgaError, TruncatedReadError
from .header import Header, read_header
from .index import Entry, read_index
from .transform import KeyPolicy, PayloadTransform, data_key


class ArchiveReader:
    def __init__(self, path: str, *, buffer_size: int = DEFAULT_BUFFER_SIZE):
        self.path = path
        self.buffer_size = check_buffer_size(buffer_size)
        self.f: Optional[BinaryIO] = None
        self.header: Optional[Header] = None
        self.entries: List[Entry] = []
        self.file_size: int = 0
        self.table_length: int = 0
        self.names_length: int = 0
        self.data_start: int = 0
        # Non-fatal anomalies found while parsing
        self.warnings: List[str] = []

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        self.f = open(self.path, "rb")
        try:
            self.header = read_header(self.f)
            if not self.header.is_standard:
                self.warnings.append(
                    f"non-standard header fields: unknown={self.header.unknown.hex()} "
                    f"padding={self.header.padding.hex()}"
                )
            self.file_size = os.fstat(self.f.fileno()).st_size
            # Every entry is range-checked here, before any member is read
            idx = read_index(self.f, self.file_size)
            self.entries = list(idx.entries)
            self.table_length = idx.table_length
            self.names_length = idx.names_length
            self.data_start = idx.data_start
        except (IgaError, OSError, ValueError):
            self.close()
            raise

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def list(self) -> List[Entry]:
        return self.entries

    def extract(self, entry: Entry, out_path: str, policy: KeyPolicy = KeyPolicy.NAME_BASED) -> int:
        """Decode ``entry`` into ``out_path``; the parent directory must exist."""
        if self.f is None:
            raise RuntimeError("Archive not open")
        with open(out_path, "wb") as wf:
            return self._copy(entry, wf, policy)

    def read(self, entry: Entry, policy: KeyPolicy = KeyPolicy.NAME_BASED) -> bytes:
        if self.f is None:
            raise RuntimeError("Archive not open")
        buf = io.BytesIO()
        self._copy(entry, buf, policy)
        return buf.getvalue()

    # internals
    def _copy(self, entry: Entry, out: BinaryIO, policy: KeyPolicy) -> int:
        assert self.f is not None
        xf = PayloadTransform(data_key(entry.name, policy))
        self.f.seek(entry.offset)
        remaining = entry.size
        while remaining > 0:
            chunk = self.f.read(min(self.buffer_size, remaining))
            if not chunk:
                raise TruncatedReadError(
                    f"{entry.name}: archive ended {remaining} byte(s) before the end of the entry"
                )
            out.write(xf.apply(chunk))
            remaining -= len(chunk)
        return entry.size
