from __future__ import annotations

import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, List, Optional

from .constants import DEFAULT_BUFFER_SIZE, IGA_HEADER_SIZE, check_buffer_size
from .errors import TruncatedReadError
from .header import pack_header
from .index import Entry, build_index, encode_name, pack_index
from .pathutil import entry_name_from_path
from .transform import PayloadTransform, data_key


def _target_mode(out_path: str) -> int:
    """Mode of the existing destination, else 0666 minus the process umask."""
    try:
        return stat.S_IMODE(os.stat(out_path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


@dataclass
class _Member:
    fs_path: str
    name: str


class ArchiveWriter:
    """Builds an IGA archive from files, in the order they are added.

    Output goes to a staging file next to ``out_path`` and replaces it only
    after ``finalize()`` has written every member; on error the staging file
    is removed and ``out_path`` is left untouched.
    """

    def __init__(self, out_path: str, *, buffer_size: int = DEFAULT_BUFFER_SIZE):
        self.out_path = out_path
        self.buffer_size = check_buffer_size(buffer_size)
        self.f: Optional[BinaryIO] = None
        self.members: List[_Member] = []
        self.entries: List[Entry] = []
        self._staging_path: Optional[str] = None
        self._finalized = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        dest = Path(self.out_path)
        fd, staging = tempfile.mkstemp(prefix=".igatool-", suffix=".tmp", dir=str(dest.parent))
        self._staging_path = staging
        self.f = os.fdopen(fd, "wb")
        self._finalized = False

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None
        staging = self._staging_path
        self._staging_path = None
        if staging is None:
            return
        if self._finalized:
            # mkstemp creates 0600; give the archive the mode a plain open() would
            os.chmod(staging, _target_mode(self.out_path))
            os.replace(staging, self.out_path)
        else:
            try:
                os.remove(staging)
            except FileNotFoundError:
                pass

    def add_file(self, fs_path: str, name: Optional[str] = None):
        """Queue ``fs_path``; its member name defaults to the final path component."""
        if self.f is None:
            raise RuntimeError("Archive not open")
        if name is None:
            name = entry_name_from_path(fs_path)
        encode_name(name)
        self.members.append(_Member(fs_path=fs_path, name=name))

    def finalize(self, on_member: Optional[Callable[[Entry], None]] = None) -> List[Entry]:
        """
        Writes the whole archive:
        1.  Measures every queued file.
        2.  Lays out the entry table and the packed name block.
        3.  Writes header, table, names, then each member's transformed bytes.
        """
        if self.f is None:
            raise RuntimeError("Archive not open")
        sizes = [os.path.getsize(m.fs_path) for m in self.members]
        rows, table, names = build_index([(m.name, size) for m, size in zip(self.members, sizes)])
        index_bytes = pack_index(table, names)
        data_start = IGA_HEADER_SIZE + len(index_bytes)

        self.f.write(pack_header())
        self.f.write(index_bytes)

        self.entries = []
        for member, row in zip(self.members, rows):
            entry = Entry(
                name_offset=row.name_offset,
                name=member.name,
                offset=data_start + row.offset,
                size=row.size,
            )
            self._copy_member(member, entry)
            self.entries.append(entry)
            if on_member is not None:
                on_member(entry)
        self.f.flush()
        self._finalized = True
        return self.entries

    # internals
    def _copy_member(self, member: _Member, entry: Entry):
        assert self.f is not None
        xf = PayloadTransform(data_key(entry.name))
        with open(member.fs_path, "rb") as rf:
            remaining = entry.size
            while remaining > 0:
                chunk = rf.read(min(self.buffer_size, remaining))
                if not chunk:
                    raise TruncatedReadError(
                        f"{member.fs_path}: file shrank by {remaining} byte(s) while being archived"
                    )
                self.f.write(xf.apply(chunk))
                remaining -= len(chunk)
