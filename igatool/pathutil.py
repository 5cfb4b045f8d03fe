from __future__ import annotations

import os

from .errors import InvalidEntryNameError, NameTableError


def _separators() -> str:
    return os.sep + (os.altsep or "")


def entry_name_from_path(path: str) -> str:
    """Return the archive member name for an input file path.

    The name is the final path component; a path ending in a separator
    has no usable file name.
    """
    if not path or path[-1] in _separators():
        raise InvalidEntryNameError(f"Input path has no file name: {path!r}")
    return os.path.basename(path)


def member_path(outdir: str, name: str) -> str:
    """Resolve the destination of member ``name`` under ``outdir``.

    Rules:
    - Backslashes are treated as separators
    - Empty and '.' segments are dropped
    - Empty names, NUL, absolute names and '..' segments are rejected
    """
    if "\x00" in name:
        raise NameTableError("Entry name contains NUL")
    p = name.replace("\\", "/")
    if p.startswith("/"):
        raise NameTableError(f"Entry name is absolute: {name!r}")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    if not parts:
        raise NameTableError(f"Entry name is empty: {name!r}")
    for q in parts:
        if q == "..":
            raise NameTableError(f"Entry name may not contain '..': {name!r}")
    return os.path.join(outdir or ".", *parts)
