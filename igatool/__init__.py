"""
igatool — reader and writer for IGA0 game-asset archives.

Features:

- Header, length-prefixed VarUint entry table and packed name block.
- Tolerates producers that pad name bytes with stray zero bytes (last-name
  read-until-end strategy).
- Position-dependent XOR payload transform, keyed per member by its ".s"
  suffix or forced for every member.
- Staged writes: a failed compress never leaves a partial archive behind.

See igatool.index for the on-disk layout.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "errors",
    "header",
    "pathutil",
    "varuint",
    "transform",
    "index",
    "reader",
    "writer",
    "cli",
]

# Importable programmatic API is available via igatool.reader/igatool.writer and
# the CLI functions in igatool.cli (cmd_extract/cmd_compress) which take normal parameters.
