from __future__ import annotations

import os
import sys
import time
import argparse
from typing import List, Optional

from igatool.reader import ArchiveReader
from igatool.writer import ArchiveWriter
from igatool.pathutil import member_path
from igatool.transform import KeyPolicy
from igatool.errors import (
    IgaError,
    SignatureError,
    EntryTableError,
    NameTableError,
    VarUintError,
    InvalidEntryNameError,
)


# Flag verbs of the original command-line tool
_LEGACY_VERBS = {
    "-x": ["extract"],
    "-xd": ["extract", "--force-decrypt"],
    "-c": ["compress"],
}

# Exit statuses
EXIT_USAGE = 1
EXIT_FORMAT = 1
EXIT_FAILURE = 2


def _throughput(nbytes: int, t0: float) -> tuple[float, float, float]:
    dt = max(0.000001, time.time() - t0)
    mib = nbytes / (1024.0 * 1024.0)
    return mib, dt, mib / dt


def _warn(reader: ArchiveReader) -> None:
    for w in reader.warnings:
        print(f"Warning: {reader.path}: {w}", file=sys.stderr)


def cmd_extract(archive: str, *, outdir: str = ".", force_decrypt: bool = False, quiet: bool = False) -> bool:
    """Extract every member of an archive into a directory.

    Args:
        archive: Path to the .iga file.
        outdir: Destination directory; created if missing. Directories named
            inside member names are not created.
        force_decrypt: Apply the 0xFF payload key to every member instead of
            only to members whose name ends in ".s".
        quiet: Limit output to the summary line.
    """
    policy = KeyPolicy.FORCED if force_decrypt else KeyPolicy.NAME_BASED
    t0 = time.time()
    processed_bytes = 0
    with ArchiveReader(archive) as r:
        _warn(r)
        targets = [(e, member_path(outdir, e.name)) for e in r.list()]
        os.makedirs(outdir or ".", exist_ok=True)
        total = len(targets)
        for i, (e, dst) in enumerate(targets, 1):
            if not quiet:
                print(f" extracting: {i:>4}/{total:<4} {e.name}")
            processed_bytes += r.extract(e, dst, policy)
    mib, dt, mbps = _throughput(processed_bytes, t0)
    print(f"Done: extracted {total} files ({mib:.2f} MiB) in {dt:.1f}s; {mbps:.2f} MiB/s")
    return True


def cmd_compress(archive: str, inputs: list[str], *, quiet: bool = False) -> bool:
    """Create an archive from files, keeping their order.

    Args:
        archive: Output .iga path; replaced only once the archive is complete.
        inputs: Input file paths. Member names are their final path components.
        quiet: Limit output to the summary line.
    """
    t0 = time.time()

    def _report(e) -> None:
        if not quiet:
            print(f" compressing: {e.size:>10}  {e.name}")

    with ArchiveWriter(archive) as w:
        for p in inputs:
            w.add_file(p)
        entries = w.finalize(on_member=_report)
    total_bytes = sum(e.size for e in entries)
    mib, dt, mbps = _throughput(total_bytes, t0)
    print(f"Done: {len(entries)} files; {mib:.2f} MiB in {dt:.1f}s; {mbps:.2f} MiB/s")
    return True


def cmd_list(archive: str) -> bool:
    """List archive members as size, absolute offset and name."""
    with ArchiveReader(archive) as r:
        _warn(r)
        for e in r.list():
            print(f"{e.size}\t{e.offset}\t{e.name}")
    return True


def cmd_info(archive: str) -> bool:
    """Show archive information.

    Args:
        archive: Path to an .iga file.
    """
    with ArchiveReader(archive) as r:
        _warn(r)
        print(f"Archive: {archive}")
        if r.header:
            print(f"  Signature: {r.header.signature.decode('ascii', 'replace')}")
            print(f"  Unknown: {r.header.unknown.hex()}")
            print(f"  Padding: {r.header.padding.hex()}")
        print(f"  File size: {r.file_size}")
        print(f"  Entry table: {r.table_length} bytes")
        print(f"  Name block: {r.names_length} bytes")
        print(f"  Data start: {r.data_start}")
        print(f"  Entries: {len(r.entries)}")
        print(f"    Payload bytes: {sum(e.size for e in r.entries)}")
        print(f"    Encrypted (.s): {len([e for e in r.entries if e.name.endswith('.s')])}")
    return True


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    ap = _ArgumentParser(
        prog="igatool",
        description="IGA0 archive tool",
        epilog="Legacy forms: -x|-xd IGA_FILE [OUTPUT_DIRECTORY], -c IGA_FILE [INPUT_FILE...]",
    )
    sub = ap.add_subparsers(dest="cmd", required=True, parser_class=_ArgumentParser)

    ap_extract = sub.add_parser("extract", help="Extract all members")
    ap_extract.add_argument("archive", help="Archive path")
    ap_extract.add_argument("outdir", nargs="?", default=".", help="Output directory (default: .)")
    ap_extract.add_argument(
        "--force-decrypt",
        action="store_true",
        help="Decode every member with the '.s' key regardless of its name",
    )
    ap_extract.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_compress = sub.add_parser("compress", help="Create an archive from files")
    ap_compress.add_argument("archive", help="Output archive path")
    ap_compress.add_argument("inputs", nargs="*", help="Input files, stored in this order")
    ap_compress.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_list = sub.add_parser("list", help="List archive contents")
    ap_list.add_argument("archive", help="Archive path")

    ap_info = sub.add_parser("info", help="Show archive information")
    ap_info.add_argument("archive", help="Archive path")
    return ap


def _translate_legacy(argv: List[str]) -> List[str]:
    if argv and argv[0] in _LEGACY_VERBS:
        return _LEGACY_VERBS[argv[0]] + argv[1:]
    return argv


def main(argv: Optional[List[str]] = None):
    args_in = list(sys.argv[1:] if argv is None else argv)
    ap = _build_parser()
    args = ap.parse_args(_translate_legacy(args_in))
    try:
        if args.cmd == "extract":
            cmd_extract(args.archive, outdir=args.outdir, force_decrypt=args.force_decrypt, quiet=args.quiet)
        elif args.cmd == "compress":
            cmd_compress(args.archive, args.inputs, quiet=args.quiet)
        elif args.cmd == "list":
            cmd_list(args.archive)
        elif args.cmd == "info":
            cmd_info(args.archive)
        else:
            raise RuntimeError("Unknown command")
    except SignatureError as e:
        print(str(e), file=sys.stderr)
        sys.exit(EXIT_FORMAT)
    except InvalidEntryNameError as e:
        print(f"Error: {e}", file=sys.stderr)
        ap.print_usage(sys.stderr)
        sys.exit(EXIT_USAGE)
    except (EntryTableError, NameTableError, VarUintError) as e:
        print(f"Error: malformed archive: {e}", file=sys.stderr)
        sys.exit(EXIT_FORMAT)
    except (IgaError, OSError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
