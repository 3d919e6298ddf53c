"""Command line entry point: list btrfs subvolumes.

Usage:
    sudo subvol-list /mnt/btrfs
    sudo python3 -m subvol_list --watch /mnt/btrfs

Prints one line per subvolume reference, highest id first:
    ID 257 top level 5 path toplevel/snap1/nested
"""
import argparse
import signal
import sys
from typing import Iterable, List, Optional, TextIO

from .constants import DEFAULT_BATCH_ITEMS, MAX_BATCH_ITEMS
from .errors import SubvolListError
from .transport import BtrfsFilesystem
from .lister import SubvolumeLister
from .stitcher import SubvolPath
from .watch import SubvolumeWatcher


def report(entries: Iterable[SubvolPath], out: Optional[TextIO] = None):
    out = out or sys.stdout
    for entry in entries:
        print(entry.format(), file=out)
    out.flush()


def report_change(kind: str, entry: SubvolPath, out: Optional[TextIO] = None):
    out = out or sys.stdout
    print(f"{kind} {entry.format()}", file=out, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='subvol-list',
        description='List btrfs subvolumes with their path from the top level'
    )
    parser.add_argument('path',
                        help='Any path inside the mounted btrfs filesystem')
    parser.add_argument('--keep-duplicates', action='store_true',
                        help='Warn and keep the first entry when a subvolume reference '
                             'is reported twice (default: abort)')
    parser.add_argument('--batch-items', type=int, default=DEFAULT_BATCH_ITEMS,
                        help=f'Items requested per tree search (default: {DEFAULT_BATCH_ITEMS})')
    parser.add_argument('--watch', action='store_true',
                        help='Keep running and print added (+) and removed (-) subvolumes')
    parser.add_argument('--debounce-ms', type=int, default=SubvolumeWatcher.DEBOUNCE_MS,
                        help='Quiet period before relisting in watch mode '
                             f'(default: {SubvolumeWatcher.DEBOUNCE_MS})')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Log progress of each phase to stderr')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if not 1 <= args.batch_items <= MAX_BATCH_ITEMS:
        print(f"ERROR: --batch-items must be between 1 and {MAX_BATCH_ITEMS}", file=sys.stderr)
        return 2

    try:
        with BtrfsFilesystem(args.path, batch_items=args.batch_items) as fs:
            lister = SubvolumeLister(fs.search, fs.ino_lookup,
                                     keep_duplicates=args.keep_duplicates,
                                     verbose=args.verbose)
            entries = lister.list()
            report(entries)

            if args.watch:
                watcher = SubvolumeWatcher(args.path, lister.list,
                                           report_change, listing=entries)
                watcher.DEBOUNCE_MS = args.debounce_ms

                def signal_handler(sig, frame):
                    watcher.stop()

                signal.signal(signal.SIGINT, signal_handler)
                signal.signal(signal.SIGTERM, signal_handler)
                watcher.run()
    except SubvolListError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
