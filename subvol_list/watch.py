"""Inotify-based watcher that relists subvolumes when the tree changes.

Creating, snapshotting, renaming or deleting a subvolume shows up as a
directory event somewhere under the mount point. Events are debounced,
then the listing is rebuilt and only the differences are reported.
"""

import os
import sys
import threading
import time
from typing import Callable, List, Optional, Tuple

import inotify.adapters
import inotify.constants

from .errors import SubvolListError
from .stitcher import SubvolPath


def log(msg):
    print(f"[Watcher] {msg}", file=sys.stderr, flush=True)


# Change kinds
EVENT_ADDED = '+'
EVENT_REMOVED = '-'

# Directory events that can mean a subvolume appeared or went away
DIR_EVENTS = ('IN_CREATE', 'IN_DELETE', 'IN_MOVED_FROM', 'IN_MOVED_TO')


def diff_listings(old: List[SubvolPath],
                  new: List[SubvolPath]) -> List[Tuple[str, SubvolPath]]:
    """Removed entries first (in old order), then added ones (in new order)."""
    old_set = set(old)
    new_set = set(new)
    changes = [(EVENT_REMOVED, e) for e in old if e not in new_set]
    changes += [(EVENT_ADDED, e) for e in new if e not in old_set]
    return changes


class SubvolumeWatcher:
    """Watches a mounted btrfs tree and reports listing changes.

    The inotify loop runs in a daemon thread and only records that
    something happened; relisting happens in run()/poll() once no new
    event has arrived for DEBOUNCE_MS.
    """

    DEBOUNCE_MS = 500
    EVENT_TIMEOUT_S = 1

    def __init__(self, watch_dir: str,
                 relist: Callable[[], List[SubvolPath]],
                 report: Callable[[str, SubvolPath], None],
                 listing: Optional[List[SubvolPath]] = None):
        """
        Args:
            watch_dir: Mount point (or any directory) to watch recursively
            relist: Returns a fresh listing
            report: Called with (EVENT_ADDED | EVENT_REMOVED, entry) per change
            listing: Listing the first diff is taken against
        """
        self.watch_dir = os.path.abspath(watch_dir)
        self.relist = relist
        self.report = report
        self.listing: List[SubvolPath] = list(listing or [])

        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None

        # Time of the most recent unprocessed event
        self._pending_since: Optional[float] = None

    def start(self):
        """Start the inotify thread."""
        if self._running:
            return

        self._running = True
        self._thread = threading.Thread(target=self._watch_loop, daemon=True)
        self._thread.start()
        log(f"Started watching: {self.watch_dir}")

    def stop(self):
        self._running = False
        if self._thread:
            self._thread.join(timeout=self.EVENT_TIMEOUT_S + 1.0)
            self._thread = None
        log("Stopped watching")

    def run(self):
        """Start watching and process changes until stop() is called."""
        self.start()
        while self._running:
            time.sleep(self.DEBOUNCE_MS / 1000.0)
            self.poll()
        if self._error is not None:
            raise SubvolListError(
                f"watching '{self.watch_dir}' failed: {self._error}") from self._error

    def _watch_loop(self):
        """Main inotify event loop."""
        mask = (
            inotify.constants.IN_CREATE |
            inotify.constants.IN_DELETE |
            inotify.constants.IN_MOVED_FROM |
            inotify.constants.IN_MOVED_TO
        )
        try:
            notifier = inotify.adapters.InotifyTree(self.watch_dir, mask=mask)
            while self._running:
                # event_gen returns after EVENT_TIMEOUT_S without events
                for event in notifier.event_gen(timeout_s=self.EVENT_TIMEOUT_S,
                                                yield_nones=False):
                    if not self._running:
                        break
                    (_, type_names, path, filename) = event
                    self._handle_event(type_names, os.path.join(path, filename))
        except Exception as e:
            log(f"Watch loop error: {e}")
            self._error = e
            self._running = False

    def _handle_event(self, type_names: list, full_path: str) -> bool:
        """Record a directory event. Returns True if it was relevant."""
        if 'IN_ISDIR' not in type_names:
            return False
        if not any(name in type_names for name in DIR_EVENTS):
            return False

        with self._lock:
            self._pending_since = time.time()
        log(f"Directory event {'|'.join(type_names)}: {full_path}")
        return True

    def poll(self, now: Optional[float] = None) -> bool:
        """Relist if events are pending and the debounce window has passed."""
        if now is None:
            now = time.time()
        with self._lock:
            if self._pending_since is None:
                return False
            if now - self._pending_since < self.DEBOUNCE_MS / 1000.0:
                return False
            self._pending_since = None

        self.refresh()
        return True

    def refresh(self) -> List[Tuple[str, SubvolPath]]:
        """Relist now and report what changed.

        A failed relist keeps the previous listing; the next event
        triggers another attempt.
        """
        try:
            new = self.relist()
        except SubvolListError as e:
            log(f"Relist failed, keeping previous listing: {e}")
            return []

        changes = diff_listings(self.listing, new)
        self.listing = new
        for kind, entry in changes:
            self.report(kind, entry)
        return changes
