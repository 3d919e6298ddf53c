"""In-memory stand-ins for the btrfs search and path lookup calls."""

import os
import sys

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from subvol_list.enumerator import BackrefItem, SearchCursor
from subvol_list.errors import PathLookupError


def backref(subvol_id, parent_root_id, dir_id, name):
    return BackrefItem(
        subvol_id=subvol_id,
        parent_root_id=parent_root_id,
        parent_dir_id=dir_id,
        name=name.encode() if isinstance(name, str) else name,
    )


def item_key(item):
    return (item.subvol_id, item.record_type, item.parent_root_id)


class FakeTree:
    """Answers search() like the kernel: items at or after the cursor, capped per call."""

    def __init__(self, items, batch_items=4096):
        self.items = sorted(items, key=item_key)
        self.batch_items = batch_items
        self.cursors = []

    def search(self, cursor: SearchCursor):
        start = (cursor.min_subvol_id, cursor.min_record_type, cursor.min_parent_root_id)
        self.cursors.append(start)
        found = sorted((i for i in self.items if item_key(i) >= start), key=item_key)
        return found[:self.batch_items]


class BatchFeed:
    """Returns canned batches in order, ignoring the cursor."""

    def __init__(self, batches):
        self.batches = list(batches)
        self.calls = 0

    def search(self, cursor: SearchCursor):
        self.calls += 1
        if self.batches:
            return self.batches.pop(0)
        return []


class FakePaths:
    """Directory path lookup keyed by (root_id, dir_id); unknown pairs are root directories."""

    def __init__(self, paths=None, missing=()):
        self.paths = dict(paths or {})
        self.missing = set(missing)
        self.calls = []

    def lookup(self, root_id, dir_id):
        self.calls.append((root_id, dir_id))
        if (root_id, dir_id) in self.missing:
            raise PathLookupError(root_id, dir_id, "No such file or directory")
        return self.paths.get((root_id, dir_id), "")


# Example layout: toplevel(5) holds snap1(256) which holds nested(257)
EXAMPLE_ITEMS = [
    backref(5, 5, 0, "toplevel"),
    backref(256, 5, 256, "snap1"),
    backref(257, 256, 256, "nested"),
]
