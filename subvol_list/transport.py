"""btrfs transport on top of python-btrfs.

Wraps the two kernel calls the lister needs:

- a tree search over the tree of tree roots, keeping only ROOT_BACKREF
  items (one per subvolume reference).
- an inode lookup that turns a directory inside a root into a path
  relative to that root.

The search range (cursor .. (U64_MAX, ROOT_BACKREF, U64_MAX)) is a range
of compound keys, so the kernel also hands back ROOT_ITEM and ROOT_REF
items of the roots in between. Those are skipped here; the raw key of the
last item still decides where the next search starts.
"""

import contextlib
import os
import struct
from typing import List

import btrfs

from .constants import DEFAULT_BATCH_ITEMS, ROOT_BACKREF_KEY, ROOT_TREE_OBJECTID, U64_MAX
from .enumerator import BackrefItem, SearchCursor
from .errors import EnumerationError, PathLookupError, SubvolListError


def parse_backref(header, data) -> BackrefItem:
    """BackrefItem from one ROOT_BACKREF search result."""
    try:
        ref = btrfs.ctree.RootRef(header, data)
    except struct.error as e:
        raise EnumerationError(
            f"malformed back reference for root {header.objectid}: {e}") from e
    return BackrefItem(
        subvol_id=header.objectid,
        parent_root_id=header.offset,
        parent_dir_id=ref.dirid,
        name=bytes(ref.name),
        record_type=header.type,
        sequence=ref.sequence,
    )


class BtrfsFilesystem:
    """An open btrfs filesystem used as the target of search and lookup calls."""

    BATCH_ITEMS = DEFAULT_BATCH_ITEMS

    def __init__(self, path: str, batch_items: int = 0):
        self.path = os.path.abspath(path)
        self.batch_items = batch_items or self.BATCH_ITEMS
        self.fd = -1
        self._stack = None

    def open(self):
        stack = contextlib.ExitStack()
        try:
            fs = stack.enter_context(btrfs.FileSystem(self.path))
        except OSError as e:
            stack.close()
            raise SubvolListError(f"can't access '{self.path}': {e.strerror or e}") from e
        self._stack = stack
        self.fd = fs.fd
        return self

    def close(self):
        if self._stack is not None:
            self._stack.close()
            self._stack = None
        self.fd = -1

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _search_raw(self, cursor: SearchCursor):
        min_key = btrfs.ctree.Key(cursor.min_subvol_id, cursor.min_record_type,
                                  cursor.min_parent_root_id)
        max_key = btrfs.ctree.Key(U64_MAX, ROOT_BACKREF_KEY, U64_MAX)
        try:
            return [(header, bytes(data)) for header, data in
                    btrfs.ioctl.search_v2(self.fd, ROOT_TREE_OBJECTID, min_key, max_key,
                                          nr_items=self.batch_items)]
        except OSError as e:
            raise EnumerationError(f"can't perform the search: {e.strerror or e}") from e

    def search(self, cursor: SearchCursor) -> List[BackrefItem]:
        """Next batch of back references at or after `cursor`.

        An empty list means nothing is left. Batches holding only other
        item types are searched past rather than returned empty.
        """
        local = SearchCursor(cursor.min_subvol_id, cursor.min_record_type,
                             cursor.min_parent_root_id)
        while True:
            raw = self._search_raw(local)
            if not raw:
                return []

            items = [parse_backref(header, data) for header, data in raw
                     if header.type == ROOT_BACKREF_KEY]
            if items:
                return items

            last = raw[-1][0]
            if not local.advance_past_key(last.objectid, last.type, last.offset):
                return []

    def ino_lookup(self, root_id: int, dir_id: int) -> str:
        """Path of dir_id inside root_id: '' for its top directory, else 'a/b/'."""
        try:
            result = btrfs.ioctl.ino_lookup(self.fd, treeid=root_id, objectid=dir_id)
        except OSError as e:
            raise PathLookupError(root_id, dir_id, e.strerror or str(e)) from e
        return os.fsdecode(result.name_bytes)
