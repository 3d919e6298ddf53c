"""Build phase: drive a paginated back reference search into a RootIndex.

The search itself is external. Anything callable as ``search(cursor)``
returning a list of BackrefItem in key order will do; transport.BtrfsFilesystem
provides the real one, tests use in-memory fakes.
"""

import os
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional

from .constants import ROOT_BACKREF_KEY, U64_MAX
from .errors import DuplicateKeyError
from .root_index import RootIndex


def log(msg):
    print(f"[Enumerator] {msg}", file=sys.stderr, flush=True)


@dataclass
class BackrefItem:
    """A ROOT_BACKREF item: subvol_id is named `name` in parent_dir_id of parent_root_id."""
    subvol_id: int  # key objectid
    parent_root_id: int  # key offset
    parent_dir_id: int
    name: bytes
    record_type: int = ROOT_BACKREF_KEY
    sequence: int = 0

    @property
    def name_len(self) -> int:
        return len(self.name)


@dataclass
class SearchCursor:
    """Lowest key the next search may return.

    Ordered like the tree key: (min_subvol_id, min_record_type,
    min_parent_root_id).
    """
    min_subvol_id: int = 0
    min_record_type: int = ROOT_BACKREF_KEY
    min_parent_root_id: int = 0

    def advance_past(self, item: BackrefItem) -> bool:
        """Move to the key right after `item`.

        Returns False when no key can follow it, i.e. the search space
        is exhausted.
        """
        return self.advance_past_key(item.subvol_id, item.record_type,
                                     item.parent_root_id)

    def advance_past_key(self, objectid: int, item_type: int, offset: int) -> bool:
        """Same as advance_past for a raw tree key of any item type."""
        if offset < U64_MAX:
            self.min_subvol_id = objectid
            self.min_record_type = item_type
            self.min_parent_root_id = offset + 1
            return True
        if item_type < ROOT_BACKREF_KEY:
            # nothing of interest between (objectid, item_type + 1, 0) and this
            self.min_subvol_id = objectid
            self.min_record_type = ROOT_BACKREF_KEY
            self.min_parent_root_id = 0
            return True
        if objectid < U64_MAX:
            self.min_subvol_id = objectid + 1
            self.min_record_type = ROOT_BACKREF_KEY
            self.min_parent_root_id = 0
            return True
        return False


SearchFn = Callable[[SearchCursor], List[BackrefItem]]


def build_index(search: SearchFn, index: Optional[RootIndex] = None,
                keep_duplicates: bool = False,
                verbose: bool = False) -> RootIndex:
    """Fetch every back reference batch and insert it into `index`.

    Stops on an empty batch or once the cursor cannot advance. Errors
    from `search` propagate unchanged. A duplicate key is fatal unless
    keep_duplicates is set, in which case the first record wins.
    """
    if index is None:
        index = RootIndex()

    cursor = SearchCursor()
    batches = 0
    while True:
        items = search(cursor)
        if not items:
            break
        batches += 1

        for item in items:
            name = os.fsdecode(item.name)
            try:
                index.insert(item.subvol_id, item.parent_root_id,
                             item.parent_dir_id, name)
            except DuplicateKeyError as e:
                if not keep_duplicates:
                    raise
                log(f"WARNING: {e}, keeping first entry")

        if verbose:
            log(f"Batch {batches}: {len(items)} items, "
                f"last root {items[-1].subvol_id}")

        if not cursor.advance_past(items[-1]):
            break

    if verbose:
        log(f"Indexed {len(index)} roots in {batches} batches")
    return index
