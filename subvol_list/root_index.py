"""Ordered index of subvolume back references.

Every ROOT_BACKREF item found in the tree of tree roots becomes one
RootRecord, keyed by (subvol_id, parent_root_id). The index keeps the
records sorted on that key so the lister can walk it forwards (path
lookups) and backwards (reporting), and so parent lookups by subvolume
id always land on the same record.
"""

import bisect
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .errors import DuplicateKeyError


@dataclass
class RootRecord:
    """One subvolume as seen from one referencing root."""
    subvol_id: int
    parent_root_id: int  # equals subvol_id for a self-referencing top level
    parent_dir_id: int  # directory inside parent_root_id holding the entry
    name: str
    local_path: Optional[str] = None  # set by NameResolver

    @property
    def key(self) -> Tuple[int, int]:
        return (self.subvol_id, self.parent_root_id)

    @property
    def is_self_referencing(self) -> bool:
        return self.parent_root_id == self.subvol_id


class RootIndex:
    """Records sorted by (subvol_id, parent_root_id), unique keys.

    Backed by two parallel lists (keys and records) kept in order with
    bisect. Inserts happen in bulk during enumeration, which hands items
    over in key order already, so the common case appends at the end.
    """

    def __init__(self):
        self._keys: List[Tuple[int, int]] = []
        self._records: List[RootRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[RootRecord]:
        return self.iter_ascending()

    def insert(self, subvol_id: int, parent_root_id: int,
               parent_dir_id: int, name: str) -> RootRecord:
        """Add a record. Raises DuplicateKeyError if the key exists.

        On a duplicate the stored record is left untouched.
        """
        key = (subvol_id, parent_root_id)
        pos = bisect.bisect_left(self._keys, key)
        if pos < len(self._keys) and self._keys[pos] == key:
            raise DuplicateKeyError(subvol_id, parent_root_id)

        record = RootRecord(
            subvol_id=subvol_id,
            parent_root_id=parent_root_id,
            parent_dir_id=parent_dir_id,
            name=name,
        )
        self._keys.insert(pos, key)
        self._records.insert(pos, record)
        return record

    def get(self, subvol_id: int, parent_root_id: int) -> Optional[RootRecord]:
        """Exact lookup on the composite key."""
        key = (subvol_id, parent_root_id)
        pos = bisect.bisect_left(self._keys, key)
        if pos < len(self._keys) and self._keys[pos] == key:
            return self._records[pos]
        return None

    def find_first(self, subvol_id: int) -> Optional[RootRecord]:
        """Return the record for subvol_id with the lowest parent_root_id.

        A subvolume referenced from several roots has several records;
        only this one is ever used when walking parent chains.
        """
        # (subvol_id,) sorts before every (subvol_id, x)
        pos = bisect.bisect_left(self._keys, (subvol_id,))
        if pos < len(self._keys) and self._keys[pos][0] == subvol_id:
            return self._records[pos]
        return None

    def iter_ascending(self) -> Iterator[RootRecord]:
        return iter(self._records)

    def iter_descending(self) -> Iterator[RootRecord]:
        return reversed(self._records)
