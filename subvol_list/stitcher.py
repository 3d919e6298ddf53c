"""Stitch phase: join local paths along parent references.

For each record we walk parent_root_id -> record -> parent_root_id ...,
prepending local paths, until one of two exits:

- the record references itself (it is a top level), or
- the parent root is not in the index (it is the visible top).

The id we stop at is reported as the top level.
"""

from dataclasses import dataclass
from typing import Iterator, Tuple

from .errors import ReferenceCycleError, UnresolvedAncestorError
from .root_index import RootIndex, RootRecord


@dataclass(frozen=True)
class SubvolPath:
    """One line of the listing."""
    subvol_id: int
    top_level_id: int
    path: str

    def format(self) -> str:
        return f"ID {self.subvol_id} top level {self.top_level_id} path {self.path}"


class PathStitcher:
    """Builds full paths from a resolved RootIndex."""

    def __init__(self, index: RootIndex):
        self.index = index

    def stitch(self, record: RootRecord) -> Tuple[int, str]:
        """Return (top_level_id, full_path) for `record`."""
        current = record
        full_path = self._local_path(current)
        # every step lands on a distinct record unless the chain loops
        steps_left = len(self.index)

        while True:
            next_parent = current.parent_root_id
            if current.is_self_referencing:
                return next_parent, full_path

            found = self.index.find_first(next_parent)
            if found is None:
                return next_parent, full_path

            if steps_left <= 0:
                raise ReferenceCycleError(record.subvol_id)
            steps_left -= 1

            full_path = self._local_path(found) + "/" + full_path
            current = found

    def stitch_all(self) -> Iterator[SubvolPath]:
        """Yield a SubvolPath per record, highest key first."""
        for record in self.index.iter_descending():
            top_level_id, path = self.stitch(record)
            yield SubvolPath(record.subvol_id, top_level_id, path)

    @staticmethod
    def _local_path(record: RootRecord) -> str:
        if record.local_path is None:
            raise UnresolvedAncestorError(record.subvol_id)
        return record.local_path
