"""Resolve phase: fill in each record's path inside its parent root."""

from typing import Callable

from .errors import PathLookupError
from .root_index import RootIndex, RootRecord


# lookup(root_id, dir_id) -> "" for the root directory, else "a/b/" (trailing slash)
LookupFn = Callable[[int, int], str]


class NameResolver:
    """Turns (parent_root_id, parent_dir_id, name) into a local path."""

    def __init__(self, lookup: LookupFn):
        self.lookup = lookup

    def resolve(self, record: RootRecord):
        """Set record.local_path. Does nothing if it is already set."""
        if record.local_path is not None:
            return

        try:
            fragment = self.lookup(record.parent_root_id, record.parent_dir_id)
        except OSError as e:
            raise PathLookupError(record.parent_root_id, record.parent_dir_id,
                                  e.strerror or str(e)) from e

        if fragment:
            # the lookup already ends the fragment with '/'
            record.local_path = fragment + record.name
        else:
            record.local_path = record.name

    def resolve_all(self, index: RootIndex) -> int:
        """Resolve every record in ascending key order. Returns how many were looked up."""
        looked_up = 0
        for record in index.iter_ascending():
            if record.local_path is None:
                self.resolve(record)
                looked_up += 1
        return looked_up
