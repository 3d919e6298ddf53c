"""Exceptions raised while listing subvolumes."""


class SubvolListError(Exception):
    """Base class for all listing failures."""


class EnumerationError(SubvolListError):
    """The tree search failed or returned a malformed buffer."""


class DuplicateKeyError(SubvolListError):
    """A (subvol_id, parent_root_id) pair was inserted twice."""

    def __init__(self, subvol_id: int, parent_root_id: int):
        super().__init__(f"failed to insert tree {subvol_id} "
                         f"(already referenced from root {parent_root_id})")
        self.subvol_id = subvol_id
        self.parent_root_id = parent_root_id


class PathLookupError(SubvolListError):
    """The inode path lookup for a parent directory failed."""

    def __init__(self, root_id: int, dir_id: int, reason: str = ""):
        msg = f"Failed to lookup path for root {root_id} (dir {dir_id})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.root_id = root_id
        self.dir_id = dir_id


class UnresolvedAncestorError(SubvolListError):
    """A record was stitched before its local path was resolved."""

    def __init__(self, subvol_id: int):
        super().__init__(f"root {subvol_id} has no resolved path")
        self.subvol_id = subvol_id


class ReferenceCycleError(SubvolListError):
    """Parent references loop back without reaching a top level."""

    def __init__(self, subvol_id: int):
        super().__init__(f"parent references of root {subvol_id} form a cycle")
        self.subvol_id = subvol_id
