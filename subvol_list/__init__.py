# btrfs subvolume lister
# Enumerates subvolume back references and rebuilds each subvolume's path

from .errors import (
    SubvolListError, EnumerationError, DuplicateKeyError,
    PathLookupError, UnresolvedAncestorError, ReferenceCycleError,
)
from .root_index import RootIndex, RootRecord
from .enumerator import BackrefItem, SearchCursor, build_index
from .resolver import NameResolver
from .stitcher import PathStitcher, SubvolPath
from .lister import SubvolumeLister

__all__ = [
    'SubvolListError', 'EnumerationError', 'DuplicateKeyError',
    'PathLookupError', 'UnresolvedAncestorError', 'ReferenceCycleError',
    'RootIndex', 'RootRecord', 'BackrefItem', 'SearchCursor', 'build_index',
    'NameResolver', 'PathStitcher', 'SubvolPath', 'SubvolumeLister',
]
