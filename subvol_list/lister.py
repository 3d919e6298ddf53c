"""Subvolume listing: enumerate, resolve, stitch.

Ties the three phases together. The result is all or nothing: list()
either returns every SubvolPath or raises the first error hit.
"""

import sys
from typing import List, Optional

from .enumerator import SearchFn, build_index
from .resolver import LookupFn, NameResolver
from .root_index import RootIndex
from .stitcher import PathStitcher, SubvolPath


def log(msg):
    print(f"[Lister] {msg}", file=sys.stderr, flush=True)


class SubvolumeLister:
    """Lists subvolumes given a back reference search and a path lookup."""

    def __init__(self, search: SearchFn, lookup: LookupFn,
                 keep_duplicates: bool = False,
                 verbose: bool = False):
        self.search = search
        self.resolver = NameResolver(lookup)
        self.keep_duplicates = keep_duplicates
        self.verbose = verbose
        self.index: Optional[RootIndex] = None

    def build_index(self) -> RootIndex:
        """Build phase only."""
        self.index = build_index(self.search,
                                 keep_duplicates=self.keep_duplicates,
                                 verbose=self.verbose)
        return self.index

    def resolve(self, index: RootIndex):
        """Resolve phase only."""
        looked_up = self.resolver.resolve_all(index)
        if self.verbose:
            log(f"Resolved {looked_up} local paths")

    def list(self) -> List[SubvolPath]:
        """Run every phase and return the listing, highest subvolume id first."""
        index = self.build_index()
        self.resolve(index)
        entries = list(PathStitcher(index).stitch_all())
        if self.verbose:
            log(f"Listed {len(entries)} subvolumes")
        return entries
