"""btrfs constants used by the subvolume lister."""

from btrfs.ctree import (  # noqa: F401
    ROOT_BACKREF_KEY,
    ROOT_TREE_OBJECTID,
    ULLONG_MAX as U64_MAX,
)

# Items requested per tree search; the kernel caps it by buffer space anyway
DEFAULT_BATCH_ITEMS = 4096
# nr_items is a u32 in the search key
MAX_BATCH_ITEMS = 0xFFFFFFFF
