"""Tests for resolving a record's path inside its parent root."""

import errno

import pytest

from fake_btrfs import FakePaths
from subvol_list.errors import PathLookupError
from subvol_list.resolver import NameResolver
from subvol_list.root_index import RootIndex, RootRecord


def test_root_directory_gives_bare_name():
    paths = FakePaths()
    record = RootRecord(256, 5, 256, "snap1")

    NameResolver(paths.lookup).resolve(record)

    assert record.local_path == "snap1"
    assert paths.calls == [(5, 256)]


def test_subdirectory_fragment_is_prefixed():
    paths = FakePaths({(5, 300): "snapshots/daily/"})
    record = RootRecord(260, 5, 300, "2024-01-01")

    NameResolver(paths.lookup).resolve(record)

    assert record.local_path == "snapshots/daily/2024-01-01"


def test_resolve_is_idempotent():
    paths = FakePaths({(5, 300): "snapshots/"})
    resolver = NameResolver(paths.lookup)
    record = RootRecord(260, 5, 300, "a")

    resolver.resolve(record)
    first = record.local_path
    resolver.resolve(record)

    assert record.local_path == first == "snapshots/a"
    assert paths.calls == [(5, 300)]


def test_already_set_path_is_left_alone():
    paths = FakePaths()
    record = RootRecord(260, 5, 300, "a", local_path="preset")

    NameResolver(paths.lookup).resolve(record)

    assert record.local_path == "preset"
    assert paths.calls == []


def test_lookup_error_propagates():
    paths = FakePaths(missing={(256, 400)})
    record = RootRecord(260, 256, 400, "gone")

    with pytest.raises(PathLookupError) as excinfo:
        NameResolver(paths.lookup).resolve(record)

    assert excinfo.value.root_id == 256
    assert excinfo.value.dir_id == 400
    assert record.local_path is None


def test_os_error_is_wrapped():
    def lookup(root_id, dir_id):
        raise OSError(errno.ENOENT, "No such file or directory")

    record = RootRecord(260, 256, 400, "gone")
    with pytest.raises(PathLookupError) as excinfo:
        NameResolver(lookup).resolve(record)

    assert isinstance(excinfo.value.__cause__, OSError)
    assert "No such file or directory" in str(excinfo.value)


def test_resolve_all_walks_ascending_and_skips_resolved():
    index = RootIndex()
    index.insert(257, 256, 256, "nested")
    index.insert(5, 5, 0, "toplevel")
    index.insert(256, 5, 256, "snap1").local_path = "snap1"

    paths = FakePaths()
    looked_up = NameResolver(paths.lookup).resolve_all(index)

    assert looked_up == 2
    assert paths.calls == [(5, 0), (256, 256)]
    assert all(r.local_path is not None for r in index)
