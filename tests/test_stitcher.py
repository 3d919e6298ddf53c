"""Tests for stitching local paths into full paths."""

import pytest

import fake_btrfs  # noqa: F401
from subvol_list.errors import ReferenceCycleError, UnresolvedAncestorError
from subvol_list.root_index import RootIndex
from subvol_list.stitcher import PathStitcher, SubvolPath


def add(index, subvol_id, parent_root_id, local_path, dir_id=256):
    record = index.insert(subvol_id, parent_root_id, dir_id, local_path.rsplit("/", 1)[-1])
    record.local_path = local_path
    return record


def test_self_reference_stops_immediately():
    index = RootIndex()
    top = add(index, 5, 5, "toplevel")

    assert PathStitcher(index).stitch(top) == (5, "toplevel")


def test_three_level_chain():
    index = RootIndex()
    c = add(index, 5, 5, "c")
    b = add(index, 256, 5, "dir/b")
    a = add(index, 257, 256, "a")

    top_level_id, path = PathStitcher(index).stitch(a)

    assert top_level_id == c.subvol_id
    assert path == c.local_path + "/" + b.local_path + "/" + a.local_path
    assert path == "c/dir/b/a"


def test_unindexed_parent_is_top_level():
    index = RootIndex()
    snap = add(index, 256, 5, "snap1")
    nested = add(index, 257, 256, "nested")

    stitcher = PathStitcher(index)
    assert stitcher.stitch(snap) == (5, "snap1")
    assert stitcher.stitch(nested) == (5, "snap1/nested")


def test_walk_follows_lowest_parent_reference():
    index = RootIndex()
    add(index, 5, 5, "top")
    add(index, 256, 5, "first")
    add(index, 256, 300, "second")
    child = add(index, 400, 256, "child")

    assert PathStitcher(index).stitch(child) == (5, "top/first/child")


def test_unresolved_record_raises():
    index = RootIndex()
    record = index.insert(256, 5, 256, "snap1")

    with pytest.raises(UnresolvedAncestorError):
        PathStitcher(index).stitch(record)


def test_unresolved_ancestor_raises():
    index = RootIndex()
    index.insert(256, 5, 256, "snap1")
    child = add(index, 257, 256, "nested")

    with pytest.raises(UnresolvedAncestorError) as excinfo:
        PathStitcher(index).stitch(child)
    assert excinfo.value.subvol_id == 256


def test_reference_cycle_raises():
    index = RootIndex()
    a = add(index, 10, 11, "a")
    add(index, 11, 10, "b")

    with pytest.raises(ReferenceCycleError):
        PathStitcher(index).stitch(a)


def test_stitch_all_reports_highest_first():
    index = RootIndex()
    add(index, 5, 5, "toplevel")
    add(index, 257, 256, "nested")
    add(index, 256, 5, "snap1")

    entries = list(PathStitcher(index).stitch_all())

    assert entries == [
        SubvolPath(257, 5, "toplevel/snap1/nested"),
        SubvolPath(256, 5, "toplevel/snap1"),
        SubvolPath(5, 5, "toplevel"),
    ]
    assert entries[0].format() == "ID 257 top level 5 path toplevel/snap1/nested"
