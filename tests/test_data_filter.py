"""
Tests for the data set filter.

Membership is by leaf name only; the collision case is documented here.
"""

import pytest
from pathlib import Path, PurePath

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from conftest import write_tree
from profile_migration.data_filter import filter_data_set, list_tree, name_set
from profile_migration.models import FileEntry


def _paths(entries):
    return {entry.relative_path.as_posix() for entry in entries}


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    return write_tree(tmp_path / "data", {
        "a/1.txt": "one",
        "b/2.txt": "two",
    })


class TestListTree:
    """Recursive listing."""

    @pytest.mark.unit
    def test_lists_files_and_directories(self, data_root):
        entries = list_tree(data_root)
        assert FileEntry(PurePath("a"), True) in entries
        assert FileEntry(PurePath("a/1.txt"), False) in entries
        assert _paths(entries) == {"a", "a/1.txt", "b", "b/2.txt"}

    @pytest.mark.unit
    def test_relative_paths_are_unique(self, data_root):
        entries = list_tree(data_root)
        assert len(_paths(entries)) == len(entries)


class TestNameSet:
    """Reduction of pattern anchors to leaf names."""

    @pytest.mark.unit
    def test_directory_anchor_enumerates_contents(self, data_root):
        assert name_set(data_root, ["a"]) == {"1.txt"}

    @pytest.mark.unit
    def test_file_anchor_names_itself(self, data_root):
        assert name_set(data_root, ["b/2.txt"]) == {"2.txt"}

    @pytest.mark.unit
    def test_backslash_patterns(self, data_root):
        assert name_set(data_root, ["\\b\\2.txt"]) == {"2.txt"}

    @pytest.mark.unit
    def test_missing_anchor_is_skipped(self, data_root, caplog):
        assert name_set(data_root, ["missing"]) == set()
        assert "does not exist" in caplog.text

    @pytest.mark.unit
    def test_anchor_outside_root_is_skipped(self, data_root, caplog):
        write_tree(data_root.parent / "elsewhere", {"secret.txt": "x"})
        assert name_set(data_root, ["../elsewhere", "..\\..", "a"]) == {"1.txt"}
        assert "points outside" in caplog.text


class TestFilterDataSet:
    """Include and exclude filtering."""

    @pytest.mark.unit
    def test_include_selects_subtree(self, data_root):
        result = filter_data_set(data_root, ["a"])
        assert _paths(result) == {"a/1.txt"}

    @pytest.mark.unit
    def test_no_include_selects_nothing(self, data_root):
        assert filter_data_set(data_root, []) == []
        assert filter_data_set(data_root, [], ["a"]) == []

    @pytest.mark.unit
    def test_result_is_subset_of_listing(self, data_root):
        listing = list_tree(data_root)
        result = filter_data_set(data_root, ["a", "b", "missing"])
        assert set(result) <= set(listing)

    @pytest.mark.unit
    def test_exclude_removes_names(self, tmp_path):
        root = write_tree(tmp_path / "data", {
            "Documents/keep.txt": "k",
            "Documents/skip.tmp": "s",
            "Documents/Cache/blob.bin": "b",
        })
        result = filter_data_set(root, ["Documents"], ["Documents/Cache", "Documents/skip.tmp"])

        assert _paths(result) == {"Documents/keep.txt", "Documents/Cache"}
        assert not {entry.name for entry in result} & name_set(root, ["Documents/Cache", "Documents/skip.tmp"])

    @pytest.mark.unit
    def test_exclude_ignored_without_include(self, data_root):
        assert filter_data_set(data_root, None, ["a"]) == []

    @pytest.mark.unit
    def test_leaf_name_collision_crosses_subtrees(self, tmp_path):
        """Same leaf name in an unrelated subtree is selected too."""
        root = write_tree(tmp_path / "data", {
            "AppData/settings.ini": "wanted",
            "Games/settings.ini": "unrelated",
            "Games/save.dat": "unrelated",
        })
        result = filter_data_set(root, ["AppData"])
        assert _paths(result) == {"AppData/settings.ini", "Games/settings.ini"}

    @pytest.mark.unit
    def test_leaf_name_collision_on_exclude(self, tmp_path):
        """Excluding a name removes it everywhere."""
        root = write_tree(tmp_path / "data", {
            "Documents/readme.txt": "keep me",
            "Documents/Old/readme.txt": "drop me",
        })
        result = filter_data_set(root, ["Documents"], ["Documents/Old"])
        assert "Documents/readme.txt" not in _paths(result)

    @pytest.mark.unit
    def test_uses_supplied_listing(self, data_root):
        listing = [FileEntry(PurePath("a/1.txt"))]
        result = filter_data_set(data_root, ["a", "b"], listing=listing)
        assert result == listing
