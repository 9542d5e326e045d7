"""Tests for snippet hashing, serialization and restore."""

import pytest
from profile_sync.chain import ProfileChainResolver
from profile_sync.documents import read_yaml
from profile_sync.hashing import hash_directory
from profile_sync.hashing import hash_file
from profile_sync.hashing import list_files
from profile_sync.layout import ProfileLayout
from profile_sync.snippets import SnippetStore


@pytest.fixture
def layout(temp_paths):
    return ProfileLayout(temp_paths.repository)


@pytest.fixture
def snippets(layout):
    return SnippetStore(layout, ProfileChainResolver(layout))


@pytest.fixture
def live_dir(temp_paths):
    path = temp_paths.user_data / "snippets"
    path.mkdir(parents=True)
    return path


def _write(directory, files):
    for name, content in files.items():
        path = directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


class TestHashing:
    """Test content hashing helpers."""

    def test_hash_file_is_sha1(self, live_dir):
        _write(live_dir, {"a.json": "abc"})
        assert hash_file(live_dir / "a.json") == "a9993e364706816aba3e25717850c26c9cd0d89d"

    def test_list_files_nested_and_sorted(self, live_dir):
        """Test nested files are listed with relative posix names."""
        _write(live_dir, {"z.json": "1", "lang/a.json": "2"})
        assert list_files(live_dir) == ["lang/a.json", "z.json"]

    def test_missing_directory(self, temp_paths):
        assert hash_directory(temp_paths.home / "missing") == {}

    def test_symlinks_skipped(self, live_dir, temp_paths):
        """Test symbolic links are not listed."""
        outside = temp_paths.home / "outside.json"
        outside.write_text("{}")
        (live_dir / "link.json").symlink_to(outside)
        _write(live_dir, {"real.json": "{}"})

        assert list_files(live_dir) == ["real.json"]


class TestSnippetStore:
    """Test SnippetStore."""

    def test_root_stores_every_file(self, make_profile, layout, snippets, live_dir):
        make_profile("base")
        _write(live_dir, {"python.json": "py", "go.json": "go"})

        assert snippets.serialize("base", live_dir, None) is None
        assert list_files(layout.snippets_dir("base")) == ["go.json", "python.json"]
        assert not layout.snippets_diff_file("base").exists()

    def test_inheriting_stores_changes_and_removals(self, make_profile, layout, snippets, live_dir):
        """Test only new or modified files are stored, removed ones listed."""
        make_profile("base")
        make_profile("work", extends="base")
        _write(live_dir, {"python.json": "py", "go.json": "go", "rust.json": "rs"})
        snippets.serialize("base", live_dir, None)

        (live_dir / "go.json").unlink()
        _write(live_dir, {"rust.json": "rs2", "ts.json": "ts"})
        diff = snippets.serialize("work", live_dir, "base")

        assert diff.removed == ["go.json"]
        assert list_files(layout.snippets_dir("work")) == ["rust.json", "ts.json"]
        assert read_yaml(layout.snippets_diff_file("work")) == {"removed": ["go.json"]}

    def test_restore_applies_chain(self, make_profile, snippets, live_dir):
        """Test restore copies the effective set and skips removed files."""
        make_profile("base")
        make_profile("work", extends="base")
        _write(live_dir, {"python.json": "py", "go.json": "go"})
        snippets.serialize("base", live_dir, None)
        (live_dir / "go.json").unlink()
        _write(live_dir, {"python.json": "py-work"})
        snippets.serialize("work", live_dir, "base")

        _write(live_dir, {"stray.json": "x"})
        copied = snippets.restore("work", live_dir)

        assert copied == ["python.json"]
        assert list_files(live_dir) == ["python.json"]
        assert (live_dir / "python.json").read_text() == "py-work"

    def test_unchanged_inheriting_profile_stores_nothing(self, make_profile, layout, snippets, live_dir):
        """Test an inheriting profile identical to its parent has no snippet data."""
        make_profile("base")
        make_profile("work", extends="base")
        _write(live_dir, {"python.json": "py"})
        snippets.serialize("base", live_dir, None)

        diff = snippets.serialize("work", live_dir, "base")

        assert diff.is_empty()
        assert not layout.snippets_dir("work").exists()
        assert not layout.snippets_diff_file("work").exists()

    def test_removed_then_readded_in_grandchild(self, make_profile, snippets, live_dir):
        """Test a file removed by one profile can be added back by a descendant."""
        make_profile("base")
        make_profile("work", extends="base")
        make_profile("client", extends="work")
        _write(live_dir, {"go.json": "go"})
        snippets.serialize("base", live_dir, None)
        (live_dir / "go.json").unlink()
        snippets.serialize("work", live_dir, "base")
        _write(live_dir, {"go.json": "go"})

        diff = snippets.serialize("client", live_dir, "work")

        assert diff.is_empty()
        assert snippets.hash_index("client") == {"go.json": hash_file(live_dir / "go.json")}
