"""Tests for expressway.plugins.discovery."""

from __future__ import annotations

from pathlib import Path

from expressway.plugins.discovery import (
    DirectoryEntry,
    FilesystemDirectory,
    PluginDirectory,
    PluginDiscovery,
    is_dotfile,
    is_index,
    is_private,
    named,
    stem_of,
)


class FakeDirectory:
    """In-memory directory listing."""

    def __init__(self, names: list[str], exists: bool = True) -> None:
        self._path = Path("/virtual")
        self._names = names
        self._exists = exists
        self.reads = 0

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._exists

    def entries(self):
        self.reads += 1
        return [DirectoryEntry(name, self._path / name, True) for name in self._names]


class TestPredicates:
    def test_stem_of(self):
        assert stem_of("users.py") == "users"
        assert stem_of(".env") == ".env"
        assert stem_of("archive.tar.gz") == "archive.tar"

    def test_is_index(self):
        assert is_index("index.py")
        assert is_index("__init__.py")
        assert not is_index("indexer.py")

    def test_is_dotfile(self):
        assert is_dotfile(".hidden.py")
        assert not is_dotfile("visible.py")

    def test_is_private(self):
        assert is_private("__pycache__")
        assert is_private("_helpers.py")
        assert not is_private("__init__.py")

    def test_named(self):
        errors = named("errors")
        assert errors("errors.py")
        assert not errors("users.py")


class TestPluginDiscovery:
    def test_fake_directory_satisfies_protocol(self):
        assert isinstance(FakeDirectory([]), PluginDirectory)

    def test_lexicographic_order_and_default_exclusions(self):
        directory = FakeDirectory(["zeta.py", "index.py", ".dot.py", "alpha.py", "_private.py", "notes.md", "mid.py"])
        assert PluginDiscovery(directory).names() == ["alpha", "mid", "zeta"]

    def test_missing_directory_yields_nothing(self):
        directory = FakeDirectory(["a.py"], exists=False)
        assert list(PluginDiscovery(directory)) == []
        assert directory.reads == 0

    def test_restartable(self):
        directory = FakeDirectory(["a.py", "b.py"])
        discovery = PluginDiscovery(directory)
        assert discovery.names() == discovery.names() == ["a", "b"]
        assert directory.reads == 2

    def test_custom_exclusions(self):
        directory = FakeDirectory(["errors.py", "users.py"])
        assert PluginDiscovery(directory, exclude=(named("errors"),)).names() == ["users"]

    def test_suffixes(self):
        directory = FakeDirectory(["a.toml", "b.json", "c.py"])
        assert PluginDiscovery(directory, suffixes=(".toml", ".json")).names() == ["a", "b"]

    def test_filesystem_packages(self, tmp_path):
        (tmp_path / "billing").mkdir()
        (tmp_path / "billing/__init__.py").write_text("")
        (tmp_path / "assets").mkdir()
        (tmp_path / "users.py").write_text("")
        discovery = PluginDiscovery(FilesystemDirectory(tmp_path))
        descriptors = list(discovery)
        assert [d.name for d in descriptors] == ["billing", "users"]
        assert descriptors[0].path == tmp_path / "billing"
