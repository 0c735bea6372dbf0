"""Tests for the artifact cache."""

import os

import pytest

from aurum.modules import cache as cache_mod
from aurum.modules.cache import ArtifactCache
from aurum.modules.errors import CacheError
from tests.fakes import write_artifact


@pytest.fixture
def cache(cache_dir):
    return ArtifactCache(str(cache_dir))


class TestFilenameHelpers:
    """Artifact filename parsing."""

    def test_artifact_matches_exact_package_only(self):
        """Test 'foo' does not match artifacts of 'foo-git' or 'foobar'."""
        assert cache_mod.artifact_matches("foo-1.0-1-x86_64.pkg.tar.zst", "foo")
        assert cache_mod.artifact_matches("foo-1.0-1-any.pkg.tar.xz", "foo")
        assert not cache_mod.artifact_matches("foo-git-1.0-1-x86_64.pkg.tar.zst", "foo")
        assert not cache_mod.artifact_matches("foobar-1.0-1-x86_64.pkg.tar.zst", "foo")
        assert not cache_mod.artifact_matches("foo.deps", "foo")

    def test_version_from_filename(self):
        """Test version-release extraction."""
        assert cache_mod.version_from_filename("foo-1.0-2-x86_64.pkg.tar.zst", "foo") == "1.0-2"
        assert cache_mod.version_from_filename("foo-1.0.pkg.tar.zst", "foo") is None

    def test_parse_artifact_filename(self):
        """Test name and version for the list command."""
        assert cache_mod.parse_artifact_filename("paru-bin-2.0.3-1-x86_64.pkg.tar.zst") == ("paru-bin", "2.0.3-1")
        assert cache_mod.parse_artifact_filename("weird.pkg.tar.zst") == ("weird", "unknown")


class TestArtifactCache:
    """Cache lookups, inserts and eviction."""

    def test_insert_then_find(self, cache, tmp_path):
        """Test round-trip of an inserted artifact."""
        built = write_artifact(tmp_path, "foo-1.0-1-x86_64.pkg.tar.zst")

        dest = cache.insert(built, "foo", ["bar", "baz"])

        assert cache.find("foo") == dest
        assert os.path.dirname(dest) == cache.cache_dir
        assert cache.read_deps("foo") == ["bar", "baz"]

    def test_save_deps_preserves_order(self, cache):
        """Test read_deps returns exactly the saved list."""
        cache.save_deps("foo", ["zlib", "abc", "m4"])

        assert cache.read_deps("foo") == ["zlib", "abc", "m4"]

    def test_read_deps_without_sidecar(self, cache):
        """Test a missing sidecar reads as no dependencies."""
        assert cache.read_deps("nothing") == []

    def test_insert_replaces_previous_version(self, cache, cache_dir, tmp_path):
        """Test only the newest artifact of a package is kept."""
        write_artifact(cache_dir, "foo-1.0-1-x86_64.pkg.tar.zst")
        write_artifact(cache_dir, "foo-git-3-1-x86_64.pkg.tar.zst")
        built = write_artifact(tmp_path, "foo-1.1-1-x86_64.pkg.tar.zst")

        cache.insert(built, "foo")

        names = sorted(os.listdir(str(cache_dir)))
        assert "foo-1.0-1-x86_64.pkg.tar.zst" not in names
        assert "foo-1.1-1-x86_64.pkg.tar.zst" in names
        assert "foo-git-3-1-x86_64.pkg.tar.zst" in names

    def test_debug_artifact_and_sidecar_are_a_miss(self, cache, cache_dir):
        """Test debug packages and a sidecar alone do not count as cached."""
        write_artifact(cache_dir, "foo-debug-1.0-1-x86_64.pkg.tar.zst")
        cache.save_deps("foo", ["bar"])

        assert cache.find("foo") is None
        assert cache.entry("foo") is None

    def test_entry(self, cache, cache_dir):
        """Test the entry bundles artifact and sidecar."""
        path = write_artifact(cache_dir, "foo-1.0-1-x86_64.pkg.tar.zst")
        cache.save_deps("foo", ["bar"])

        entry = cache.entry("foo")

        assert entry.package == "foo"
        assert entry.artifact_path == path
        assert entry.sidecar_deps == ["bar"]

    def test_evict_removes_artifacts_and_sidecar(self, cache, cache_dir):
        """Test eviction leaves other packages alone."""
        write_artifact(cache_dir, "foo-1.0-1-x86_64.pkg.tar.zst")
        write_artifact(cache_dir, "foo-git-3-1-x86_64.pkg.tar.zst")
        cache.save_deps("foo", ["bar"])

        removed = cache.evict("foo")

        assert removed == ["foo-1.0-1-x86_64.pkg.tar.zst", "foo.deps"]
        assert cache.find("foo") is None
        assert cache.find("foo-git") is not None

    def test_list_entries(self, cache, cache_dir):
        """Test listing parses names and versions, ignoring sidecars."""
        write_artifact(cache_dir, "yay-12.3.5-1-x86_64.pkg.tar.zst")
        write_artifact(cache_dir, "bar-2-1-any.pkg.tar.xz")
        cache.save_deps("yay", [])

        entries = [(n, v) for n, v, _ in cache.list_entries()]

        assert entries == [("bar", "2-1"), ("yay", "12.3.5-1")]

    def test_insert_missing_artifact_raises(self, cache, tmp_path):
        """Test a failed copy is a caching error."""
        with pytest.raises(CacheError) as exc:
            cache.insert(str(tmp_path / "foo-1.0-1-x86_64.pkg.tar.zst"), "foo")

        assert exc.value.stage == "caching"
        assert exc.value.package == "foo"
