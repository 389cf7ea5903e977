"""Unit tests for core.assets — the content-addressed asset view.

Tests cover:
- Hashed name formatting and parsing
- Digest computation and memoisation
- Unreadable files keep their logical name
- Hashed names resolve to the logical file
- Paths cannot escape the root
"""

import hashlib
from pathlib import Path

import pytest

from core.assets import AssetStore, clean_name, format_name, parse_name
from core.errors import AssetPathError

_DIGEST = "a" * 64


@pytest.mark.unit
class TestNames:
    def test_clean_name_strips_leading_slash(self):
        assert clean_name("/css/app.css") == "css/app.css"

    def test_clean_name_collapses_parent_segments(self):
        assert clean_name("css/../../etc/passwd") == "etc/passwd"

    def test_format_name_inserts_digest_before_first_extension(self):
        assert format_name("js/app.min.js", _DIGEST) == f"js/app-{_DIGEST}.min.js"

    def test_format_name_without_extension(self):
        assert format_name("LICENSE", _DIGEST) == f"LICENSE-{_DIGEST}"

    def test_format_name_empty_digest_is_identity(self):
        assert format_name("css/app.css", "") == "css/app.css"

    def test_parse_name_round_trips_format_name(self):
        hashed = format_name("css/app.css", _DIGEST)
        assert parse_name(hashed) == ("css/app.css", _DIGEST)

    def test_parse_name_leaves_plain_names_alone(self):
        assert parse_name("css/app.css") == ("css/app.css", "")

    def test_parse_name_ignores_short_suffix(self):
        assert parse_name("css/app-abc123.css") == ("css/app-abc123.css", "")


@pytest.mark.unit
class TestAssetStore:
    def test_hash_name_uses_sha256_of_content(self, site: Path):
        store = AssetStore(site)
        expected = hashlib.sha256((site / "css/app.css").read_bytes()).hexdigest()

        assert store.hash_name("/css/app.css") == f"css/app-{expected}.css"

    def test_digest_is_memoised(self, site: Path):
        store = AssetStore(site)
        first = store.digest("css/app.css")
        (site / "css/app.css").write_text("changed", encoding="utf-8")

        assert store.digest("css/app.css") == first

    def test_hash_name_of_missing_file_is_unchanged(self, site: Path):
        store = AssetStore(site)
        assert store.hash_name("css/missing.css") == "css/missing.css"

    def test_hashed_name_reads_logical_file(self, site: Path):
        store = AssetStore(site)
        hashed = store.hash_name("css/app.css")

        assert store.read_bytes(hashed) == (site / "css/app.css").read_bytes()

    def test_glob_returns_relative_sorted_names(self, site: Path):
        store = AssetStore(site)
        names = list(store.glob("templates/*/*.html"))

        assert names == sorted(names)
        assert "templates/errors/error.html" in names
        assert all(not name.startswith("/") for name in names)

    def test_symlink_out_of_root_is_rejected(self, site: Path, tmp_path: Path):
        outside = tmp_path / "secret.txt"
        outside.write_text("secret", encoding="utf-8")
        (site / "leak.txt").symlink_to(outside)
        store = AssetStore(site)

        with pytest.raises(AssetPathError):
            store.resolve("leak.txt")

    def test_hash_name_of_escaping_symlink_is_unchanged(
        self, site: Path, tmp_path: Path
    ):
        outside = tmp_path / "secret.txt"
        outside.write_text("secret", encoding="utf-8")
        (site / "leak.txt").symlink_to(outside)
        store = AssetStore(site)

        assert store.hash_name("leak.txt") == "leak.txt"
