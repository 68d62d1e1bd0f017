"""Unit tests for content hashing and AssetRegistry."""

import hashlib

import pytest

from sb3turbo.core.hashing import content_filename, content_hash
from sb3turbo.core.registry import AssetRegistry


def test_content_hash_is_md5_hex() -> None:
    data = b"costume bytes"
    assert content_hash(data) == hashlib.md5(data).hexdigest()


def test_same_bytes_same_filename() -> None:
    data = b"\x00\x01webp"
    assert content_filename(data, "webp") == content_filename(bytes(data), "webp")
    assert content_filename(data, "webp").endswith(".webp")


def test_different_bytes_different_filename() -> None:
    assert content_filename(b"a", "svg") != content_filename(b"b", "svg")


class TestAssetRegistry:
    def test_record_and_lookup(self) -> None:
        reg = AssetRegistry()
        reg.record("abc123.png", "f00.webp")

        assert reg.lookup("abc123.png") == "f00.webp"
        assert reg.lookup("missing.png") is None
        assert "abc123.png" in reg
        assert len(reg) == 1

    def test_record_is_idempotent(self) -> None:
        reg = AssetRegistry()
        reg.record("abc123.png", "f00.webp")
        reg.record("abc123.png", "f00.webp")

        assert len(reg) == 1

    def test_conflicting_record_rejected(self) -> None:
        reg = AssetRegistry()
        reg.record("abc123.png", "f00.webp")

        with pytest.raises(ValueError):
            reg.record("abc123.png", "bar.webp")
        assert reg.lookup("abc123.png") == "f00.webp"

    def test_values_may_collide(self) -> None:
        reg = AssetRegistry()
        reg.record("a.svg", "same.svg")
        reg.record("b.svg", "same.svg")

        assert sorted(reg) == ["a.svg", "b.svg"]
        assert reg.filenames() == {"same.svg"}
