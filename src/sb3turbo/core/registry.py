"""Mapping from original asset paths to their content-addressed names."""

from __future__ import annotations

from collections.abc import Iterator


class AssetRegistry:
    """Original path -> new filename, built while the batch runs.

    Keys are unique (each original path is transcoded at most once). Values
    may repeat: two assets that transcode to identical bytes share a name.
    """

    def __init__(self) -> None:
        self._names: dict[str, str] = {}

    def record(self, original_path: str, new_filename: str) -> None:
        """Record a mapping; repeating an identical mapping is a no-op.

        Raises:
            ValueError: If ``original_path`` is already mapped to another name.
        """
        existing = self._names.get(original_path)
        if existing is not None and existing != new_filename:
            raise ValueError(
                f"'{original_path}' already recorded as '{existing}', refusing '{new_filename}'"
            )
        self._names[original_path] = new_filename

    def lookup(self, original_path: str) -> str | None:
        return self._names.get(original_path)

    def __contains__(self, original_path: object) -> bool:
        return original_path in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def filenames(self) -> set[str]:
        """Distinct new filenames (after dedup)."""
        return set(self._names.values())
