"""Asset model shared by the codecs and the pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol


class AssetKind(StrEnum):
    VECTOR = "vector"
    RASTER = "raster"
    AUDIO = "audio"
    OPAQUE = "opaque"


_KIND_BY_EXTENSION = {
    "svg": AssetKind.VECTOR,
    "png": AssetKind.RASTER,
    "jpg": AssetKind.RASTER,
    "jpeg": AssetKind.RASTER,
    "wav": AssetKind.AUDIO,
    "mp3": AssetKind.AUDIO,
}


def extension_of(path: str) -> str:
    """Lower-cased text after the last dot of the final path segment."""
    name = path.rsplit("/", 1)[-1]
    _stem, sep, ext = name.rpartition(".")
    return ext.lower() if sep else ""


def kind_for_path(path: str) -> AssetKind:
    return _KIND_BY_EXTENSION.get(extension_of(path), AssetKind.OPAQUE)


@dataclass(frozen=True)
class Asset:
    path: str
    data: bytes

    @property
    def kind(self) -> AssetKind:
        return kind_for_path(self.path)

    @property
    def extension(self) -> str:
        return extension_of(self.path)


@dataclass(frozen=True)
class TranscodedAsset:
    source_path: str
    kind: AssetKind
    data: bytes
    extension: str
    # Stored under the original name and left out of the registry.
    passthrough: bool = False


class Codec(Protocol):
    """One asset kind's encoder: original bytes in, (bytes, extension) out."""

    async def encode(self, asset: Asset) -> tuple[bytes, str]: ...
