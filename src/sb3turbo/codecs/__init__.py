"""Per-kind asset codecs and the dispatching transcoder."""

from sb3turbo.codecs.audio import (
    AudioCodec,
    AudioEngine,
    EngineHandle,
    get_engine_handle,
    parse_duration,
    select_audio_format,
)
from sb3turbo.codecs.base import Asset, AssetKind, TranscodedAsset, kind_for_path
from sb3turbo.codecs.raster import RasterCodec
from sb3turbo.codecs.transcoder import AssetTranscoder
from sb3turbo.codecs.vector import VectorCodec

__all__ = [
    "Asset",
    "AssetKind",
    "TranscodedAsset",
    "kind_for_path",
    "AssetTranscoder",
    "VectorCodec",
    "RasterCodec",
    "AudioCodec",
    "AudioEngine",
    "EngineHandle",
    "get_engine_handle",
    "parse_duration",
    "select_audio_format",
]
