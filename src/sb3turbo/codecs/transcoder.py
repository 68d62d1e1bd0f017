"""Per-asset dispatch to the codec for its kind."""

from __future__ import annotations

from collections.abc import Mapping

from sb3turbo.codecs.audio import AudioCodec, EngineHandle, get_engine_handle
from sb3turbo.codecs.base import Asset, AssetKind, Codec, TranscodedAsset
from sb3turbo.codecs.raster import RasterCodec
from sb3turbo.codecs.vector import VectorCodec
from sb3turbo.core.config import TranscodeSettings
from sb3turbo.core.errors import TranscodeError


class AssetTranscoder:
    """Transcode one asset by its extension.

    Kinds without a codec (opaque files) pass through unchanged. Codec
    failures are raised as ``TranscodeError``; the caller decides on the
    fallback.
    """

    def __init__(self, codecs: Mapping[AssetKind, Codec]) -> None:
        self.codecs = dict(codecs)

    @classmethod
    def from_settings(
        cls,
        settings: TranscodeSettings | None = None,
        engine_handle: EngineHandle | None = None,
    ) -> AssetTranscoder:
        settings = settings or TranscodeSettings()
        handle = engine_handle or get_engine_handle(settings.ffmpeg_path)
        return cls(
            {
                AssetKind.VECTOR: VectorCodec(
                    multipass=settings.vector_multipass,
                    max_passes=settings.vector_max_passes,
                ),
                AssetKind.RASTER: RasterCodec(quality=settings.image_quality),
                AssetKind.AUDIO: AudioCodec(handle, settings),
            }
        )

    @property
    def engine_handle(self) -> EngineHandle | None:
        codec = self.codecs.get(AssetKind.AUDIO)
        return codec.handle if isinstance(codec, AudioCodec) else None

    async def transcode(self, path: str, data: bytes) -> TranscodedAsset:
        asset = Asset(path, data)
        kind = asset.kind
        codec = self.codecs.get(kind)
        if codec is None:
            return TranscodedAsset(path, kind, data, asset.extension, passthrough=True)

        try:
            encoded, extension = await codec.encode(asset)
        except Exception as e:
            raise TranscodeError(path, kind.value, e) from e

        if not encoded:
            raise TranscodeError(path, kind.value, "codec returned no data")
        return TranscodedAsset(path, kind, encoded, extension)
