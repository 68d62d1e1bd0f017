"""Repackage pipeline - one .sb3 in, one smaller .sb3 out.

States: idle -> loading -> optimizing -> finalizing -> complete, with
cancelled reachable from loading/optimizing and error from loading.

A failure on one asset never aborts the batch: the asset is stored with its
original name and bytes and its manifest references stay as they were. A
missing or unreadable project.json aborts before any asset is touched.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from sb3turbo.codecs.base import AssetKind, kind_for_path
from sb3turbo.codecs.transcoder import AssetTranscoder
from sb3turbo.core.archive import CompressionMode, assemble_entries, extract_entries
from sb3turbo.core.config import TranscodeSettings
from sb3turbo.core.context import (
    ENGINE_STATUS_TEXT,
    CancellationToken,
    RepackageResult,
    RepackageStats,
    RunState,
    RunStatus,
    StatusListener,
)
from sb3turbo.core.errors import EngineError, FatalInputError, ManifestMissingError, TranscodeError
from sb3turbo.core.hashing import content_filename
from sb3turbo.core.logging import get_logger
from sb3turbo.core.manifest import MANIFEST_NAME, load_manifest, rewrite_manifest, serialize_manifest
from sb3turbo.core.registry import AssetRegistry

log = get_logger(__name__)

ProgressListener = Callable[[int, int], None]


class RepackagePipeline:
    """Run the batch for one archive.

    Example:
        pipeline = RepackagePipeline(on_progress=lambda done, total: ...)
        result = await pipeline.run(sb3_bytes, cancel=token)
        if result.state is RunState.COMPLETE:
            Path("out.sb3").write_bytes(result.archive)
    """

    def __init__(
        self,
        transcoder: AssetTranscoder | None = None,
        *,
        settings: TranscodeSettings | None = None,
        on_status: StatusListener | None = None,
        on_progress: ProgressListener | None = None,
        compression: CompressionMode = CompressionMode.DEFLATE,
    ) -> None:
        """Initialize pipeline.

        Args:
            transcoder: Asset transcoder; built from ``settings`` when omitted
            settings: Transcoding policy used to build the default transcoder
            on_status: Called with (state, status line) on every status change
            on_progress: Called with (processed, total) after each asset
            compression: Compression of the output container
        """
        self.transcoder = transcoder or AssetTranscoder.from_settings(settings)
        self.on_status = on_status
        self.on_progress = on_progress
        self.compression = compression
        self.status = RunStatus(listener=on_status)

    async def run(self, data: bytes, cancel: CancellationToken | None = None) -> RepackageResult:
        """Repackage ``data``.

        Returns:
            A complete result with archive bytes and stats, or a cancelled
            result with no archive.

        Raises:
            FatalInputError: The input is not a zip or has no usable project.json.
        """
        token = cancel or CancellationToken()
        self.status = status = RunStatus(listener=self.on_status)

        status.transition(RunState.LOADING)
        try:
            entries = await asyncio.to_thread(extract_entries, data)
            manifest_bytes = entries.pop(MANIFEST_NAME, None)
            if manifest_bytes is None:
                raise ManifestMissingError()
            manifest = load_manifest(manifest_bytes)
        except FatalInputError as e:
            log.error(str(e))
            status.transition(RunState.ERROR, e.message)
            raise

        if any(kind_for_path(path) is AssetKind.AUDIO for path in entries):
            await self._prepare_audio_engine(status)

        if token.cancelled:
            return self._cancelled(status)

        status.transition(RunState.OPTIMIZING)
        registry = AssetRegistry()
        output: dict[str, bytes] = {}
        failed: list[str] = []
        transcoded = passthrough = 0
        total = len(entries)

        for index, (path, payload) in enumerate(entries.items(), start=1):
            if token.cancelled:
                return self._cancelled(status)

            try:
                result = await self.transcoder.transcode(path, payload)
            except TranscodeError as e:
                log.warning(f"{e}; keeping original")
                output[path] = payload
                failed.append(path)
            else:
                if result.passthrough:
                    output[path] = result.data
                    passthrough += 1
                else:
                    filename = await asyncio.to_thread(content_filename, result.data, result.extension)
                    registry.record(path, filename)
                    output[filename] = result.data
                    transcoded += 1
                    log.verbose(f"{path} -> {filename} ({len(payload)} -> {len(result.data)} bytes)")

            status.set_progress(index / total)
            if self.on_progress is not None:
                self.on_progress(index, total)

        status.transition(RunState.FINALIZING)
        rewrite_manifest(manifest, registry)
        output[MANIFEST_NAME] = serialize_manifest(manifest)
        archive = await asyncio.to_thread(assemble_entries, output, self.compression)

        stats = RepackageStats(
            original_size=len(data),
            new_size=len(archive),
            transcoded=transcoded,
            fallbacks=len(failed),
            passthrough=passthrough,
            stored_entries=len(output),
        )
        status.transition(RunState.COMPLETE)
        log.info(
            f"{stats.original_size} -> {stats.new_size} bytes "
            f"({stats.percent_saved:.1f}% reduction, {len(failed)} asset(s) kept as-is)"
        )
        return RepackageResult(
            state=RunState.COMPLETE,
            archive=archive,
            stats=stats,
            failed_assets=tuple(failed),
        )

    async def _prepare_audio_engine(self, status: RunStatus) -> None:
        handle = self.transcoder.engine_handle
        if handle is None or handle.ready:
            return
        status.announce(ENGINE_STATUS_TEXT)
        try:
            await handle.get()
        except EngineError as e:
            log.warning(f"Audio engine unavailable, sounds will be kept as-is: {e.message}")

    def _cancelled(self, status: RunStatus) -> RepackageResult:
        log.info("Cancelled by user")
        status.transition(RunState.CANCELLED)
        return RepackageResult(state=RunState.CANCELLED)


async def repackage(
    data: bytes,
    *,
    settings: TranscodeSettings | None = None,
    cancel: CancellationToken | None = None,
) -> RepackageResult:
    """Repackage an .sb3 held in memory with default codecs.

    The shared audio engine stays loaded for later calls and is closed at
    interpreter exit.
    """
    return await RepackagePipeline(settings=settings).run(data, cancel=cancel)
