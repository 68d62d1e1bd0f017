"""Sound transcoding through an ffmpeg engine.

Two phases per sound:
- probe: run ffmpeg with a null muxer and read ``Duration:`` from its log
- encode: mono, 16 kHz; short clips stay PCM wav, longer ones become mp3

The engine owns a scratch directory. Every asset works inside an exclusive
session, and the session deletes whatever it wrote or reserved on exit.
"""

from __future__ import annotations

import asyncio
import atexit
import re
import shlex
import shutil
import tempfile
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from sb3turbo.codecs.base import Asset
from sb3turbo.core.config import TranscodeSettings
from sb3turbo.core.errors import EngineError
from sb3turbo.core.logging import get_logger

log = get_logger(__name__)

_DURATION_RE = re.compile(r"Duration: (\d+):(\d+):(\d+(?:\.\d+)?)")

LOSSLESS_EXTENSION = "wav"
LOSSY_EXTENSION = "mp3"


def parse_duration(text: str) -> float | None:
    """Extract ``Duration: H:MM:SS.ss`` from ffmpeg diagnostics, in seconds."""
    match = _DURATION_RE.search(text)
    if match is None:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def select_audio_format(duration: float, lossless_max_seconds: float = 5.0) -> str:
    """Pick the output extension; clips strictly shorter than the limit stay lossless."""
    if duration < lossless_max_seconds:
        return LOSSLESS_EXTENSION
    return LOSSY_EXTENSION


@dataclass(frozen=True)
class EngineRun:
    """One ffmpeg invocation and the diagnostic text it produced."""

    args: tuple[str, ...]
    returncode: int
    log: str

    def check(self) -> None:
        if self.returncode != 0:
            tail = "\n".join(self.log.strip().splitlines()[-5:]) or "no output"
            raise EngineError(f"ffmpeg exited with {self.returncode}: {tail}")


class AudioEngine:
    """ffmpeg binary plus a private scratch directory.

    Call ``load()`` once before opening sessions; ``close()`` removes the
    scratch directory.
    """

    def __init__(self, ffmpeg_path: str = "ffmpeg") -> None:
        self.ffmpeg_path = ffmpeg_path
        self._binary: str | None = None
        self._scratch: Path | None = None
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._binary is not None

    @property
    def scratch_dir(self) -> Path | None:
        return self._scratch

    async def load(self) -> None:
        binary = shutil.which(self.ffmpeg_path)
        if binary is None:
            raise EngineError(
                f"FFmpeg not found: {self.ffmpeg_path}",
                "Install with: sudo apt-get install ffmpeg",
            )

        proc = await asyncio.create_subprocess_exec(
            binary,
            "-hide_banner",
            "-version",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, _stderr = await proc.communicate()
        if proc.returncode != 0:
            raise EngineError(f"FFmpeg at {binary} is not usable (exit {proc.returncode})")

        banner = stdout.decode("utf-8", errors="replace").splitlines()
        log.debug(banner[0] if banner else f"ffmpeg at {binary}")

        self._scratch = Path(tempfile.mkdtemp(prefix="sb3turbo-"))
        self._binary = binary

    def close(self) -> None:
        if self._scratch is not None:
            shutil.rmtree(self._scratch, ignore_errors=True)
        self._scratch = None
        self._binary = None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[EngineSession]:
        """Exclusive use of the scratch directory for one asset."""
        if not self.loaded:
            raise EngineError("Audio engine used before load()")
        async with self._lock:
            session = EngineSession(self)
            try:
                yield session
            finally:
                session.cleanup()

    async def _run(self, args: tuple[str, ...]) -> EngineRun:
        assert self._binary is not None and self._scratch is not None
        log.debug("ffmpeg " + shlex.join(args))
        proc = await asyncio.create_subprocess_exec(
            self._binary,
            "-hide_banner",
            "-nostdin",
            *args,
            cwd=self._scratch,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _stdout, stderr = await proc.communicate()
        return EngineRun(
            args=args,
            returncode=proc.returncode if proc.returncode is not None else -1,
            log=stderr.decode("utf-8", errors="replace"),
        )


class EngineSession:
    """Scratch-file access for one asset; tracked names are removed on exit."""

    def __init__(self, engine: AudioEngine) -> None:
        self._engine = engine
        self._names: set[str] = set()

    def _path(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in {".", ".."}:
            raise EngineError(f"Invalid scratch name: {name!r}")
        assert self._engine.scratch_dir is not None
        return self._engine.scratch_dir / name

    def write(self, name: str, data: bytes) -> None:
        path = self._path(name)
        self._names.add(name)
        path.write_bytes(data)

    def reserve(self, name: str) -> str:
        """Mark a name the engine is about to produce, so it gets cleaned up."""
        self._path(name)
        self._names.add(name)
        return name

    def read(self, name: str) -> bytes:
        path = self._path(name)
        if not path.exists():
            raise EngineError(f"ffmpeg did not produce {name}")
        return path.read_bytes()

    def delete(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)
        self._names.discard(name)

    async def run(self, *args: str) -> EngineRun:
        return await self._engine._run(tuple(args))

    def cleanup(self) -> None:
        for name in sorted(self._names):
            self.delete(name)


class EngineHandle:
    """Lazily constructed audio engine, loaded at most once.

    Concurrent ``get()`` callers wait on the same load. A failed load is
    remembered and re-raised instead of retried.
    """

    def __init__(self, factory: Callable[[], AudioEngine]) -> None:
        self._factory = factory
        self._engine: AudioEngine | None = None
        self._error: EngineError | None = None
        self._lock = asyncio.Lock()

    @property
    def ready(self) -> bool:
        return self._engine is not None

    async def get(self) -> AudioEngine:
        if self._engine is None and self._error is None:
            async with self._lock:
                if self._engine is None and self._error is None:
                    engine = self._factory()
                    try:
                        await engine.load()
                    except EngineError as e:
                        self._error = e
                    else:
                        self._engine = engine
        if self._error is not None:
            raise self._error
        assert self._engine is not None
        return self._engine

    def close(self) -> None:
        if self._engine is not None:
            self._engine.close()
        self._engine = None
        self._error = None


_HANDLES: dict[str, EngineHandle] = {}


def get_engine_handle(ffmpeg_path: str = "ffmpeg") -> EngineHandle:
    """Process-wide handle per ffmpeg binary.

    The handle is closed at interpreter exit, removing its scratch directory;
    callers may close it earlier.
    """
    handle = _HANDLES.get(ffmpeg_path)
    if handle is None:
        handle = EngineHandle(lambda: AudioEngine(ffmpeg_path))
        _HANDLES[ffmpeg_path] = handle
        atexit.register(handle.close)
    return handle


class AudioCodec:
    def __init__(self, handle: EngineHandle, settings: TranscodeSettings | None = None) -> None:
        self.handle = handle
        self.settings = settings or TranscodeSettings()

    async def probe_duration(self, session: EngineSession, input_name: str) -> float:
        probe = await session.run("-i", input_name, "-map", "0:a", "-f", "null", "-")
        duration = parse_duration(probe.log)
        if duration is None:
            log.debug(f"{input_name}: no duration in ffmpeg output, assuming long clip")
            return self.settings.unknown_duration
        return duration

    async def encode(self, asset: Asset) -> tuple[bytes, str]:
        s = self.settings
        engine = await self.handle.get()
        input_name = f"in.{asset.extension}"

        async with engine.session() as session:
            session.write(input_name, asset.data)
            duration = await self.probe_duration(session, input_name)
            out_ext = select_audio_format(duration, s.lossless_max_seconds)
            out_name = session.reserve(f"out.{out_ext}")

            args = ["-y", "-i", input_name, "-ac", str(s.channels), "-ar", str(s.sample_rate)]
            if out_ext == LOSSLESS_EXTENSION:
                args += ["-f", "wav", out_name]
            else:
                args += ["-c:a", "libmp3lame", "-q:a", str(s.mp3_quality), out_name]

            run = await session.run(*args)
            run.check()
            data = session.read(out_name)

        if not data:
            raise EngineError(f"ffmpeg produced an empty {out_ext} file")
        log.debug(f"{asset.path}: {duration:.2f}s -> {out_ext}")
        return data, out_ext
