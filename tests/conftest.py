"""Pytest configuration and fixtures."""

import io
import json
import sys
import zipfile
from pathlib import Path

import pytest

# Add src to path so the suite runs from a plain checkout.
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))

from PIL import Image  # noqa: E402

from sb3turbo.codecs.audio import AudioEngine, EngineHandle, EngineRun  # noqa: E402
from sb3turbo.codecs.base import Asset  # noqa: E402
from sb3turbo.core.logging import VerbosityLevel, set_verbosity  # noqa: E402


@pytest.fixture(autouse=True)
def _quiet_logging():
    """Keep info chatter out of test output; warnings still reach the log bus."""
    set_verbosity(VerbosityLevel.QUIET)
    yield
    set_verbosity(VerbosityLevel.NORMAL)


@pytest.fixture
def png_bytes() -> bytes:
    """Small semi-transparent PNG."""
    buf = io.BytesIO()
    Image.new("RGBA", (16, 16), (255, 0, 0, 128)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (16, 16), (0, 128, 255)).save(buf, format="JPEG", quality=95)
    return buf.getvalue()


@pytest.fixture
def svg_text() -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        "<!-- exported by an editor -->\n"
        '<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10" viewBox="0 0 10 10">\n'
        "  <metadata>editor data</metadata>\n"
        '  <g>\n    <rect x="0" y="0" width="10" height="10" fill="#ff0000"/>\n  </g>\n'
        "</svg>\n"
    )


def costume(md5ext: str, name: str = "costume1") -> dict:
    asset_id, _, data_format = md5ext.rpartition(".")
    return {
        "name": name,
        "assetId": asset_id,
        "md5ext": md5ext,
        "dataFormat": data_format,
        "rotationCenterX": 8,
        "rotationCenterY": 8,
    }


def sound(md5ext: str, name: str = "pop") -> dict:
    asset_id, _, data_format = md5ext.rpartition(".")
    return {
        "name": name,
        "assetId": asset_id,
        "md5ext": md5ext,
        "dataFormat": data_format,
        "rate": 48000,
        "sampleCount": 1124,
    }


def make_project(costumes: list[dict], sounds: list[dict] | None = None) -> dict:
    return {
        "targets": [
            {"isStage": True, "name": "Stage", "costumes": [], "sounds": []},
            {"isStage": False, "name": "Sprite1", "costumes": costumes, "sounds": sounds or []},
        ],
        "monitors": [{"id": "m1", "md5ext": "abc123.png"}],
        "extensions": ["pen"],
        "meta": {"semver": "3.0.0", "vm": "0.2.0", "agent": "test"},
    }


def make_sb3(project: dict | None, assets: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        if project is not None:
            zf.writestr("project.json", json.dumps(project, indent=2))
        for name, data in assets.items():
            zf.writestr(name, data)
    return buf.getvalue()


@pytest.fixture
def sb3_factory():
    """Helpers to build projects and archives: (costume, sound, make_project, make_sb3)."""
    return costume, sound, make_project, make_sb3


class FakeAudioEngine(AudioEngine):
    """AudioEngine that answers like ffmpeg without running it.

    The probe reports ``duration`` (None means no Duration line). Encodes
    write a marker payload to the reserved output name.
    """

    def __init__(self, scratch: Path, duration: str | None = "00:00:02.00", fail_encode: bool = False):
        super().__init__("ffmpeg")
        self.fake_scratch = scratch
        self.duration = duration
        self.fail_encode = fail_encode
        self.load_count = 0
        self.calls: list[tuple[str, ...]] = []
        self.files_during_encode: list[str] = []

    async def load(self) -> None:
        self.load_count += 1
        self.fake_scratch.mkdir(parents=True, exist_ok=True)
        self._scratch = self.fake_scratch
        self._binary = "fake-ffmpeg"

    def close(self) -> None:
        self._scratch = None
        self._binary = None

    async def _run(self, args: tuple[str, ...]) -> EngineRun:
        self.calls.append(args)
        if "null" in args:
            if self.duration is None:
                text = "Input #0, wav, from 'in.wav':\n  Duration: N/A, bitrate: N/A\n"
            else:
                text = f"Input #0, wav, from 'in.wav':\n  Duration: {self.duration}, bitrate: 705 kb/s\n"
            return EngineRun(args, 0, text)

        self.files_during_encode = sorted(p.name for p in self.fake_scratch.iterdir())
        if self.fail_encode:
            return EngineRun(args, 1, "in.wav: Invalid data found when processing input\n")

        out_name = args[-1]
        marker = b"RIFF-mono-16k" if out_name.endswith(".wav") else b"ID3-lame-q8"
        (self.fake_scratch / out_name).write_bytes(marker + b"|" + out_name.encode())
        return EngineRun(args, 0, "")


@pytest.fixture
def fake_engine(tmp_path: Path) -> FakeAudioEngine:
    return FakeAudioEngine(tmp_path / "scratch")


@pytest.fixture
def engine_handle(fake_engine: FakeAudioEngine) -> EngineHandle:
    return EngineHandle(lambda: fake_engine)


class StubCodec:
    """Codec returning fixed bytes; optionally runs a hook per call."""

    def __init__(self, payload: bytes, extension: str, hook=None):
        self.payload = payload
        self.extension = extension
        self.hook = hook
        self.seen: list[str] = []

    async def encode(self, asset: Asset) -> tuple[bytes, str]:
        self.seen.append(asset.path)
        if self.hook is not None:
            self.hook(asset)
        return self.payload, self.extension


class FailingCodec:
    def __init__(self, message: str = "cannot identify image file"):
        self.message = message

    async def encode(self, asset: Asset) -> tuple[bytes, str]:
        raise OSError(self.message)


@pytest.fixture
def stub_codec():
    return StubCodec


@pytest.fixture
def failing_codec():
    return FailingCodec
