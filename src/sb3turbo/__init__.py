"""sb3turbo - shrink Scratch 3 projects.

Recompresses every costume and sound of an .sb3 archive, renames assets by
the md5 of their new bytes and rewrites project.json to match.
"""

__version__ = "0.1.0"

from sb3turbo.codecs import AssetTranscoder
from sb3turbo.core import (
    CancellationToken,
    FatalInputError,
    RepackageResult,
    RepackageStats,
    RunState,
    TranscodeSettings,
)
from sb3turbo.core.pipeline import RepackagePipeline, repackage

__all__ = [
    "AssetTranscoder",
    "CancellationToken",
    "FatalInputError",
    "RepackagePipeline",
    "RepackageResult",
    "RepackageStats",
    "RunState",
    "TranscodeSettings",
    "repackage",
]
