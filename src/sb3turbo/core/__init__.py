"""sb3turbo core - run state, naming, manifest and container handling.

The pipeline lives in ``sb3turbo.core.pipeline`` and is imported from there
(it depends on ``sb3turbo.codecs``, which depends on this package).
"""

from sb3turbo.core.archive import CompressionMode, assemble_entries, extract_entries
from sb3turbo.core.config import ConfigResolver, TranscodeSettings
from sb3turbo.core.context import (
    CancellationToken,
    RepackageResult,
    RepackageStats,
    RunState,
    RunStatus,
)
from sb3turbo.core.errors import (
    ArchiveError,
    ConfigError,
    EngineError,
    FatalInputError,
    ManifestError,
    ManifestMissingError,
    Sb3TurboError,
    TranscodeError,
)
from sb3turbo.core.hashing import content_filename, content_hash
from sb3turbo.core.logging import VerbosityLevel, get_logger, get_verbosity, set_verbosity
from sb3turbo.core.manifest import (
    MANIFEST_NAME,
    load_manifest,
    rewrite_manifest,
    serialize_manifest,
)
from sb3turbo.core.registry import AssetRegistry

__all__ = [
    # Container
    "CompressionMode",
    "extract_entries",
    "assemble_entries",
    # Config
    "ConfigResolver",
    "TranscodeSettings",
    # Run state
    "CancellationToken",
    "RepackageResult",
    "RepackageStats",
    "RunState",
    "RunStatus",
    # Errors
    "Sb3TurboError",
    "ConfigError",
    "FatalInputError",
    "ArchiveError",
    "ManifestError",
    "ManifestMissingError",
    "EngineError",
    "TranscodeError",
    # Naming
    "content_hash",
    "content_filename",
    "AssetRegistry",
    # Manifest
    "MANIFEST_NAME",
    "load_manifest",
    "rewrite_manifest",
    "serialize_manifest",
    # Logging
    "VerbosityLevel",
    "get_logger",
    "get_verbosity",
    "set_verbosity",
]
