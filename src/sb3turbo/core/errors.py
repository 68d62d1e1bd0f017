"""Error handling with friendly messages."""

from __future__ import annotations


class Sb3TurboError(Exception):
    """Base exception for all sb3turbo errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(Sb3TurboError):
    """Configuration error."""

    pass


class FatalInputError(Sb3TurboError):
    """Input archive cannot be processed at all."""

    pass


class ArchiveError(FatalInputError):
    """Input is not a readable container."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Not a valid .sb3 archive: {reason}",
            "Make sure the file was exported from Scratch and is not truncated",
        )


class ManifestMissingError(FatalInputError):
    """Container has no project.json."""

    def __init__(self) -> None:
        super().__init__("No project.json found!")


class ManifestError(FatalInputError):
    """project.json exists but cannot be used."""

    pass


class EngineError(Sb3TurboError):
    """Audio engine is unavailable or an invocation failed."""

    pass


class TranscodeError(Sb3TurboError):
    """One asset could not be transcoded."""

    def __init__(self, path: str, kind: str, cause: BaseException | str) -> None:
        self.path = path
        self.kind = kind
        self.cause = cause
        super().__init__(f"Failed to transcode {kind} asset '{path}': {cause}")
