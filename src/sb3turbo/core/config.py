"""Configuration resolver with 4-level priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (SB3TURBO_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from sb3turbo.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"


class ConfigResolver:
    """Resolve configuration with strict 4-level priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'image': {'quality': 0.6}},
            user_config_path=Path('~/.config/sb3turbo/config.yaml')
        )

        quality, source = resolver.resolve('image.quality')
        # quality = 0.6, source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Arguments from CLI (highest priority)
            user_config_path: Path to user config file
            system_config_path: Path to system config file
            defaults: Default values (lowest priority)
        """
        self.cli_args = cli_args or {}
        self.user_config_path = user_config_path or Path.home() / ".config/sb3turbo/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/sb3turbo/config.yaml")
        self.defaults = defaults if defaults is not None else self._default_config()

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'audio.sample_rate')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._get_nested(self.cli_args, key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._get_nested(self._get_user_config(), key)
        if value is not None:
            return value, "user_config"

        value = self._get_nested(self._get_system_config(), key)
        if value is not None:
            return value, "system_config"

        value = self._get_nested(self.defaults, key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_float(self, key: str) -> float:
        """Resolve a numeric key; env values arrive as strings."""
        value, source = self.resolve(key)
        if isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be a number, got bool (from {source})")
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Config key '{key}' must be a number, got {value!r} (from {source})") from e

    def resolve_int(self, key: str) -> int:
        value, source = self.resolve(key)
        if isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be an int, got bool (from {source})")
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
        raise ConfigError(f"Config key '{key}' must be an int, got {value!r} (from {source})")

    def resolve_bool(self, key: str) -> bool:
        value, source = self.resolve(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false", "1", "0"}:
            return value.strip().lower() in {"true", "1"}
        raise ConfigError(f"Config key '{key}' must be a bool, got {value!r} (from {source})")

    def resolve_str(self, key: str) -> str:
        value, source = self.resolve(key)
        if not isinstance(value, str):
            raise ConfigError(
                f"Config key '{key}' must be a string, got {type(value).__name__} (from {source})"
            )
        return value

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level.

        Allowed values (after normalization):
            quiet | normal | verbose | debug

        Raises:
            ConfigError: If the resolved value is invalid.
        """
        try:
            value, _src = self.resolve("logging.level")
        except ConfigError:
            return DEFAULT_LOGGING_LEVEL

        if not isinstance(value, str):
            raise ConfigError(f"Config key 'logging.level' must be a string, got {type(value).__name__}")

        norm = value.strip().lower()
        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid 'logging.level': {value!r}. Allowed values: {allowed}")
        return norm

    def _from_env(self, key: str) -> Any | None:
        """Get value from environment variables.

        Environment variable format: SB3TURBO_KEY_NAME
        Example: SB3TURBO_IMAGE_QUALITY, SB3TURBO_AUDIO_FFMPEG_PATH
        """
        env_key = f"SB3TURBO_{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _get_user_config(self) -> dict[str, Any]:
        """Load user config file (cached)."""
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        """Load system config file (cached)."""
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'audio': {'sample_rate': 16000}}
            _get_nested(data, 'audio.sample_rate') -> 16000
        """
        current: Any = data

        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None

        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        """Default configuration."""
        return {
            "image": {
                "quality": 0.80,
            },
            "vector": {
                "multipass": True,
                "max_passes": 10,
            },
            "audio": {
                "ffmpeg_path": "ffmpeg",
                "sample_rate": 16000,
                "channels": 1,
                "lossless_max_seconds": 5.0,
                "mp3_quality": 8,
                "unknown_duration": 999.0,
            },
            "output": {
                "suffix": "_TURBO",
            },
            "logging": {
                "level": DEFAULT_LOGGING_LEVEL,
                "color": True,
            },
        }


@dataclass(frozen=True)
class TranscodeSettings:
    """Typed transcoding policy.

    Defaults mirror ``ConfigResolver._default_config``; construct directly in
    tests, or via ``from_resolver`` in the CLI.
    """

    image_quality: float = 0.80
    vector_multipass: bool = True
    vector_max_passes: int = 10
    ffmpeg_path: str = "ffmpeg"
    sample_rate: int = 16000
    channels: int = 1
    lossless_max_seconds: float = 5.0
    mp3_quality: int = 8
    unknown_duration: float = 999.0

    @classmethod
    def from_resolver(cls, resolver: ConfigResolver) -> TranscodeSettings:
        settings = cls(
            image_quality=resolver.resolve_float("image.quality"),
            vector_multipass=resolver.resolve_bool("vector.multipass"),
            vector_max_passes=resolver.resolve_int("vector.max_passes"),
            ffmpeg_path=resolver.resolve_str("audio.ffmpeg_path"),
            sample_rate=resolver.resolve_int("audio.sample_rate"),
            channels=resolver.resolve_int("audio.channels"),
            lossless_max_seconds=resolver.resolve_float("audio.lossless_max_seconds"),
            mp3_quality=resolver.resolve_int("audio.mp3_quality"),
            unknown_duration=resolver.resolve_float("audio.unknown_duration"),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if not 0.0 < self.image_quality <= 1.0:
            raise ConfigError(f"image.quality must be within (0, 1], got {self.image_quality}")
        if self.vector_max_passes < 1:
            raise ConfigError("vector.max_passes must be at least 1")
        if self.sample_rate <= 0 or self.channels <= 0:
            raise ConfigError("audio.sample_rate and audio.channels must be positive")
        if not 0 <= self.mp3_quality <= 9:
            raise ConfigError(
                f"audio.mp3_quality must be within 0-9, got {self.mp3_quality}",
                "libmp3lame VBR quality: 0 is best, 9 is smallest",
            )
