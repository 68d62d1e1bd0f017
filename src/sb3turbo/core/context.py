"""Run state, status text, cancellation and results of one repackage run."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class RunState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    OPTIMIZING = "optimizing"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    ERROR = "error"


_ALLOWED_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.IDLE: {RunState.LOADING},
    RunState.LOADING: {RunState.OPTIMIZING, RunState.CANCELLED, RunState.ERROR},
    RunState.OPTIMIZING: {RunState.FINALIZING, RunState.CANCELLED},
    RunState.FINALIZING: {RunState.COMPLETE},
    RunState.COMPLETE: set(),
    RunState.CANCELLED: set(),
    RunState.ERROR: set(),
}

_STATUS_TEXT: dict[RunState, str] = {
    RunState.IDLE: "Idle",
    RunState.LOADING: "Loading...",
    RunState.OPTIMIZING: "Optimizing assets...",
    RunState.FINALIZING: "Compressing final .sb3...",
    RunState.COMPLETE: "Complete!",
    RunState.CANCELLED: "Cancelled - nothing saved",
}

ENGINE_STATUS_TEXT = "Preparing audio engine (first time only)..."

StatusListener = Callable[[RunState, str], None]


class CancellationToken:
    """Cooperative cancellation flag, polled by the pipeline."""

    def __init__(self) -> None:
        self._requested = False

    def cancel(self) -> None:
        self._requested = True

    @property
    def cancelled(self) -> bool:
        return self._requested


@dataclass
class RunStatus:
    """Current state plus the single human-readable status line."""

    state: RunState = RunState.IDLE
    message: str = _STATUS_TEXT[RunState.IDLE]
    progress: float = 0.0
    listener: StatusListener | None = field(default=None, repr=False)

    def transition(self, new_state: RunState, detail: str | None = None) -> None:
        allowed = _ALLOWED_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise ValueError(f"illegal run state transition: {self.state.value} -> {new_state.value}")
        self.state = new_state
        if new_state is RunState.ERROR:
            self.message = f"Error: {detail or 'unknown error'}"
        else:
            self.message = detail or _STATUS_TEXT[new_state]
        self._notify()

    def announce(self, message: str) -> None:
        """Replace the status line without changing state."""
        self.message = message
        self._notify()

    def set_progress(self, value: float) -> None:
        """Advance progress; it never moves backwards."""
        if value < 0.0 or value > 1.0:
            raise ValueError("progress must be within [0.0, 1.0]")
        self.progress = max(self.progress, value)

    def _notify(self) -> None:
        if self.listener is not None:
            self.listener(self.state, self.message)


@dataclass(frozen=True)
class RepackageStats:
    original_size: int
    new_size: int
    transcoded: int = 0
    fallbacks: int = 0
    passthrough: int = 0
    stored_entries: int = 0

    @property
    def saved_bytes(self) -> int:
        return self.original_size - self.new_size

    @property
    def percent_saved(self) -> float:
        if self.original_size == 0:
            return 0.0
        return self.saved_bytes / self.original_size * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_size": self.original_size,
            "new_size": self.new_size,
            "saved_bytes": self.saved_bytes,
            "percent_saved": round(self.percent_saved, 1),
            "transcoded": self.transcoded,
            "fallbacks": self.fallbacks,
            "passthrough": self.passthrough,
            "stored_entries": self.stored_entries,
        }


@dataclass(frozen=True)
class RepackageResult:
    """Outcome of a run that was not aborted by a fatal input error."""

    state: RunState
    archive: bytes | None = None
    stats: RepackageStats | None = None
    failed_assets: tuple[str, ...] = ()

    @property
    def cancelled(self) -> bool:
        return self.state is RunState.CANCELLED
