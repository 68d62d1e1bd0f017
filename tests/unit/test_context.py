"""Unit tests for core.context module."""

import pytest

from sb3turbo.core.context import (
    CancellationToken,
    RepackageResult,
    RepackageStats,
    RunState,
    RunStatus,
)


class TestRunStatus:
    """Tests for RunStatus."""

    def test_happy_path(self):
        seen = []
        status = RunStatus(listener=lambda state, msg: seen.append((state, msg)))

        for state in (RunState.LOADING, RunState.OPTIMIZING, RunState.FINALIZING, RunState.COMPLETE):
            status.transition(state)

        assert status.state is RunState.COMPLETE
        assert seen[-1] == (RunState.COMPLETE, "Complete!")
        assert [s for s, _ in seen] == [
            RunState.LOADING,
            RunState.OPTIMIZING,
            RunState.FINALIZING,
            RunState.COMPLETE,
        ]

    def test_error_only_from_loading(self):
        status = RunStatus()
        status.transition(RunState.LOADING)
        status.transition(RunState.ERROR, "No project.json found!")

        assert status.message == "Error: No project.json found!"

        status = RunStatus()
        status.transition(RunState.LOADING)
        status.transition(RunState.OPTIMIZING)
        with pytest.raises(ValueError):
            status.transition(RunState.ERROR, "late")

    def test_cancel_from_loading_and_optimizing(self):
        for path in ([RunState.LOADING], [RunState.LOADING, RunState.OPTIMIZING]):
            status = RunStatus()
            for state in path:
                status.transition(state)
            status.transition(RunState.CANCELLED)
            assert status.message == "Cancelled - nothing saved"

    def test_cannot_cancel_while_finalizing(self):
        status = RunStatus()
        for state in (RunState.LOADING, RunState.OPTIMIZING, RunState.FINALIZING):
            status.transition(state)
        with pytest.raises(ValueError):
            status.transition(RunState.CANCELLED)

    def test_terminal_states(self):
        status = RunStatus()
        status.transition(RunState.LOADING)
        status.transition(RunState.CANCELLED)
        with pytest.raises(ValueError):
            status.transition(RunState.LOADING)

    def test_progress_is_monotonic(self):
        status = RunStatus()
        status.set_progress(0.5)
        status.set_progress(0.25)
        assert status.progress == 0.5

        with pytest.raises(ValueError):
            status.set_progress(1.5)

    def test_announce_keeps_state(self):
        status = RunStatus()
        status.transition(RunState.LOADING)
        status.announce("Preparing audio engine (first time only)...")
        assert status.state is RunState.LOADING
        assert status.message.startswith("Preparing audio engine")


def test_cancellation_token():
    token = CancellationToken()
    assert not token.cancelled
    token.cancel()
    assert token.cancelled


class TestRepackageStats:
    def test_saved_and_percent(self):
        stats = RepackageStats(original_size=2000, new_size=1500)
        assert stats.saved_bytes == 500
        assert stats.percent_saved == 25.0
        assert stats.to_dict()["percent_saved"] == 25.0

    def test_growth_is_negative_saving(self):
        stats = RepackageStats(original_size=100, new_size=120)
        assert stats.saved_bytes == -20

    def test_empty_input(self):
        assert RepackageStats(original_size=0, new_size=0).percent_saved == 0.0


def test_result_cancelled_flag():
    assert RepackageResult(state=RunState.CANCELLED).cancelled
    assert not RepackageResult(state=RunState.COMPLETE, archive=b"PK").cancelled
