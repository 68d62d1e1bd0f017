"""Publish/subscribe channel for log records.

Every record emitted through ``sb3turbo.core.logging`` is published here so
front ends can show per-asset warnings without scraping the console.
Subscriber exceptions never reach the publisher.
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable, Iterator
from dataclasses import dataclass

Subscriber = Callable[["LogRecord"], None]


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    message: str
    logger_name: str

    @property
    def plain(self) -> str:
        return f"[{self.level_name.lower()}] {self.message}"


class LogBus:
    def __init__(self) -> None:
        self._subs: list[Subscriber] = []

    def subscribe(self, cb: Subscriber) -> None:
        self._subs.append(cb)

    def unsubscribe(self, cb: Subscriber) -> None:
        try:
            self._subs.remove(cb)
        except ValueError:
            return

    def publish(self, record: LogRecord) -> None:
        for cb in list(self._subs):
            try:
                cb(record)
            except Exception:
                # Never route through the core logger here (recursion).
                msg = "LogBus subscriber raised; suppressed.\n" + traceback.format_exc()
                with contextlib.suppress(Exception):
                    sys.stderr.write(msg)

    @contextlib.contextmanager
    def collect(self, min_level: str | None = None) -> Iterator[list[LogRecord]]:
        """Collect records published while the block runs.

        Args:
            min_level: Only keep records with this level name (e.g. "WARNING").
        """
        records: list[LogRecord] = []

        def _keep(rec: LogRecord) -> None:
            if min_level is None or rec.level_name == min_level:
                records.append(rec)

        self.subscribe(_keep)
        try:
            yield records
        finally:
            self.unsubscribe(_keep)

    def clear(self) -> None:
        self._subs.clear()


_LOG_BUS: LogBus | None = None


def get_log_bus() -> LogBus:
    global _LOG_BUS
    if _LOG_BUS is None:
        _LOG_BUS = LogBus()
    return _LOG_BUS
