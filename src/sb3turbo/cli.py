"""Command-line front end.

    sb3turbo project.sb3            -> project_TURBO.sb3
    sb3turbo project.sb3 -o small.sb3 -v
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import signal
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeRemainingColumn

from sb3turbo import __version__
from sb3turbo.codecs.transcoder import AssetTranscoder
from sb3turbo.core.config import ConfigResolver, TranscodeSettings
from sb3turbo.core.context import CancellationToken, RepackageStats, RunState
from sb3turbo.core.errors import Sb3TurboError
from sb3turbo.core.logging import apply_logging_level, get_logger, set_colors
from sb3turbo.core.pipeline import RepackagePipeline

log = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130

# Progress bar sub-ranges (percent of the bar).
LOADED_AT = 5
OPTIMIZE_START = 15
OPTIMIZE_END = 95

MB = 1024 * 1024


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sb3turbo",
        description="Shrink a Scratch 3 project by recompressing its costumes and sounds.",
    )
    parser.add_argument("input", type=Path, help="project file (.sb3)")
    parser.add_argument("-o", "--output", type=Path, help="output path (default: <name>_TURBO.sb3)")
    parser.add_argument("-c", "--config", type=Path, help="YAML config file (overrides user config)")
    parser.add_argument("--quality", type=float, help="WebP quality 0-1 (default 0.80)")
    parser.add_argument("--ffmpeg", help="ffmpeg executable")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-q", "--quiet", action="store_true")
    verbosity.add_argument("-v", "--verbose", action="store_true")
    verbosity.add_argument("-d", "--debug", action="store_true")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Translate parsed flags into a nested dict for ConfigResolver."""
    overrides: dict[str, Any] = {}
    if args.quiet:
        overrides.setdefault("logging", {})["level"] = "quiet"
    elif args.verbose:
        overrides.setdefault("logging", {})["level"] = "verbose"
    elif args.debug:
        overrides.setdefault("logging", {})["level"] = "debug"
    if args.quality is not None:
        overrides.setdefault("image", {})["quality"] = args.quality
    if args.ffmpeg:
        overrides.setdefault("audio", {})["ffmpeg_path"] = args.ffmpeg
    return overrides


def default_output_path(source: Path, suffix: str = "_TURBO") -> Path:
    return source.with_name(f"{source.stem}{suffix}.sb3")


def format_stats(stats: RepackageStats) -> list[str]:
    saved = stats.saved_bytes
    if saved > MB:
        saved_text = f"{saved / MB:.1f} MB"
    else:
        saved_text = f"{saved / 1024:.0f} KB"
    return [
        f"Original: {stats.original_size / MB:.2f} MB",
        f"Optimized: {stats.new_size / MB:.2f} MB",
        f"Saved {saved_text} ({stats.percent_saved:.1f}% reduction)",
    ]


async def run_cli(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()

    source: Path = args.input
    if source.suffix.lower() != ".sb3":
        log.error("Please select a .sb3 file")
        return EXIT_ERROR
    if not source.is_file():
        log.error(f"File not found: {source}")
        return EXIT_ERROR

    try:
        resolver = ConfigResolver(cli_args=cli_overrides(args), user_config_path=args.config)
        apply_logging_level(resolver.resolve_logging_level())
        set_colors(resolver.resolve_bool("logging.color"))
        settings = TranscodeSettings.from_resolver(resolver)
        suffix = resolver.resolve_str("output.suffix")
    except Sb3TurboError as e:
        log.error(str(e))
        return EXIT_ERROR

    output: Path = args.output or default_output_path(source, suffix)
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, token.cancel)

    transcoder = AssetTranscoder.from_settings(settings)
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeRemainingColumn(),
        console=console,
        transient=True,
    )

    try:
        with progress:
            task = progress.add_task("Loading...", total=100)

            def on_status(state: RunState, message: str) -> None:
                completed = {RunState.LOADING: LOADED_AT, RunState.OPTIMIZING: OPTIMIZE_START}
                if state in completed:
                    progress.update(task, description=message, completed=completed[state])
                elif state is RunState.FINALIZING:
                    progress.update(task, description=message, completed=OPTIMIZE_END)
                else:
                    progress.update(task, description=message)

            def on_progress(done: int, total: int) -> None:
                span = OPTIMIZE_END - OPTIMIZE_START
                progress.update(task, completed=OPTIMIZE_START + span * done / total)

            pipeline = RepackagePipeline(
                transcoder,
                on_status=on_status,
                on_progress=on_progress,
            )
            result = await pipeline.run(source.read_bytes(), cancel=token)
            progress.update(task, completed=100)
    except Sb3TurboError as e:
        log.error(str(e))
        return EXIT_ERROR
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)
        handle = transcoder.engine_handle
        if handle is not None:
            handle.close()

    if result.state is RunState.CANCELLED or result.archive is None:
        console.print(pipeline.status.message)
        return EXIT_CANCELLED

    try:
        output.write_bytes(result.archive)
    except OSError as e:
        log.error(f"Cannot write {output}: {e}")
        return EXIT_ERROR
    assert result.stats is not None
    for line in format_stats(result.stats):
        console.print(line)
    if result.failed_assets:
        console.print(f"[yellow]{len(result.failed_assets)} asset(s) kept unchanged[/yellow]")
    console.print(f"[bold green]{pipeline.status.message}[/bold green] Saved to {output}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> None:
    sys.exit(asyncio.run(run_cli(argv)))
