"""SVG costume optimizer (scour)."""

from __future__ import annotations

import asyncio

from scour import scour

from sb3turbo.codecs.base import Asset
from sb3turbo.core.logging import get_logger

log = get_logger(__name__)

SCOUR_ARGS = [
    "--enable-comment-stripping",
    "--remove-metadata",
    "--remove-descriptive-elements",
    "--strip-xml-prolog",
    "--indent=none",
    "--no-line-breaks",
]


def optimize_svg(text: str, *, multipass: bool = True, max_passes: int = 10) -> str:
    """Minify SVG markup.

    With ``multipass`` the optimizer is re-run on its own output until it
    stops shrinking, at most ``max_passes`` times.
    """
    options = scour.parse_args(SCOUR_ARGS)
    current = scour.scourString(text, options)
    if not multipass:
        return current

    for _ in range(max_passes - 1):
        candidate = scour.scourString(current, options)
        if len(candidate) >= len(current):
            break
        current = candidate
    return current


class VectorCodec:
    def __init__(self, *, multipass: bool = True, max_passes: int = 10) -> None:
        self.multipass = multipass
        self.max_passes = max_passes

    async def encode(self, asset: Asset) -> tuple[bytes, str]:
        text = asset.data.decode("utf-8")
        optimized = await asyncio.to_thread(
            optimize_svg, text, multipass=self.multipass, max_passes=self.max_passes
        )
        log.debug(f"{asset.path}: svg {len(text)} -> {len(optimized)} chars")
        return optimized.encode("utf-8"), "svg"
