"""Content-addressed naming helpers."""

from __future__ import annotations

import hashlib


def content_hash(data: bytes) -> str:
    """Return the md5 hex digest used as a Scratch asset id.

    md5 matches the ids Scratch itself writes; it names content, it does not
    authenticate it.
    """
    return hashlib.md5(data, usedforsecurity=False).hexdigest()


def content_filename(data: bytes, extension: str) -> str:
    """Return ``{digest}.{extension}`` for ``data``."""
    return f"{content_hash(data)}.{extension}"
