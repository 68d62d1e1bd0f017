"""In-memory zip container codec for .sb3 archives.

ASCII-only.
"""

from __future__ import annotations

import io
import zipfile
import zlib
from collections.abc import Mapping
from enum import StrEnum

from sb3turbo.core.errors import ArchiveError


class CompressionMode(StrEnum):
    DEFLATE = "deflate"
    STORE = "store"


_ZIP_METHOD = {
    CompressionMode.DEFLATE: zipfile.ZIP_DEFLATED,
    CompressionMode.STORE: zipfile.ZIP_STORED,
}


def _zipinfo_deterministic(name: str, method: int) -> zipfile.ZipInfo:
    zi = zipfile.ZipInfo(filename=name)
    zi.date_time = (1980, 1, 1, 0, 0, 0)
    zi.compress_type = method
    zi.external_attr = 0o644 << 16
    return zi


def extract_entries(data: bytes) -> dict[str, bytes]:
    """Read every file entry of a zip held in memory.

    Directory entries are skipped. The returned dict keeps the archive's
    listing order.

    Raises:
        ArchiveError: If ``data`` is not a readable zip, or an entry cannot
            be decoded (corrupt deflate stream, encryption, unsupported
            compression method).
    """
    entries: dict[str, bytes] = {}
    try:
        with zipfile.ZipFile(io.BytesIO(data), "r") as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                entries[info.filename] = zf.read(info)
    except (
        zipfile.BadZipFile,
        zipfile.LargeZipFile,
        EOFError,
        zlib.error,
        RuntimeError,
        NotImplementedError,
    ) as e:
        raise ArchiveError(str(e) or type(e).__name__) from e
    return entries


def assemble_entries(
    entries: Mapping[str, bytes],
    compression: CompressionMode = CompressionMode.DEFLATE,
) -> bytes:
    """Write ``entries`` into a new zip and return its bytes.

    Entry timestamps are fixed so identical input yields identical output.
    """
    method = _ZIP_METHOD[compression]
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, payload in entries.items():
            zf.writestr(_zipinfo_deterministic(name, method), payload, compress_type=method)
    return buf.getvalue()
