"""project.json loading, reference rewriting and serialization."""

from __future__ import annotations

import json
from typing import Any

from sb3turbo.core.errors import ManifestError
from sb3turbo.core.registry import AssetRegistry

MANIFEST_NAME = "project.json"

# Per-target lists whose elements reference assets.
ASSET_LISTS = ("costumes", "sounds")


def load_manifest(data: bytes) -> dict[str, Any]:
    """Parse project.json bytes.

    Raises:
        ManifestError: If the bytes are not a JSON object with a targets list.
    """
    try:
        manifest = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestError(
            f"project.json is not valid JSON: {e}",
            "The project may be corrupted; try re-saving it from Scratch",
        ) from e

    if not isinstance(manifest, dict) or not isinstance(manifest.get("targets"), list):
        raise ManifestError("project.json has no 'targets' list")

    return manifest


def split_filename(filename: str) -> tuple[str, str]:
    """Split ``digest.ext`` at the last dot."""
    asset_id, sep, data_format = filename.rpartition(".")
    if not sep:
        return filename, ""
    return asset_id, data_format


def rewrite_manifest(manifest: dict[str, Any], registry: AssetRegistry) -> dict[str, Any]:
    """Point costume and sound references at their new filenames.

    Mutates ``manifest`` in place and returns it. Elements whose ``md5ext``
    is not in the registry are left untouched. Sections other than
    ``targets`` (monitors, extensions, meta) are not inspected.
    """
    for target in manifest.get("targets", []):
        if not isinstance(target, dict):
            continue
        for list_name in ASSET_LISTS:
            for element in target.get(list_name) or []:
                if not isinstance(element, dict):
                    continue
                new_name = registry.lookup(element.get("md5ext"))
                if new_name is None:
                    continue
                asset_id, data_format = split_filename(new_name)
                element.update(assetId=asset_id, dataFormat=data_format, md5ext=new_name)
    return manifest


def serialize_manifest(manifest: dict[str, Any]) -> bytes:
    """Compact JSON, no insignificant whitespace."""
    return json.dumps(manifest, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
