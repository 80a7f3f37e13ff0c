"""Asset manifest handed to the downstream packager."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from bookassets.core.registry import Asset

MANIFEST_VERSION = 1


def asset_to_dict(asset: Asset) -> dict[str, str]:
    return {
        "location_on_disk": str(asset.location_on_disk),
        "filename": asset.filename.as_posix(),
        "mimetype": asset.mimetype,
    }


def build_manifest(assets: Iterable[Asset]) -> dict[str, Any]:
    """Return a JSON-serializable manifest describing ``assets`` in order."""

    return {
        "version": MANIFEST_VERSION,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "assets": [asset_to_dict(asset) for asset in assets],
    }


def write_manifest(assets: Iterable[Asset], path: Path) -> Path:
    """Write the manifest for ``assets`` to ``path`` as indented JSON."""

    path.parent.mkdir(parents=True, exist_ok=True)
    payload = build_manifest(assets)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return path
