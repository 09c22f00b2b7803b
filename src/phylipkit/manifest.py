from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Sequence

from . import __version__
from .system_info import get_system_metadata

MANIFEST_KEYS = ["command", "command_line", "tool_version", "system", "inputs", "outputs"]


def sha256_file(path: str | Path) -> str:
    path = Path(path)
    h = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def build_manifest(
    command: str,
    argv: Sequence[str],
    inputs: Sequence[str | Path],
    outputs: Sequence[str | Path] = (),
) -> dict[str, Any]:
    return {
        "schema_version": 1,
        "command": command,
        "command_line": "phylipkit " + " ".join(argv),
        "tool_version": __version__,
        "system": get_system_metadata(),
        "inputs": [
            {"path": str(Path(p).resolve()), "sha256": sha256_file(p)} for p in inputs
        ],
        "outputs": [str(Path(p).resolve()) for p in outputs],
    }


def _require_keys(payload: dict[str, Any], keys: list[str], label: str) -> None:
    missing = [k for k in keys if k not in payload]
    if missing:
        raise ValueError(f"{label} missing required keys: {', '.join(missing)}")


def validate_manifest_payload(payload: dict[str, Any]) -> None:
    if not isinstance(payload, dict):
        raise ValueError("manifest payload must be dict.")
    if int(payload.get("schema_version", -1)) != 1:
        raise ValueError("manifest schema_version must be 1.")
    _require_keys(payload, MANIFEST_KEYS, "manifest payload")
    if not isinstance(payload["inputs"], list) or not payload["inputs"]:
        raise ValueError("manifest inputs must be a non-empty list.")
    for entry in payload["inputs"]:
        _require_keys(entry, ["path", "sha256"], "manifest input")


def write_json_file(path: str | Path, payload: Any) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, sort_keys=True)
        handle.write("\n")


def write_manifest(path: str | Path, payload: dict[str, Any]) -> None:
    validate_manifest_payload(payload)
    write_json_file(path, payload)
