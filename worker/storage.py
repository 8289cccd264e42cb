"""
Artifact storage helpers for local disk storage.

This module provides utilities for building diagnostic artifact paths,
writing artifacts, and computing metadata (size, checksum).
"""

from __future__ import annotations

import gzip
import hashlib
import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Literal

ArtifactType = Literal["screenshot", "html_gz", "console_log"]

_EXTENSIONS = {
    "screenshot": "png",
    "html_gz": "html.gz",
    "console_log": "jsonl",
}


def build_artifact_path(
    artifacts_dir: str | Path,
    tracking_number: str,
    request_id: str,
    attempt: int,
    stage: str,
    artifact_type: ArtifactType,
) -> Path:
    """
    Build the artifact file path per naming convention.

    Convention: {tracking_number}__{request_id}/attempt_{n}/{stage}_{artifact_type}.{ext}

    Artifacts at the same path are overwritten deterministically.
    Returns a Path object (does not create the file or directory).
    """
    ext = _EXTENSIONS[artifact_type]
    root_name = f"{_safe_segment(tracking_number)}__{_safe_segment(request_id)}"
    return (
        Path(artifacts_dir)
        / root_name
        / f"attempt_{attempt}"
        / f"{_safe_segment(stage)}_{artifact_type}.{ext}"
    )


def _safe_segment(value: str) -> str:
    """Restrict a path segment to [A-Za-z0-9._-]."""
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "_", (value or "").strip())
    return cleaned.strip("._") or "unknown"


def ensure_artifact_dir(path: Path) -> None:
    """Ensure the directory for an artifact path exists."""
    path.parent.mkdir(parents=True, exist_ok=True)


def write_screenshot(path: Path, image_bytes: bytes) -> tuple[int, str]:
    """
    Write screenshot bytes to disk.

    Returns (size_bytes, checksum). May raise OSError on write failure.
    """
    ensure_artifact_dir(path)
    path.write_bytes(image_bytes)
    size = len(image_bytes)
    checksum = hashlib.md5(image_bytes).hexdigest()
    return size, checksum


def _json_default(obj: Any) -> Any:
    """JSON serializer for console timestamps."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_jsonl(path: Path, rows: list[dict]) -> tuple[int, str]:
    """
    Write a list of dicts as JSONL (one JSON object per line, UTF-8).

    Returns (size_bytes, checksum). May raise OSError on write failure.
    """
    ensure_artifact_dir(path)
    lines = []
    for row in rows:
        line = json.dumps(row, default=_json_default, ensure_ascii=False) + "\n"
        lines.append(line)
    content = "".join(lines).encode("utf-8")
    path.write_bytes(content)
    size = len(content)
    checksum = hashlib.md5(content).hexdigest()
    return size, checksum


def write_html_gz(path: Path, html: str) -> tuple[int, str]:
    """
    Write HTML content as gzip-compressed file.

    Returns (size_bytes, checksum). May raise OSError on write failure.
    """
    ensure_artifact_dir(path)
    html_bytes = html.encode("utf-8")
    compressed = gzip.compress(html_bytes)
    path.write_bytes(compressed)
    size = len(compressed)
    checksum = hashlib.md5(compressed).hexdigest()
    return size, checksum
