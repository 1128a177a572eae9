"""Persistence of workspace snapshots, exports and release gate reports."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from .config import default_export_dir, default_workspace_path
from .errors import ExportNotFoundError, WorkspaceDecodeError, WorkspaceNotFoundError
from .runs import utc_now
from .workspace import WorkspaceSnapshot, decode_snapshot, encode_snapshot

logger = logging.getLogger(__name__)

EXPORT_PREFIX = "liquid-frames-motion-"
RELEASE_GATE_PREFIX = "liquid-frames-release-gate-"
EXPORT_TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M%S"


def _atomic_write(path: Path, data: str) -> Path:
    """Write ``data`` to ``path`` via a temp file in the same directory and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


def dumps_snapshot(snapshot: WorkspaceSnapshot) -> str:
    return json.dumps(encode_snapshot(snapshot), indent=2, sort_keys=True) + "\n"


def loads_snapshot(text: str, source: str = "<string>") -> WorkspaceSnapshot:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise WorkspaceDecodeError(
            f"Failed to parse workspace snapshot from {source}.\n"
            f"Error: {exc}\n"
            f"The file may be corrupted or not a liquid-frames workspace."
        ) from exc
    return decode_snapshot(payload)


def save_workspace(snapshot: WorkspaceSnapshot, path: Optional[Path] = None) -> Path:
    """Write ``snapshot`` to ``path`` (default workspace path when omitted), atomically."""
    target = Path(path) if path is not None else default_workspace_path()
    _atomic_write(target, dumps_snapshot(snapshot))
    logger.debug("Saved workspace snapshot to %s", target)
    return target


def load_workspace(path: Optional[Path] = None) -> WorkspaceSnapshot:
    """Load a snapshot from ``path``.

    Raises:
        WorkspaceNotFoundError: The file does not exist.
        WorkspaceDecodeError: The file is not a parseable JSON object.
    """
    target = Path(path) if path is not None else default_workspace_path()
    if not target.exists():
        raise WorkspaceNotFoundError(target)
    if not target.is_file():
        raise WorkspaceDecodeError(f"Workspace path is not a file: {target}")
    snapshot = loads_snapshot(target.read_text(encoding="utf-8"), source=str(target))
    logger.debug(
        "Loaded workspace %s (schema v%d, %d profiles, %d runs)",
        target,
        snapshot.schema_version,
        len(snapshot.profiles),
        len(snapshot.run_history),
    )
    return snapshot


def save_text(text: str, path: Path) -> Path:
    target = Path(path)
    _atomic_write(target, text)
    logger.debug("Wrote %d characters to %s", len(text), target)
    return target


def export_path(directory: Optional[Path] = None, when: Optional[datetime] = None) -> Path:
    directory = Path(directory) if directory is not None else default_export_dir()
    stamp = (when or utc_now()).strftime(EXPORT_TIMESTAMP_FORMAT)
    return directory / f"{EXPORT_PREFIX}{stamp}.json"


def release_gate_path(directory: Optional[Path] = None, when: Optional[datetime] = None) -> Path:
    directory = Path(directory) if directory is not None else default_export_dir()
    stamp = (when or utc_now()).strftime(EXPORT_TIMESTAMP_FORMAT)
    return directory / f"{RELEASE_GATE_PREFIX}{stamp}.md"


def latest_export(directory: Optional[Path] = None) -> Optional[Path]:
    """Return the newest workspace export in ``directory`` by file name, if any."""
    directory = Path(directory) if directory is not None else default_export_dir()
    if not directory.is_dir():
        return None
    candidates = sorted(
        entry
        for entry in directory.iterdir()
        if entry.is_file()
        and entry.suffix.lower() == ".json"
        and entry.name.startswith(EXPORT_PREFIX)
    )
    return candidates[-1] if candidates else None


def load_latest_export(directory: Optional[Path] = None) -> Tuple[Path, WorkspaceSnapshot]:
    directory = Path(directory) if directory is not None else default_export_dir()
    path = latest_export(directory)
    if path is None:
        raise ExportNotFoundError(directory)
    return path, load_workspace(path)
