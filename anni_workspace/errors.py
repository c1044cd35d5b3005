"""Errors raised by workspace operations."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class WorkspaceError(Exception):
    """Base class for every error surfaced by the workspace."""


class WorkspaceNotFound(WorkspaceError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"No workspace found for {path}")
        self.path = path


class WorkspaceConfigError(WorkspaceError):
    """Raised when .anni-workspace/config.yaml cannot be loaded."""


class NotTracked(WorkspaceError):
    def __init__(self, album_path: Path) -> None:
        super().__init__(f"Album {album_path} is not committed")
        self.album_path = album_path


class AlreadyExists(WorkspaceError):
    def __init__(self, album_path: Path, album_id: Optional[str] = None) -> None:
        detail = f" ({album_id})" if album_id else ""
        super().__init__(f"Album {album_path} is already tracked{detail}")
        self.album_path = album_path
        self.album_id = album_id


class ValidationRejected(WorkspaceError):
    def __init__(self, album_path: Path, reason: str) -> None:
        super().__init__(f"Album {album_path} rejected: {reason}")
        self.album_path = album_path
        self.reason = reason


class MalformedDescriptor(WorkspaceError):
    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        prefix = f"{path}: " if path else ""
        super().__init__(f"{prefix}{message}")
        self.path = path


class WorkspaceIOError(WorkspaceError):
    """Wraps an OSError with the operation and file it happened on."""

    def __init__(self, operation: str, path: Path, cause: Optional[Exception] = None) -> None:
        reason = (getattr(cause, "strerror", None) or str(cause)) if cause else "failed"
        super().__init__(f"Failed to {operation} {path}: {reason}")
        self.operation = operation
        self.path = path
        self.cause = cause
