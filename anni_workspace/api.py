"""Path-in, JSON-out entry points for calling processes.

Every function either returns plain data (dicts, lists, strings) or raises a
single ``WorkspaceError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from .descriptor import AlbumDescriptor, format_document, read_descriptor, write_descriptor
from .folder_info import FolderNameExtractor
from .lifecycle import AlbumLifecycle
from .protocols import AcceptAllValidator
from .scanner import WorkspaceScanner
from .workspace import locate

logger = logging.getLogger(__name__)

PathLike = str | Path


def scan(workspace_path: PathLike) -> list[dict[str, Any]]:
    workspace = locate(workspace_path)
    return [summary.to_record() for summary in WorkspaceScanner(workspace).scan()]


def create(workspace_path: PathLike, album_path: PathLike, disc_count: int = 1) -> None:
    workspace = locate(workspace_path)
    AlbumLifecycle(workspace).create(album_path, disc_count)


def prepare_commit(workspace_path: PathLike, album_path: PathLike) -> list[dict[str, Any]]:
    workspace = locate(workspace_path)
    album = AlbumLifecycle(workspace).prepare_commit(album_path)
    return [disc.to_record() for disc in album.discs]


def commit(workspace_path: PathLike, album_path: PathLike) -> None:
    workspace = locate(workspace_path)
    AlbumLifecycle(workspace).commit(
        album_path,
        validator=AcceptAllValidator(),
        extractor=FolderNameExtractor(),
        force=False,
    )


def publish(workspace_path: PathLike, album_path: PathLike, dry_run: bool = False) -> dict[str, Any]:
    workspace = locate(workspace_path)
    report = AlbumLifecycle(workspace).publish(album_path, dry_run=dry_run)
    return report.to_record()


def read_album_file(path: PathLike) -> dict[str, Any]:
    return read_descriptor(Path(path)).to_json()


def write_album_file(path: PathLike, album_json: Mapping[str, Any] | str) -> None:
    target = Path(path)
    descriptor = AlbumDescriptor.from_json(album_json, target)
    write_descriptor(target, descriptor)
    logger.debug("Wrote album %s to %s", descriptor.album_id, target)


def serialize_album(album_json: Mapping[str, Any] | str) -> str:
    return format_document(AlbumDescriptor.from_json(album_json))
