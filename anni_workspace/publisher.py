from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .descriptor import AlbumDescriptor
from .directory_identity import safe_label
from .errors import ValidationRejected, WorkspaceIOError
from .fs_utils import copy_file_atomic, files_identical, is_temp_file, remove_empty_dirs
from .journal import JOURNAL_FILE
from .models import PublishReport
from .workspace import ALBUM_ID_FILE, Workspace

logger = logging.getLogger(__name__)


def publish_destination(workspace: Workspace, descriptor: AlbumDescriptor) -> Optional[Path]:
    root = workspace.publish_root
    if workspace.settings.publish_layout == "catalog":
        label = safe_label(descriptor.catalog) if descriptor.catalog else ""
        return root / label if label else None
    album_id = descriptor.album_id
    return root / album_id[0:2] / album_id[2:4] / album_id


class AlbumPublisher:
    """Copies a committed album tree into the library, skipping unchanged files."""

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace

    def publish(self, album_path: Path, descriptor: AlbumDescriptor, dry_run: bool = False) -> PublishReport:
        destination = publish_destination(self.workspace, descriptor)
        if destination is None:
            raise ValidationRejected(album_path, "catalog layout requires a catalog")
        report = PublishReport(album_id=descriptor.album_id, destination=destination, dry_run=dry_run)
        sources = self._source_files(album_path)
        for relative in sources:
            src = album_path / relative
            dst = destination / relative
            try:
                unchanged = dst.is_file() and files_identical(src, dst)
            except OSError as exc:
                raise WorkspaceIOError("compare", dst, exc) from exc
            if unchanged:
                report.skipped.append(relative)
                continue
            report.copied.append(relative)
            if dry_run:
                logger.info("Dry-run would copy %s -> %s", src, dst)
                continue
            try:
                copy_file_atomic(src, dst)
            except OSError as exc:
                raise WorkspaceIOError("copy", src, exc) from exc
            logger.debug("Copied %s -> %s", src, dst)
        keep = set(sources)
        for relative in self._existing_files(destination):
            if relative in keep:
                continue
            report.removed.append(relative)
            if dry_run:
                logger.info("Dry-run would remove stale %s", destination / relative)
                continue
            stale = destination / relative
            try:
                stale.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise WorkspaceIOError("remove", stale, exc) from exc
            remove_empty_dirs(stale.parent, destination)
        logger.info(
            "%s %s -> %s (%d copied, %d unchanged, %d removed)",
            "Dry-run publish" if dry_run else "Published",
            album_path,
            destination,
            len(report.copied),
            len(report.skipped),
            len(report.removed),
        )
        return report

    @staticmethod
    def _source_files(album_path: Path) -> list[Path]:
        files: list[Path] = []
        try:
            for dirpath, dirnames, filenames in os.walk(album_path):
                dirnames[:] = sorted(name for name in dirnames if not name.startswith("."))
                base = Path(dirpath)
                for name in sorted(filenames):
                    if name == JOURNAL_FILE or is_temp_file(Path(name)):
                        continue
                    if name.startswith(".") and name != ALBUM_ID_FILE:
                        continue
                    files.append((base / name).relative_to(album_path))
        except OSError as exc:
            raise WorkspaceIOError("list album", album_path, exc) from exc
        return files

    @staticmethod
    def _existing_files(destination: Path) -> list[Path]:
        if not destination.is_dir():
            return []
        files: list[Path] = []
        for dirpath, _, filenames in os.walk(destination):
            base = Path(dirpath)
            for name in sorted(filenames):
                if is_temp_file(Path(name)):
                    continue
                files.append((base / name).relative_to(destination))
        return files
