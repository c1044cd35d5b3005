from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Optional

from .directory_identity import disc_directories
from .errors import MalformedDescriptor, WorkspaceIOError
from .journal import CommitJournal
from .models import AlbumSummary, DiscView, TrackedAlbumSummary, UntrackedAlbum, UntrackedAlbumSummary
from .publisher import publish_destination
from .workspace import Workspace

logger = logging.getLogger(__name__)


class WorkspaceScanner:
    """Read-only walk over the first level of a workspace."""

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace
        self._audio_exts = {ext.lower() for ext in workspace.settings.audio_extensions}
        self._image_exts = {ext.lower() for ext in workspace.settings.image_extensions}

    def scan(self) -> list[AlbumSummary]:
        summaries: list[AlbumSummary] = []
        for album_path in self.iter_album_dirs():
            try:
                summary = self._summarize(album_path)
            except FileNotFoundError:
                logger.debug("Album %s vanished during scan", album_path)
                continue
            except WorkspaceIOError as exc:
                if isinstance(exc.cause, FileNotFoundError):
                    logger.debug("Album %s vanished during scan", album_path)
                    continue
                raise
            summaries.append(summary)
        logger.info("Scanned %s: %d album(s)", self.workspace.root, len(summaries))
        return summaries

    def iter_album_dirs(self) -> Iterator[Path]:
        root = self.workspace.root
        library = self.workspace.publish_root.resolve()
        try:
            entries = sorted(root.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            raise WorkspaceIOError("list workspace", root, exc) from exc
        for entry in entries:
            if entry.name.startswith(".") or entry.resolve() == library:
                continue
            try:
                if not entry.is_dir():
                    continue
            except OSError:
                continue
            yield entry

    def inspect_album(self, album_path: Path) -> UntrackedAlbum:
        try:
            disc_dirs = disc_directories(album_path)
        except OSError as exc:
            raise WorkspaceIOError("list album", album_path, exc) from exc
        if not disc_dirs:
            disc_dirs = [album_path]
        discs = [self._inspect_disc(index, path) for index, path in enumerate(disc_dirs, start=1)]
        return UntrackedAlbum(path=album_path, discs=discs, pending_id=self._pending_id(album_path))

    def _summarize(self, album_path: Path) -> AlbumSummary:
        try:
            descriptor = self.workspace.tracked_descriptor(album_path)
        except MalformedDescriptor as exc:
            logger.warning("Treating %s as untracked: %s", album_path, exc)
            descriptor = None
        if descriptor is not None:
            destination = publish_destination(self.workspace, descriptor)
            return TrackedAlbumSummary(
                album_id=descriptor.album_id,
                path=album_path,
                title=descriptor.title,
                catalog=descriptor.catalog,
                published=destination is not None and destination.is_dir(),
            )
        album = self.inspect_album(album_path)
        for disc in album.discs:
            if disc.empty:
                logger.debug("Disc %d of %s has no tracks", disc.index, album_path)
        return UntrackedAlbumSummary(path=album.path, discs=album.discs, pending_id=album.pending_id)

    def _inspect_disc(self, index: int, directory: Path) -> DiscView:
        try:
            files = sorted(
                (entry for entry in directory.iterdir() if not entry.name.startswith(".") and entry.is_file()),
                key=lambda p: p.name,
            )
        except OSError as exc:
            raise WorkspaceIOError("list disc", directory, exc) from exc
        cover: Optional[Path] = None
        tracks: list[Path] = []
        for path in files:
            suffix = path.suffix.lower()
            if suffix in self._image_exts:
                if cover is None:
                    cover = path
                continue
            if suffix in self._audio_exts:
                tracks.append(path)
        return DiscView(index=index, path=directory, cover=cover, tracks=tracks)

    def _pending_id(self, album_path: Path) -> Optional[str]:
        journal = CommitJournal.load(album_path)
        if journal is not None:
            return journal.album_id
        try:
            skeleton = self.workspace.pending_descriptor(album_path)
        except MalformedDescriptor as exc:
            logger.warning("Ignoring unreadable descriptor in %s: %s", album_path, exc)
            return None
        return skeleton.album_id if skeleton else None
