"""Album lifecycle: create -> commit -> import/apply tags -> publish.

Filesystem side effects are not rolled back. A commit that fails halfway keeps
the files it already moved together with its journal, and the next commit of
the same album picks up where it stopped. Callers must serialize operations
on a given album themselves.
"""

from __future__ import annotations

import errno
import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from .descriptor import (
    DESCRIPTOR_FILE,
    AlbumDescriptor,
    DiscDescriptor,
    TrackDescriptor,
    read_descriptor,
    write_descriptor,
)
from .directory_identity import canonical_disc_name, canonical_track_name
from .errors import AlreadyExists, NotTracked, ValidationRejected, WorkspaceIOError
from .fs_utils import atomic_write_text, copy_file_atomic, move_file, remove_empty_dirs
from .journal import CommitJournal, MoveEntry, MoveState, move_state
from .models import PublishReport, UntrackedAlbum
from .protocols import AcceptAllValidator, AlbumValidator, MetadataExtractor
from .publisher import AlbumPublisher
from .scanner import WorkspaceScanner
from .tagging import TagWriter, track_tags
from .tags import merge_descriptor, merge_extracted
from .workspace import ALBUM_ID_FILE, Workspace

logger = logging.getLogger(__name__)

COVER_STEM = "cover"


class AlbumLifecycle:
    def __init__(
        self,
        workspace: Workspace,
        scanner: Optional[WorkspaceScanner] = None,
        tag_writer: Optional[TagWriter] = None,
    ) -> None:
        self.workspace = workspace
        self.scanner = scanner or WorkspaceScanner(workspace)
        self.tag_writer = tag_writer or TagWriter()

    # -- create ---------------------------------------------------------

    def create(self, album_path: Path | str, disc_count: int = 1) -> AlbumDescriptor:
        path = self._resolve_album(album_path)
        disc_count = max(1, int(disc_count or 0))
        existing = self.workspace.tracked_descriptor(path)
        if existing is not None:
            raise AlreadyExists(path, existing.album_id)
        pending = self.workspace.pending_descriptor(path)

        created: list[Path] = []
        try:
            missing = [p for p in (path, *path.parents) if not p.exists()]
            for directory in reversed(missing):
                directory.mkdir()
                created.append(directory)
            for index in range(1, disc_count + 1):
                disc_dir = path / f"Disc {index}"
                if not disc_dir.exists():
                    disc_dir.mkdir()
                    created.append(disc_dir)
            if pending is not None:
                descriptor = pending
                if len(descriptor.discs) < disc_count:
                    descriptor.discs = [
                        *descriptor.discs,
                        *(DiscDescriptor() for _ in range(disc_count - len(descriptor.discs))),
                    ]
                    write_descriptor(path / DESCRIPTOR_FILE, descriptor)
                logger.info("Album %s already created as %s", path, descriptor.album_id)
            else:
                descriptor = AlbumDescriptor.skeleton(str(uuid.uuid4()), disc_count)
                write_descriptor(path / DESCRIPTOR_FILE, descriptor)
                logger.info("Created album %s (%s) with %d disc(s)", path, descriptor.album_id, disc_count)
        except OSError as exc:
            self._remove_created(created)
            raise WorkspaceIOError("create album", path, exc) from exc
        except WorkspaceIOError:
            self._remove_created(created)
            raise
        return descriptor

    # -- commit ---------------------------------------------------------

    def prepare_commit(self, album_path: Path | str) -> UntrackedAlbum:
        path = self._resolve_album(album_path)
        self._require_directory(path)
        existing = self.workspace.tracked_descriptor(path)
        if existing is not None:
            raise AlreadyExists(path, existing.album_id)
        return self.scanner.inspect_album(path)

    def commit(
        self,
        album_path: Path | str,
        validator: Optional[AlbumValidator] = None,
        extractor: Optional[MetadataExtractor] = None,
        force: bool = False,
    ) -> AlbumDescriptor:
        path = self._resolve_album(album_path)
        self._require_directory(path)
        existing = self.workspace.tracked_descriptor(path)
        if existing is not None:
            logger.info("Album %s is already committed as %s", path, existing.album_id)
            CommitJournal(album_id=existing.album_id).delete(path)
            if extractor is not None:
                self.import_tags(path, extractor, force=force)
                existing = read_descriptor(path / DESCRIPTOR_FILE)
            return existing

        journal = CommitJournal.load(path)
        if journal is None:
            album = self.scanner.inspect_album(path)
            problems = album.problems()
            if problems:
                raise ValidationRejected(path, "; ".join(problems))
            if not (validator or AcceptAllValidator()).validate(album):
                raise ValidationRejected(path, "validator declined the album")
            pending = self.workspace.pending_descriptor(path)
            album_id = pending.album_id if pending else str(uuid.uuid4())
            journal = self.plan_moves(album, album_id)
            self._preflight(path, journal)
            journal.save(path)
            logger.info("Committing %s as %s (%d file(s))", path, album_id, len(journal.entries))
        else:
            logger.info("Resuming commit of %s as %s", path, journal.album_id)

        self._execute(path, journal)
        self._ensure_album_cover(path, journal)
        descriptor = self._committed_descriptor(path, journal)
        write_descriptor(path / DESCRIPTOR_FILE, descriptor)
        marker = path / ALBUM_ID_FILE
        try:
            atomic_write_text(marker, f"{descriptor.album_id}\n")
        except OSError as exc:
            raise WorkspaceIOError("write album id", marker, exc) from exc
        journal.delete(path)
        self._cleanup_sources(path, journal)
        logger.info("Committed %s (%s)", path, descriptor.album_id)

        if extractor is not None:
            self.import_tags(path, extractor, force=force)
            descriptor = read_descriptor(path / DESCRIPTOR_FILE)
        return descriptor

    def plan_moves(self, album: UntrackedAlbum, album_id: str) -> CommitJournal:
        journal = CommitJournal(album_id=album_id)
        base_width = self.workspace.settings.track_number_width
        for disc in album.discs:
            disc_dir = Path(canonical_disc_name(disc.index))
            width = max(base_width, len(str(len(disc.tracks))))
            if disc.cover is not None:
                journal.entries.append(
                    MoveEntry(
                        source=disc.cover.relative_to(album.path),
                        destination=disc_dir / f"{COVER_STEM}{disc.cover.suffix.lower()}",
                        disc=disc.index,
                        kind="cover",
                    )
                )
            for number, track in enumerate(disc.tracks, start=1):
                journal.entries.append(
                    MoveEntry(
                        source=track.relative_to(album.path),
                        destination=disc_dir / canonical_track_name(number, track.suffix, width),
                        disc=disc.index,
                    )
                )
            journal.track_counts.append(len(disc.tracks))
        return journal

    def _preflight(self, album_path: Path, journal: CommitJournal) -> None:
        for entry in journal.entries:
            state = move_state(album_path, entry)
            if state is MoveState.CONFLICT:
                raise ValidationRejected(
                    album_path, f"{entry.destination} already exists and differs from {entry.source}"
                )
            if state is MoveState.MISSING:
                raise ValidationRejected(album_path, f"{entry.source} disappeared")

    def _execute(self, album_path: Path, journal: CommitJournal) -> None:
        for entry in journal.entries:
            source = album_path / entry.source
            destination = album_path / entry.destination
            state = move_state(album_path, entry)
            if state is MoveState.DONE:
                logger.debug("Already moved %s", destination)
                continue
            if state is MoveState.CONFLICT:
                raise WorkspaceIOError(
                    "move",
                    source,
                    FileExistsError(errno.EEXIST, "destination exists with different content", str(destination)),
                )
            if state is MoveState.MISSING:
                raise WorkspaceIOError(
                    "move",
                    source,
                    FileNotFoundError(errno.ENOENT, "neither source nor destination exists", str(destination)),
                )
            try:
                if state is MoveState.DUPLICATE:
                    source.unlink()
                    logger.debug("Removed duplicate %s (already at %s)", source, destination)
                    continue
                move_file(source, destination)
            except OSError as exc:
                raise WorkspaceIOError("move", source, exc) from exc
            logger.info("Moved %s -> %s", source, destination)

    def _ensure_album_cover(self, album_path: Path, journal: CommitJournal) -> None:
        image_exts = set(self.workspace.settings.image_extensions)
        for ext in image_exts:
            if (album_path / f"{COVER_STEM}{ext}").is_file():
                return
        first_cover = next(
            (entry for entry in journal.entries if entry.kind == "cover" and entry.disc == 1), None
        )
        if first_cover is None:
            return
        source = album_path / first_cover.destination
        target = album_path / first_cover.destination.name
        try:
            copy_file_atomic(source, target)
        except OSError as exc:
            raise WorkspaceIOError("copy cover", source, exc) from exc

    def _committed_descriptor(self, album_path: Path, journal: CommitJournal) -> AlbumDescriptor:
        pending = self.workspace.pending_descriptor(album_path)
        if pending is not None and pending.album_id == journal.album_id:
            descriptor = pending
        else:
            descriptor = AlbumDescriptor(album_id=journal.album_id)
        discs = []
        for index, count in enumerate(journal.track_counts):
            disc = descriptor.discs[index] if index < len(descriptor.discs) else DiscDescriptor()
            tracks = disc.tracks[:count]
            tracks.extend(TrackDescriptor() for _ in range(count - len(tracks)))
            disc.tracks = tracks
            discs.append(disc)
        descriptor.discs = discs
        return descriptor

    def _cleanup_sources(self, album_path: Path, journal: CommitJournal) -> None:
        source_dirs = {entry.source.parent for entry in journal.entries}
        for relative in sorted(source_dirs, key=lambda p: len(p.parts), reverse=True):
            if relative == Path("."):
                continue
            remove_empty_dirs(album_path / relative, album_path)

    # -- tags -----------------------------------------------------------

    def import_tags(self, album_path: Path | str, extractor: MetadataExtractor, force: bool = False) -> list[str]:
        path = self._resolve_album(album_path)
        descriptor = self._require_tracked(path)
        info = extractor.extract(path.name)
        if info is None:
            logger.info("No metadata extracted from folder name %r", path.name)
            return []
        changed = merge_extracted(descriptor, info, force=force)
        if changed:
            write_descriptor(path / DESCRIPTOR_FILE, descriptor)
            logger.info("Imported %s into %s", ", ".join(changed), descriptor.album_id)
        else:
            logger.debug("Nothing to import into %s", descriptor.album_id)
        return changed

    def apply_tags(self, album_path: Path | str, force: bool = False) -> list[str]:
        path = self._resolve_album(album_path)
        descriptor = self._require_tracked(path)
        return self._apply_tags(path, descriptor, force)

    def _apply_tags(self, album_path: Path, descriptor: AlbumDescriptor, force: bool) -> list[str]:
        staged_path = self.workspace.staged_tags_path(descriptor.album_id)
        changed: list[str] = []
        if staged_path.is_file():
            staged = read_descriptor(staged_path, album_id=descriptor.album_id)
            changed = merge_descriptor(descriptor, staged, force=force)
            if changed:
                write_descriptor(album_path / DESCRIPTOR_FILE, descriptor)
                logger.info("Applied %d staged change(s) to %s", len(changed), descriptor.album_id)
        else:
            logger.debug("No staged tags for %s", descriptor.album_id)
        if self.workspace.settings.write_audio_tags:
            self._write_audio_tags(album_path, descriptor)
        return changed

    def _write_audio_tags(self, album_path: Path, descriptor: AlbumDescriptor) -> None:
        audio_exts = set(self.workspace.settings.audio_extensions)
        for disc_index, disc in enumerate(descriptor.discs, start=1):
            disc_dir = album_path / canonical_disc_name(disc_index)
            try:
                files = sorted(
                    (p for p in disc_dir.iterdir() if p.is_file() and p.suffix.lower() in audio_exts),
                    key=lambda p: p.name,
                )
            except OSError as exc:
                raise WorkspaceIOError("list disc", disc_dir, exc) from exc
            if len(files) != len(disc.tracks):
                logger.warning(
                    "Disc %d of %s has %d file(s) but %d described track(s)",
                    disc_index,
                    descriptor.album_id,
                    len(files),
                    len(disc.tracks),
                )
            for track_index, path in enumerate(files[: len(disc.tracks)], start=1):
                self.tag_writer.apply(path, track_tags(descriptor, disc_index, track_index))

    # -- publish --------------------------------------------------------

    def publish(self, album_path: Path | str, dry_run: bool = False) -> PublishReport:
        path = self._resolve_album(album_path)
        descriptor = self._require_tracked(path)
        # Tags are applied before the dry-run check, so a dry run still updates the workspace copy.
        self._apply_tags(path, descriptor, force=False)
        return AlbumPublisher(self.workspace).publish(path, descriptor, dry_run=dry_run)

    # -- helpers --------------------------------------------------------

    def _resolve_album(self, album_path: Path | str) -> Path:
        path = self.workspace.album_path(album_path)
        root = self.workspace.root
        if path == root or root not in path.parents or self.workspace.marker_dir in (path, *path.parents):
            raise ValidationRejected(path, f"not an album location inside workspace {root}")
        return path

    @staticmethod
    def _require_directory(path: Path) -> None:
        if not path.is_dir():
            raise WorkspaceIOError(
                "open album", path, FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path))
            )

    def _require_tracked(self, path: Path) -> AlbumDescriptor:
        descriptor = self.workspace.tracked_descriptor(path)
        if descriptor is None:
            raise NotTracked(path)
        return descriptor

    @staticmethod
    def _remove_created(created: list[Path]) -> None:
        for path in reversed(created):
            try:
                if path.is_dir():
                    for child in path.iterdir():
                        if child.is_file():
                            child.unlink()
                    path.rmdir()
            except OSError as exc:
                logger.warning("Failed to clean up %s: %s", path, exc)
