"""Commit journal.

A commit writes its full move plan next to the album before touching any file.
When a commit is interrupted the journal survives, and re-running the commit
replays it: entries already moved are detected per file and skipped.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import MalformedDescriptor, WorkspaceIOError
from .fs_utils import atomic_write_text, files_identical, path_exists

logger = logging.getLogger(__name__)

JOURNAL_FILE = ".anni-commit.yaml"


class MoveState(enum.Enum):
    PENDING = "pending"
    DONE = "done"
    DUPLICATE = "duplicate"
    CONFLICT = "conflict"
    MISSING = "missing"


@dataclass(slots=True)
class MoveEntry:
    source: Path
    destination: Path
    disc: int
    kind: str = "track"

    def to_record(self) -> Dict[str, Any]:
        return {
            "source": self.source.as_posix(),
            "destination": self.destination.as_posix(),
            "disc": self.disc,
            "kind": self.kind,
        }


@dataclass(slots=True)
class CommitJournal:
    album_id: str
    entries: List[MoveEntry] = field(default_factory=list)
    track_counts: List[int] = field(default_factory=list)

    @staticmethod
    def path_for(album_path: Path) -> Path:
        return album_path / JOURNAL_FILE

    @classmethod
    def load(cls, album_path: Path) -> Optional["CommitJournal"]:
        path = cls.path_for(album_path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise WorkspaceIOError("read commit journal", path, exc) from exc
        try:
            raw = yaml.safe_load(text)
            album_id = str(uuid.UUID(str(raw["album_id"])))
            entries = [
                MoveEntry(
                    source=Path(item["source"]),
                    destination=Path(item["destination"]),
                    disc=int(item["disc"]),
                    kind=str(item.get("kind", "track")),
                )
                for item in raw.get("moves") or []
            ]
            track_counts = [int(count) for count in raw.get("track_counts") or []]
        except (yaml.YAMLError, KeyError, TypeError, ValueError, AttributeError) as exc:
            raise MalformedDescriptor(f"invalid commit journal: {exc}", path) from exc
        return cls(album_id=album_id, entries=entries, track_counts=track_counts)

    def save(self, album_path: Path) -> None:
        path = self.path_for(album_path)
        payload = {
            "album_id": self.album_id,
            "track_counts": list(self.track_counts),
            "moves": [entry.to_record() for entry in self.entries],
        }
        try:
            atomic_write_text(path, yaml.safe_dump(payload, allow_unicode=True, sort_keys=False))
        except OSError as exc:
            raise WorkspaceIOError("write commit journal", path, exc) from exc

    def delete(self, album_path: Path) -> None:
        path = self.path_for(album_path)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise WorkspaceIOError("remove commit journal", path, exc) from exc


def move_state(album_path: Path, entry: MoveEntry) -> MoveState:
    source = album_path / entry.source
    destination = album_path / entry.destination
    source_exists = bool(path_exists(source))
    destination_exists = bool(path_exists(destination))
    if source_exists and not destination_exists:
        return MoveState.PENDING
    if destination_exists and not source_exists:
        return MoveState.DONE
    if not source_exists:
        return MoveState.MISSING
    if source == destination:
        return MoveState.DONE
    if files_identical(source, destination):
        return MoveState.DUPLICATE
    return MoveState.CONFLICT
