from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class DiscView:
    index: int
    path: Path
    cover: Optional[Path] = None
    tracks: List[Path] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.tracks

    def to_record(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "path": str(self.path),
            "cover": str(self.cover) if self.cover else None,
            "tracks": [str(track) for track in self.tracks],
            "empty": self.empty,
        }


@dataclass(slots=True)
class UntrackedAlbum:
    """Scan-time view of an album directory that has not been committed yet."""

    path: Path
    discs: List[DiscView] = field(default_factory=list)
    pending_id: Optional[str] = None

    @property
    def track_count(self) -> int:
        return sum(len(disc.tracks) for disc in self.discs)

    def problems(self) -> List[str]:
        if not self.discs:
            return ["no discs found"]
        return [f"disc {disc.index} has no tracks" for disc in self.discs if disc.empty]


@dataclass(slots=True)
class TrackedAlbumSummary:
    album_id: str
    path: Path
    title: str
    catalog: str
    published: bool = False

    def to_record(self) -> Dict[str, Any]:
        return {
            "state": "tracked",
            "album_id": self.album_id,
            "path": str(self.path),
            "title": self.title,
            "catalog": self.catalog,
            "published": self.published,
        }


@dataclass(slots=True)
class UntrackedAlbumSummary:
    path: Path
    discs: List[DiscView] = field(default_factory=list)
    pending_id: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        return {
            "state": "untracked",
            "album_id": self.pending_id,
            "path": str(self.path),
            "discs": [disc.to_record() for disc in self.discs],
        }


AlbumSummary = TrackedAlbumSummary | UntrackedAlbumSummary


@dataclass(slots=True)
class ExtractedAlbumInfo:
    title: Optional[str] = None
    catalog: Optional[str] = None
    release_date: Optional[str] = None
    edition: Optional[str] = None
    disc_count: Optional[int] = None


@dataclass(slots=True)
class PublishReport:
    album_id: str
    destination: Path
    dry_run: bool = False
    copied: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)

    def to_record(self) -> Dict[str, Any]:
        return {
            "album_id": self.album_id,
            "destination": str(self.destination),
            "dry_run": self.dry_run,
            "copied": [str(path) for path in self.copied],
            "skipped": [str(path) for path in self.skipped],
            "removed": [str(path) for path in self.removed],
        }
