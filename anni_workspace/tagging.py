from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from mutagen import MutagenError
from mutagen.flac import FLAC
from mutagen.id3 import ID3, ID3NoHeaderError, TALB, TDRC, TIT2, TPE1, TPE2, TPOS, TRCK
from mutagen.mp4 import MP4

from .descriptor import AlbumDescriptor
from .errors import WorkspaceIOError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TrackTags:
    title: str
    artist: Optional[str]
    album: str
    album_artist: Optional[str]
    date: Optional[str]
    track_number: int
    track_total: int
    disc_number: int
    disc_total: int


def album_display_title(descriptor: AlbumDescriptor) -> str:
    if descriptor.edition:
        return f"{descriptor.title}【{descriptor.edition}】"
    return descriptor.title


def track_tags(descriptor: AlbumDescriptor, disc_index: int, track_index: int) -> TrackTags:
    """Tags for the 1-based track of the 1-based disc, inheriting artist from disc and album."""
    disc = descriptor.discs[disc_index - 1]
    track = disc.tracks[track_index - 1]
    return TrackTags(
        title=track.title,
        artist=track.artist or disc.artist or descriptor.artist or None,
        album=disc.title or album_display_title(descriptor),
        album_artist=descriptor.artist or None,
        date=descriptor.release_date,
        track_number=track_index,
        track_total=len(disc.tracks),
        disc_number=disc_index,
        disc_total=len(descriptor.discs),
    )


class TagWriter:
    """Writes album descriptor metadata into the common tagging formats."""

    SUPPORTED_EXTS = {".mp3", ".flac", ".m4a"}

    def apply(self, path: Path, tags: TrackTags) -> None:
        handlers = {
            ".mp3": self._apply_mp3,
            ".flac": self._apply_flac,
            ".m4a": self._apply_mp4,
        }
        handler = handlers.get(path.suffix.lower())
        if not handler:
            logger.debug("Skipping unsupported extension %s", path)
            return
        try:
            handler(path, tags)
        except (MutagenError, OSError) as exc:
            raise WorkspaceIOError("write tags to", path, exc) from exc
        logger.debug("Updated tags for %s", path)

    def _apply_flac(self, path: Path, tags: TrackTags) -> None:
        audio = FLAC(path)
        mapping: Dict[str, Optional[str]] = {
            "TITLE": tags.title,
            "ARTIST": tags.artist,
            "ALBUM": tags.album,
            "ALBUMARTIST": tags.album_artist,
            "DATE": tags.date,
            "TRACKNUMBER": str(tags.track_number),
            "TRACKTOTAL": str(tags.track_total),
            "DISCNUMBER": str(tags.disc_number),
            "DISCTOTAL": str(tags.disc_total),
        }
        for key, value in mapping.items():
            if value:
                audio[key] = value
        audio.save()

    def _apply_mp3(self, path: Path, tags: TrackTags) -> None:
        try:
            id3 = ID3(path)
        except ID3NoHeaderError:
            id3 = ID3()
        self._set_frame(id3, TIT2, tags.title)
        self._set_frame(id3, TPE1, tags.artist)
        self._set_frame(id3, TALB, tags.album)
        self._set_frame(id3, TPE2, tags.album_artist)
        self._set_frame(id3, TDRC, tags.date)
        self._set_frame(id3, TRCK, f"{tags.track_number}/{tags.track_total}")
        self._set_frame(id3, TPOS, f"{tags.disc_number}/{tags.disc_total}")
        id3.save(path)

    def _apply_mp4(self, path: Path, tags: TrackTags) -> None:
        audio = MP4(path)
        mapping = {
            "\xa9nam": tags.title,
            "\xa9ART": tags.artist,
            "\xa9alb": tags.album,
            "aART": tags.album_artist,
            "\xa9day": tags.date,
        }
        for key, value in mapping.items():
            if value:
                audio[key] = [value]
        audio["trkn"] = [(tags.track_number, tags.track_total)]
        audio["disk"] = [(tags.disc_number, tags.disc_total)]
        audio.save()

    @staticmethod
    def _set_frame(id3: ID3, frame_cls, value: Optional[str]) -> None:
        if value:
            id3.setall(frame_cls.__name__, [frame_cls(encoding=3, text=value)])
