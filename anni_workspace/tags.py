"""Merge rules for tag import (commit time) and tag apply (publish time).

Without ``force`` a field that already holds a non-empty value wins over the
incoming one; with ``force`` every non-empty incoming value overwrites.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from .descriptor import AlbumDescriptor
from .errors import MalformedDescriptor
from .models import ExtractedAlbumInfo

logger = logging.getLogger(__name__)

EXTRACTED_FIELDS = ("title", "catalog", "release_date", "edition")
ALBUM_FIELDS = ("title", "edition", "artist", "catalog", "release_date")
DISC_FIELDS = ("title", "catalog", "artist")
TRACK_FIELDS = ("title", "artist")
DEFAULT_TYPE = "normal"


def _merge_field(target: Any, name: str, incoming: Optional[str], force: bool) -> bool:
    if not incoming:
        return False
    current = getattr(target, name)
    if current == incoming:
        return False
    if current and not force:
        return False
    try:
        setattr(target, name, incoming)
    except ValidationError as exc:
        raise MalformedDescriptor(f"rejected {name} {incoming!r}: {exc.errors()[0].get('msg')}") from exc
    return True


def merge_extracted(descriptor: AlbumDescriptor, info: ExtractedAlbumInfo, *, force: bool = False) -> list[str]:
    changed = []
    for name in EXTRACTED_FIELDS:
        if _merge_field(descriptor, name, getattr(info, name), force):
            changed.append(name)
    return changed


def merge_descriptor(target: AlbumDescriptor, staged: AlbumDescriptor, *, force: bool = False) -> list[str]:
    if staged.album_id != target.album_id:
        raise MalformedDescriptor(
            f"staged tags belong to {staged.album_id}, not {target.album_id}"
        )
    changed = [name for name in ALBUM_FIELDS if _merge_field(target, name, getattr(staged, name), force)]
    if staged.type != DEFAULT_TYPE and (force or target.type == DEFAULT_TYPE) and staged.type != target.type:
        target.type = staged.type
        changed.append("type")
    new_tags = [tag for tag in staged.tags if tag not in target.tags]
    if new_tags:
        target.tags = [*target.tags, *new_tags]
        changed.append("tags")

    if len(staged.discs) > len(target.discs):
        logger.warning(
            "Staged tags for %s describe %d disc(s), album has %d; extra discs ignored",
            target.album_id,
            len(staged.discs),
            len(target.discs),
        )
    for disc_index, (disc, staged_disc) in enumerate(zip(target.discs, staged.discs), start=1):
        for name in DISC_FIELDS:
            if _merge_field(disc, name, getattr(staged_disc, name), force):
                changed.append(f"discs[{disc_index}].{name}")
        if len(staged_disc.tracks) > len(disc.tracks):
            logger.warning(
                "Staged tags for %s disc %d describe %d track(s), disc has %d",
                target.album_id,
                disc_index,
                len(staged_disc.tracks),
                len(disc.tracks),
            )
        for track_index, (track, staged_track) in enumerate(zip(disc.tracks, staged_disc.tracks), start=1):
            for name in TRACK_FIELDS:
                if _merge_field(track, name, getattr(staged_track, name), force):
                    changed.append(f"discs[{disc_index}].tracks[{track_index}].{name}")
    return changed
