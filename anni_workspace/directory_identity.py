from __future__ import annotations

import re
import unicodedata
from pathlib import Path
from typing import Optional

DISC_FOLDER_PATTERN = re.compile(
    r"^\s*(?:disc|disk|cd)[\s._-]*(?P<num>\d{1,3})(?:\b.*)?$", re.IGNORECASE
)


def looks_like_disc_folder(name: str) -> bool:
    return disc_number(name) is not None


def disc_number(name: str) -> Optional[int]:
    match = DISC_FOLDER_PATTERN.match(unicodedata.normalize("NFKC", name))
    if not match:
        return None
    return int(match.group("num"))


def disc_directories(album_root: Path) -> list[Path]:
    """Disc subdirectories of album_root ordered by disc number, then name."""
    discs: list[tuple[int, str, Path]] = []
    for entry in album_root.iterdir():
        if entry.name.startswith("."):
            continue
        number = disc_number(entry.name)
        if number is None or not entry.is_dir():
            continue
        discs.append((number, entry.name, entry))
    discs.sort(key=lambda item: (item[0], item[1]))
    return [path for _, _, path in discs]


def canonical_disc_name(index: int) -> str:
    return str(index)


def canonical_track_name(index: int, suffix: str, width: int = 2) -> str:
    return f"{index:0{width}d}{suffix.lower()}"


def safe_label(value: str) -> str:
    cleaned = unicodedata.normalize("NFKC", value).strip()
    cleaned = re.sub(r"[\\/:*?\"<>|]+", "-", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip(" .")
