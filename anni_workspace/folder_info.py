"""Best-effort album metadata from folder names.

Recognized form::

    [YYMMDD][CATALOG] Title【Edition】[N Discs]

The date accepts ``YYMMDD``, ``YYYYMMDD``, ``YYYY-MM-DD``, ``YYYY.MM.DD``,
``YYYY-MM`` and ``YYYY``. Edition may use 【】 or （）. Edition and disc count
are optional. Anything else yields ``None``.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Optional

from .models import ExtractedAlbumInfo

logger = logging.getLogger(__name__)

FOLDER_PATTERN = re.compile(
    r"^\[(?P<date>[^\]]+)\]\s*\[(?P<catalog>[^\]]+)\]\s*(?P<title>.+?)"
    r"(?:\s*[【（](?P<edition>[^】）]+)[】）])?"
    r"(?:\s*\[(?P<discs>\d+)\s*Discs?\])?\s*$",
    re.IGNORECASE,
)
SHORT_DATE = re.compile(r"^(?P<y>\d{2})(?P<m>\d{2})(?P<d>\d{2})$")
LONG_DATE = re.compile(r"^(?P<y>\d{4})(?:[-.]?(?P<m>\d{2})(?:[-.]?(?P<d>\d{2}))?)?$")
CENTURY_PIVOT = 50


def parse_release_date(value: str) -> Optional[str]:
    value = value.strip()
    match = SHORT_DATE.match(value)
    if match:
        short_year = int(match.group("y"))
        year = 2000 + short_year if short_year < CENTURY_PIVOT else 1900 + short_year
        month, day = match.group("m"), match.group("d")
    else:
        match = LONG_DATE.match(value)
        if not match:
            return None
        year = int(match.group("y"))
        month, day = match.group("m"), match.group("d")
    if month is None:
        return f"{year:04d}"
    if day is None:
        if not 1 <= int(month) <= 12:
            return None
        return f"{year:04d}-{month}"
    try:
        return dt.date(year, int(month), int(day)).isoformat()
    except ValueError:
        return None


def parse_folder_name(name: str) -> Optional[ExtractedAlbumInfo]:
    match = FOLDER_PATTERN.match(name.strip())
    if not match:
        return None
    release_date = parse_release_date(match.group("date"))
    if release_date is None:
        logger.debug("Folder %r has an unrecognized date", name)
        return None
    title = match.group("title").strip()
    catalog = match.group("catalog").strip()
    if not title or not catalog:
        return None
    edition = match.group("edition")
    discs = match.group("discs")
    return ExtractedAlbumInfo(
        title=title,
        catalog=catalog,
        release_date=release_date,
        edition=edition.strip() if edition else None,
        disc_count=int(discs) if discs else None,
    )


class FolderNameExtractor:
    def extract(self, folder_name: str) -> Optional[ExtractedAlbumInfo]:
        return parse_folder_name(folder_name)
