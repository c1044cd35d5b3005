"""Album descriptor model and its two serializations.

The descriptor is persisted as a YAML document (``album.yaml``) inside the album
directory. ``to_json``/``from_json`` give the JSON-compatible projection used at
the API boundary; both directions go through the same pydantic validation so a
document that parses is always one that formats back to the same fields.
"""

from __future__ import annotations

import datetime as dt
import json
import re
import uuid
from pathlib import Path
from typing import Any, List, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import MalformedDescriptor, WorkspaceIOError
from .fs_utils import atomic_write_text

DESCRIPTOR_FILE = "album.yaml"

AlbumType = Literal["normal", "instrumental", "absolute", "drama", "radio", "vocal"]

RELEASE_DATE_PATTERN = re.compile(r"^\d{4}(?:-(0[1-9]|1[0-2])(?:-(0[1-9]|[12]\d|3[01]))?)?$")


class TrackDescriptor(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = ""
    artist: Optional[str] = None
    type: Optional[AlbumType] = None
    tags: List[str] = Field(default_factory=list)


class DiscDescriptor(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    catalog: Optional[str] = None
    artist: Optional[str] = None
    type: Optional[AlbumType] = None
    tags: List[str] = Field(default_factory=list)
    tracks: List[TrackDescriptor] = Field(default_factory=list)


class AlbumDescriptor(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    album_id: str
    title: str = ""
    edition: Optional[str] = None
    artist: str = ""
    catalog: str = ""
    release_date: Optional[str] = None
    type: AlbumType = "normal"
    tags: List[str] = Field(default_factory=list)
    discs: List[DiscDescriptor] = Field(default_factory=list)

    @field_validator("album_id")
    @classmethod
    def _check_album_id(cls, value: str) -> str:
        try:
            return str(uuid.UUID(value))
        except ValueError as exc:
            raise ValueError(f"album_id is not a UUID: {value!r}") from exc

    @field_validator("release_date", mode="before")
    @classmethod
    def _check_release_date(cls, value: Any) -> Optional[str]:
        # YAML turns unquoted 2020-01-02 into a date and 2020 into an int.
        if value is None:
            return None
        if isinstance(value, dt.date):
            return value.isoformat()
        if isinstance(value, int) and not isinstance(value, bool):
            value = f"{value:04d}"
        if not isinstance(value, str) or not RELEASE_DATE_PATTERN.match(value):
            raise ValueError(f"release_date must be YYYY, YYYY-MM or YYYY-MM-DD: {value!r}")
        if len(value) == 10:
            try:
                dt.date.fromisoformat(value)
            except ValueError as exc:
                raise ValueError(f"release_date is not a calendar date: {value!r}") from exc
        return value

    @classmethod
    def skeleton(cls, album_id: str, disc_count: int) -> "AlbumDescriptor":
        return cls(
            album_id=album_id,
            discs=[DiscDescriptor() for _ in range(max(1, disc_count))],
        )

    @classmethod
    def from_json(cls, data: Mapping[str, Any] | str, path: Optional[Path] = None) -> "AlbumDescriptor":
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as exc:
                raise MalformedDescriptor(f"invalid JSON: {exc}", path) from exc
        if not isinstance(data, Mapping):
            raise MalformedDescriptor("descriptor must be a mapping", path)
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise MalformedDescriptor(_describe(exc), path) from exc

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def track_count(self) -> int:
        return sum(len(disc.tracks) for disc in self.discs)


def parse_document(
    text: str, path: Optional[Path] = None, album_id: Optional[str] = None
) -> AlbumDescriptor:
    """Parse a descriptor document. album_id fills in a document that omits it."""
    try:
        raw = yaml.safe_load(text)
    except (yaml.YAMLError, ValueError) as exc:
        # Unquoted impossible dates such as 2021-02-30 fail inside the YAML constructor.
        raise MalformedDescriptor(f"invalid YAML: {exc}", path) from exc
    if raw is None:
        raise MalformedDescriptor("descriptor is empty", path)
    if album_id is not None and isinstance(raw, dict):
        raw.setdefault("album_id", album_id)
    return AlbumDescriptor.from_json(raw, path)


def format_document(descriptor: AlbumDescriptor) -> str:
    return yaml.safe_dump(
        descriptor.to_json(),
        allow_unicode=True,
        sort_keys=False,
        default_flow_style=False,
    )


def read_descriptor(path: Path, album_id: Optional[str] = None) -> AlbumDescriptor:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise WorkspaceIOError("read descriptor", path, exc) from exc
    return parse_document(text, path, album_id)


def write_descriptor(path: Path, descriptor: AlbumDescriptor) -> None:
    content = format_document(descriptor)
    try:
        atomic_write_text(path, content)
    except OSError as exc:
        raise WorkspaceIOError("write descriptor", path, exc) from exc


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location or '<root>'}: {error.get('msg')}")
    return "; ".join(parts)
