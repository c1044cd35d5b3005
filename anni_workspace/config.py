from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import WorkspaceConfigError

MARKER_DIR = ".anni-workspace"
CONFIG_FILE = "config.yaml"
TAGS_DIR = "tags"
DEFAULT_LIBRARY_DIR = "library"


class WorkspaceSettings(BaseModel):
    audio_extensions: List[str] = Field(
        default_factory=lambda: [".flac", ".mp3", ".m4a", ".ogg", ".opus", ".wav"]
    )
    image_extensions: List[str] = Field(
        default_factory=lambda: [".jpg", ".jpeg", ".png", ".webp"]
    )
    publish_root: Optional[Path] = None
    publish_layout: Literal["uuid", "catalog"] = "uuid"
    write_audio_tags: bool = True
    track_number_width: int = Field(default=2, ge=1, le=4)

    @field_validator("audio_extensions", "image_extensions", mode="before")
    @classmethod
    def _normalize_extensions(cls, values: List[str]) -> List[str]:
        normalized = []
        for value in values or []:
            ext = str(value).strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        return normalized

    @field_validator("publish_root", mode="before")
    @classmethod
    def _expand_publish_root(cls, value: Optional[str | Path]) -> Optional[Path]:
        if value is None:
            return None
        return Path(value).expanduser()

    @classmethod
    def load(cls, path: Path) -> "WorkspaceSettings":
        try:
            with path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh)
        except OSError as exc:
            raise WorkspaceConfigError(f"Cannot read {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise WorkspaceConfigError(f"Invalid YAML in {path}: {exc}") from exc
        try:
            return cls.model_validate(raw or {})
        except ValidationError as exc:
            raise WorkspaceConfigError(f"Invalid settings in {path}: {exc}") from exc

    def resolve_publish_root(self, workspace_root: Path) -> Path:
        if self.publish_root is None:
            return workspace_root / MARKER_DIR / DEFAULT_LIBRARY_DIR
        if self.publish_root.is_absolute():
            return self.publish_root
        return workspace_root / self.publish_root


def find_config(workspace_root: Path) -> Optional[Path]:
    candidate = workspace_root / MARKER_DIR / CONFIG_FILE
    if candidate.is_file():
        return candidate
    return None
