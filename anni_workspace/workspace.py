from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import MARKER_DIR, TAGS_DIR, WorkspaceSettings, find_config
from .descriptor import DESCRIPTOR_FILE, AlbumDescriptor, read_descriptor
from .errors import MalformedDescriptor, WorkspaceIOError, WorkspaceNotFound

logger = logging.getLogger(__name__)

ALBUM_ID_FILE = ".album-id"


@dataclass(frozen=True)
class Workspace:
    """A located workspace. Passed explicitly to every operation."""

    root: Path
    settings: WorkspaceSettings = field(default_factory=WorkspaceSettings)

    @property
    def marker_dir(self) -> Path:
        return self.root / MARKER_DIR

    @property
    def tags_dir(self) -> Path:
        return self.marker_dir / TAGS_DIR

    @property
    def publish_root(self) -> Path:
        return self.settings.resolve_publish_root(self.root)

    def album_path(self, path: Path | str) -> Path:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.root / candidate
        return candidate.resolve()

    def staged_tags_path(self, album_id: str) -> Path:
        return self.tags_dir / f"{album_id}.yaml"

    def tracked_descriptor(self, album_path: Path) -> Optional[AlbumDescriptor]:
        """Descriptor of a committed album, or None when the album is not tracked.

        An album is tracked only when the id marker exists and names the same
        album as a readable descriptor. A marker next to a broken descriptor is
        reported as MalformedDescriptor.
        """
        marker = album_path / ALBUM_ID_FILE
        try:
            raw_id = marker.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except NotADirectoryError:
            return None
        except OSError as exc:
            raise WorkspaceIOError("read album id", marker, exc) from exc
        try:
            album_id = str(uuid.UUID(raw_id))
        except ValueError:
            logger.warning("Ignoring invalid album id marker %s", marker)
            return None
        descriptor_path = album_path / DESCRIPTOR_FILE
        if not descriptor_path.exists():
            logger.warning("Album id marker without descriptor in %s", album_path)
            return None
        descriptor = read_descriptor(descriptor_path)
        if descriptor.album_id != album_id:
            raise MalformedDescriptor(
                f"album_id {descriptor.album_id} does not match marker {album_id}",
                descriptor_path,
            )
        return descriptor

    def pending_descriptor(self, album_path: Path) -> Optional[AlbumDescriptor]:
        """Skeleton descriptor left by create() on an album that is not committed yet."""
        descriptor_path = album_path / DESCRIPTOR_FILE
        if not descriptor_path.is_file():
            return None
        return read_descriptor(descriptor_path)


def locate(path: Path | str) -> Workspace:
    start = Path(path).expanduser().resolve()
    current = start if start.is_dir() else start.parent
    for candidate in (current, *current.parents):
        if (candidate / MARKER_DIR).is_dir():
            config_path = find_config(candidate)
            settings = WorkspaceSettings.load(config_path) if config_path else WorkspaceSettings()
            logger.debug("Located workspace %s for %s", candidate, start)
            return Workspace(root=candidate, settings=settings)
    raise WorkspaceNotFound(start)


def init_workspace(root: Path | str) -> Workspace:
    """Create the marker directory under root and return the workspace."""
    root_path = Path(root).expanduser().resolve()
    marker = root_path / MARKER_DIR
    try:
        marker.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WorkspaceIOError("create workspace marker", marker, exc) from exc
    return locate(root_path)
