from __future__ import annotations

from typing import Optional, Protocol

from .models import ExtractedAlbumInfo, UntrackedAlbum


class AlbumValidator(Protocol):
    def validate(self, album: UntrackedAlbum) -> bool: ...


class MetadataExtractor(Protocol):
    def extract(self, folder_name: str) -> Optional[ExtractedAlbumInfo]: ...


class AcceptAllValidator:
    def validate(self, album: UntrackedAlbum) -> bool:
        return True
