# mediashelf/services/probes.py
# Collaborator interfaces used by the catalog services, plus the reference
# implementations wired up in production.
from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

from mediashelf.repositories.media_index import FolderRow, ItemRow
from mediashelf.schemas.media import MediaKind
from mediashelf.services import metadata
from mediashelf.utils.locators import locator_to_path


class PermissionChecker(Protocol):
    def has_read_access(self) -> bool: ...


class CameraPathProvider(Protocol):
    def camera_directory_path(self) -> str: ...


class MediaIndexQuery(Protocol):
    def query_folders(self, kind: MediaKind) -> List[FolderRow]: ...

    def query_items(self, kind: MediaKind, bucket_id: Optional[str]) -> List[ItemRow]: ...


class LocalAuthorityResolver(Protocol):
    def is_local(self, locator: str) -> bool: ...

    def size_of(self, locator: str) -> Optional[int]: ...


class GenericResourceProbe(Protocol):
    def resource_size(self, locator: str) -> int: ...

    def dimensions_of(self, mime_type: str, locator: str) -> Tuple[int, int]: ...

    def metadata_query(self, locator: str) -> Optional[int]: ...


class BlobStore(Protocol):
    def persist(self, data: bytes, mime_type: str) -> str: ...


# -------------------- reference implementations --------------------

class StaticPermission:
    def __init__(self, allowed: bool = True) -> None:
        self.allowed = allowed

    def has_read_access(self) -> bool:
        return self.allowed


class PathPermissionChecker:
    """Read access means: the index file and the media root are both readable."""
    def __init__(self, db_path: Path, media_root: Path) -> None:
        self.db_path = db_path
        self.media_root = media_root

    def has_read_access(self) -> bool:
        return os.access(self.db_path, os.R_OK) and os.access(self.media_root, os.R_OK)


class ConfiguredCameraPath:
    def __init__(self, path: str) -> None:
        self.path = path

    def camera_directory_path(self) -> str:
        return self.path


class FileResourceProbe:
    """
    GenericResourceProbe over the local filesystem.
    blob_dir lets it follow blob: locators too.
    """
    def __init__(self, blob_dir: Optional[Path] = None) -> None:
        self.blob_dir = blob_dir

    def _path(self, locator: str) -> Path:
        return locator_to_path(locator, self.blob_dir)

    def resource_size(self, locator: str) -> int:
        # length of the readable stream, not st_size
        with self._path(locator).open("rb") as f:
            return f.seek(0, os.SEEK_END)

    def dimensions_of(self, mime_type: str, locator: str) -> Tuple[int, int]:
        path = self._path(locator)
        if mime_type.startswith("video/"):
            return metadata.video_dimensions(path)
        return metadata.image_dimensions(path)

    def metadata_query(self, locator: str) -> Optional[int]:
        return metadata.byte_size(metadata.read_metadata(self._path(locator)))
