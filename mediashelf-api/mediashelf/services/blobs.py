# mediashelf/services/blobs.py
# Session blob storage for rendered edits. Blobs live flat under blob_dir and
# are addressed by "blob:<name>" locators; this store is also the local
# authority for those locators.
from __future__ import annotations

import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional

from mediashelf.utils.http import safe_rel_under
from mediashelf.utils.locators import BLOB_SCHEME, blob_name, is_blob_locator

LOGGER = logging.getLogger("mediashelf.blobs")

# mimetypes maps image/jpeg to ".jpe" on some platforms
_PREFERRED_EXT = {"image/jpeg": ".jpg", "image/png": ".png", "image/webp": ".webp"}


class LocalBlobStore:
    def __init__(self, blob_dir: Path) -> None:
        self.blob_dir = blob_dir

    def path_for(self, name: str) -> Optional[Path]:
        """Absolute path of a blob name, or None if it escapes blob_dir."""
        target = self.blob_dir / name
        if not name or safe_rel_under(self.blob_dir, target) is None:
            return None
        return target.resolve()

    # ---- BlobStore ----
    def persist(self, data: bytes, mime_type: str) -> str:
        ext = _PREFERRED_EXT.get(mime_type) or mimetypes.guess_extension(mime_type) or ".bin"
        name = f"{uuid.uuid4().hex}{ext}"
        self.blob_dir.mkdir(parents=True, exist_ok=True)
        tmp = self.blob_dir / f".{name}.part"
        try:
            tmp.write_bytes(data)
            tmp.replace(self.blob_dir / name)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        LOGGER.debug("persisted %d bytes as %s", len(data), name)
        return f"{BLOB_SCHEME}{name}"

    # ---- LocalAuthorityResolver ----
    def is_local(self, locator: str) -> bool:
        return is_blob_locator(locator)

    def size_of(self, locator: str) -> Optional[int]:
        """Known size of a local blob; None when the store has no such file."""
        path = self.path_for(blob_name(locator))
        if path is None or not path.is_file():
            return None
        return path.stat().st_size
