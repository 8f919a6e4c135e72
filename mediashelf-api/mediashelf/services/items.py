# mediashelf/services/items.py
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from mediashelf.repositories.media_index import IndexQueryError, ItemRow
from mediashelf.schemas.media import ALL_MEDIA_BUCKET_ID, MediaItem, MediaKind
from mediashelf.services.probes import MediaIndexQuery, PermissionChecker
from mediashelf.utils.locators import path_to_locator

LOGGER = logging.getLogger("mediashelf.items")


def oriented_dimensions(orientation: int, width: int, height: int) -> Tuple[int, int]:
    """The index stores sensor dimensions; anything but 0/180 degrees is on its side."""
    if orientation in (0, 180):
        return width, height
    return height, width


def row_to_item(row: ItemRow, bucket_id: str) -> MediaItem:
    width, height = oriented_dimensions(row.orientation, row.width, row.height)
    return MediaItem(
        location=path_to_locator(row.path),
        mime_type=row.mime_type,
        taken_at=row.taken_at,
        width=width,
        height=height,
        size=row.size,
        bucket_id=bucket_id,
    )


class BucketItemResolver:
    def __init__(self, index: MediaIndexQuery, permissions: PermissionChecker) -> None:
        self.index = index
        self.permissions = permissions

    def _query(self, kind: MediaKind, bucket_id: str) -> List[MediaItem]:
        bucket_filter = None if bucket_id == ALL_MEDIA_BUCKET_ID else bucket_id
        return [row_to_item(row, bucket_id) for row in self.index.query_items(kind, bucket_filter)]

    def list_items(self, bucket_id: str) -> List[MediaItem]:
        """Images and videos of one bucket (or of every bucket), newest first."""
        if not self.permissions.has_read_access():
            return []
        try:
            images = self._query(MediaKind.IMAGE, bucket_id)
            videos = self._query(MediaKind.VIDEO, bucket_id)
        except IndexQueryError:
            LOGGER.exception("Listing bucket %s failed; returning no items", bucket_id)
            return []
        # Each kind is sorted on its own; interleave them. sorted() is stable.
        return sorted(images + videos, key=lambda item: item.taken_at, reverse=True)

    def most_recent_item(self) -> Optional[MediaItem]:
        """Newest image across all buckets."""
        if not self.permissions.has_read_access():
            return None
        try:
            images = self._query(MediaKind.IMAGE, ALL_MEDIA_BUCKET_ID)
        except IndexQueryError:
            LOGGER.exception("Most recent item lookup failed")
            return None
        return images[0] if images else None
