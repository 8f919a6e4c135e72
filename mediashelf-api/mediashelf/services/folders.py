# mediashelf/services/folders.py
# Folder listing: one index scan per media kind, merged by bucket id, plus the
# synthetic CAMERA and ALL_MEDIA entries.
#
# Final order: [CAMERA?, ALL_MEDIA?, ...titled folders by title (case-insensitive)]
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Optional

from mediashelf.repositories.media_index import FolderRow, IndexQueryError
from mediashelf.schemas.media import ALL_MEDIA_BUCKET_ID, FolderKind, MediaFolder, MediaKind
from mediashelf.services.probes import CameraPathProvider, MediaIndexQuery, PermissionChecker
from mediashelf.utils.locators import path_to_locator

LOGGER = logging.getLogger("mediashelf.folders")


@dataclass(frozen=True)
class FolderSummary:
    bucket_id: str
    title: Optional[str]
    thumbnail: str
    count: int = 0


@dataclass(frozen=True)
class KindScan:
    folders: Mapping[str, FolderSummary]
    camera_bucket_id: Optional[str] = None
    thumbnail: Optional[str] = None
    thumbnail_taken_at: int = 0


def scan_kind(rows: Iterable[FolderRow], camera_path: str) -> KindScan:
    """
    Fold one kind's rows (title asc, taken_at desc) into per-bucket summaries.
    The first row of a bucket is its newest, so it becomes the thumbnail.
    Rows without a bucket id belong to no folder and are skipped.
    """
    folders: Dict[str, FolderSummary] = {}   # local accumulator, never shared
    camera_bucket_id: Optional[str] = None
    thumbnail: Optional[str] = None
    thumbnail_taken_at = 0

    for row in rows:
        if row.bucket_id is None:
            continue
        locator = path_to_locator(row.path)
        current = folders.get(row.bucket_id) or FolderSummary(row.bucket_id, row.title, locator)
        folders[row.bucket_id] = replace(current, count=current.count + 1)

        if camera_bucket_id is None and row.path.startswith(camera_path):
            camera_bucket_id = row.bucket_id

        if thumbnail is None or row.taken_at > thumbnail_taken_at:
            thumbnail = locator
            thumbnail_taken_at = row.taken_at

    return KindScan(folders, camera_bucket_id, thumbnail, thumbnail_taken_at)


def merge_folder_maps(first: Mapping[str, FolderSummary],
                      second: Mapping[str, FolderSummary]) -> Dict[str, FolderSummary]:
    """Union by bucket id; a bucket seen by both keeps first's fields and sums counts."""
    merged = dict(first)
    for bucket_id, summary in second.items():
        existing = merged.get(bucket_id)
        if existing is None:
            merged[bucket_id] = summary
        else:
            merged[bucket_id] = replace(existing, count=existing.count + summary.count)
    return merged


def pick_global_thumbnail(images: KindScan, videos: KindScan) -> Optional[str]:
    """Newest thumbnail across kinds; the image kind keeps exact ties."""
    if images.thumbnail is None or videos.thumbnail_taken_at > images.thumbnail_taken_at:
        return videos.thumbnail
    return images.thumbnail


class FolderAggregator:
    def __init__(self,
                 index: MediaIndexQuery,
                 permissions: PermissionChecker,
                 camera: CameraPathProvider,
                 all_media_title: str = "All media") -> None:
        self.index = index
        self.permissions = permissions
        self.camera = camera
        self.all_media_title = all_media_title

    def list_folders(self) -> List[MediaFolder]:
        if not self.permissions.has_read_access():
            return []
        try:
            return self._list_folders()
        except IndexQueryError:
            LOGGER.exception("Folder listing failed; returning no folders")
            return []

    def _list_folders(self) -> List[MediaFolder]:
        camera_path = self.camera.camera_directory_path()
        images = scan_kind(self.index.query_folders(MediaKind.IMAGE), camera_path)
        videos = scan_kind(self.index.query_folders(MediaKind.VIDEO), camera_path)
        folders = merge_folder_maps(images.folders, videos.folders)

        camera_bucket_id = images.camera_bucket_id if images.camera_bucket_id is not None else videos.camera_bucket_id
        camera_folder = folders.pop(camera_bucket_id, None) if camera_bucket_id is not None else None

        listed = sorted(
            (MediaFolder(thumbnail=f.thumbnail, title=f.title, item_count=f.count,
                         bucket_id=f.bucket_id, kind=FolderKind.NORMAL)
             for f in folders.values() if f.title is not None),
            key=lambda folder: folder.title.lower(),
        )

        thumbnail = pick_global_thumbnail(images, videos)
        if thumbnail is not None:
            total = sum(folder.item_count for folder in listed)
            if camera_folder is not None:
                total += camera_folder.count
            listed.insert(0, MediaFolder(thumbnail=thumbnail, title=self.all_media_title,
                                         item_count=total, bucket_id=ALL_MEDIA_BUCKET_ID,
                                         kind=FolderKind.ALL_MEDIA))

        if camera_folder is not None:
            listed.insert(0, MediaFolder(thumbnail=camera_folder.thumbnail, title=camera_folder.title,
                                         item_count=camera_folder.count,
                                         bucket_id=camera_folder.bucket_id, kind=FolderKind.CAMERA))

        LOGGER.debug("listed %d folders (camera=%s)", len(listed), camera_bucket_id)
        return listed
