# mediashelf/services/repository.py
# Asynchronous front door of the catalog.
#
# Every operation runs start-to-finish on one thread of a bounded pool and
# completes its Future exactly once. An optional callback gets the same
# result on the worker thread before the Future resolves. Nothing is
# cancelled and nothing raises through a Future: failures degrade to the
# operation's empty result.
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, List, Mapping, Optional, Sequence, TypeVar

from mediashelf.core.config import SETTINGS, CatalogSettings
from mediashelf.repositories.media_index import SqliteMediaIndex
from mediashelf.schemas.media import MediaFolder, MediaItem
from mediashelf.services.blobs import LocalBlobStore
from mediashelf.services.folders import FolderAggregator
from mediashelf.services.items import BucketItemResolver
from mediashelf.services.populate import MetadataCompleter
from mediashelf.services.probes import (
    ConfiguredCameraPath,
    FileResourceProbe,
    PathPermissionChecker,
    PermissionChecker,
)
from mediashelf.services.render import EditRenderable, RenderMap, RenderMerger

LOGGER = logging.getLogger("mediashelf.repository")

T = TypeVar("T")
Callback = Callable[[Any], None]


class MediaRepository:
    def __init__(self,
                 folders: FolderAggregator,
                 items: BucketItemResolver,
                 completer: MetadataCompleter,
                 renderer: RenderMerger,
                 max_workers: int = 4) -> None:
        self.folders = folders
        self.items = items
        self.completer = completer
        self.renderer = renderer
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mediashelf")

    @classmethod
    def from_settings(cls,
                      settings: CatalogSettings = SETTINGS,
                      permissions: Optional[PermissionChecker] = None) -> "MediaRepository":
        """Wire the SQLite index, blob store and file probes described by settings."""
        index = SqliteMediaIndex(settings.db_path)
        permissions = permissions or PathPermissionChecker(settings.db_path, settings.media_root)
        blobs = LocalBlobStore(settings.blob_dir)
        return cls(
            folders=FolderAggregator(index, permissions, ConfiguredCameraPath(settings.camera_dir),
                                     all_media_title=settings.all_media_title),
            items=BucketItemResolver(index, permissions),
            completer=MetadataCompleter(blobs, FileResourceProbe(settings.blob_dir), permissions),
            renderer=RenderMerger(blobs, quality=settings.render_quality),
            max_workers=settings.max_workers,
        )

    # ---- plumbing ----
    def _submit(self,
                name: str,
                work: Callable[[], T],
                fallback: Callable[[], T],
                callback: Optional[Callback]) -> "Future[T]":
        def run() -> T:
            try:
                result = work()
            except Exception:
                # collaborator bug; the Future still completes
                LOGGER.exception("%s failed; completing with fallback result", name)
                result = fallback()
            if callback is not None:
                try:
                    callback(result)
                except Exception:
                    LOGGER.exception("%s callback raised", name)
            return result

        return self._pool.submit(run)

    # ---- operations ----
    def get_folders(self, callback: Optional[Callback] = None) -> "Future[List[MediaFolder]]":
        """Folders that contain media: [camera?, all media?, ...by title]."""
        return self._submit("get_folders", self.folders.list_folders, list, callback)

    def get_media_in_bucket(self, bucket_id: str,
                            callback: Optional[Callback] = None) -> "Future[List[MediaItem]]":
        """Images and videos in a bucket (or ALL_MEDIA_BUCKET_ID), newest first."""
        return self._submit("get_media_in_bucket", lambda: self.items.list_items(bucket_id), list, callback)

    def get_populated_media(self, media: Sequence[MediaItem],
                            callback: Optional[Callback] = None) -> "Future[Sequence[MediaItem]]":
        """Fill in width/height/size wherever it can be found."""
        return self._submit("get_populated_media", lambda: self.completer.populate(media),
                            lambda: media, callback)

    def get_most_recent_item(self, callback: Optional[Callback] = None) -> "Future[Optional[MediaItem]]":
        return self._submit("get_most_recent_item", self.items.most_recent_item, lambda: None, callback)

    def render_media(self, current_media: Sequence[MediaItem],
                     edits: Mapping[MediaItem, EditRenderable],
                     callback: Optional[Callback] = None) -> "Future[RenderMap]":
        def identity() -> RenderMap:
            out = RenderMap()
            for item in current_media:
                out.put(item, item)
            return out

        return self._submit("render_media", lambda: self.renderer.render(current_media, edits),
                            identity, callback)

    # ---- lifecycle ----
    def close(self) -> None:
        self._pool.shutdown(wait=True)

    def __enter__(self) -> "MediaRepository":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
