# mediashelf/api/routes/catalog.py
# Endpoints over the media catalog:
# - GET  /api/folders
# - GET  /api/folders/{bucket_id}/media
# - GET  /api/media/recent
# - POST /api/media/populate
# - POST /api/media/render
# - GET  /blob/{name}
# - GET  /thumb/blob/{name}
# - GET  /thumb/index?path=
# Routes stay thin: they await repository futures and guard file paths.
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

from mediashelf.core.config import CatalogSettings
from mediashelf.schemas.media import (
    MediaFolder,
    MediaItem,
    RenderedPair,
    RenderRequest,
)
from mediashelf.services.render import ImageEdit
from mediashelf.services.repository import MediaRepository
from mediashelf.utils.http import safe_rel_under
from mediashelf.utils.locators import locator_to_path
from mediashelf.utils.thumbs import serve_or_build_thumb

api_router = APIRouter(tags=["catalog"])     # mounted under /api in main
public_router = APIRouter(tags=["catalog-public"])  # mounted without prefix in main


def _repository(request: Request) -> MediaRepository:
    return request.app.state.repository


def _settings(request: Request) -> CatalogSettings:
    return request.app.state.settings


def _checked_file(base: Path, target: Path) -> Path:
    """Resolve target, refusing anything outside base or missing."""
    abs_path = target.resolve()
    if safe_rel_under(base, abs_path) is None:
        raise HTTPException(status_code=403, detail="forbidden path")
    if not abs_path.is_file():
        raise HTTPException(status_code=404, detail="file not found")
    return abs_path


def _edit_source(settings: CatalogSettings, location: str) -> Path:
    """Edits may only read catalog media or our own blobs."""
    path = locator_to_path(location, settings.blob_dir)
    for base in (settings.media_root, settings.blob_dir):
        if safe_rel_under(base, path) is not None:
            return _checked_file(base, path)
    raise HTTPException(status_code=403, detail=f"cannot edit {location}")


# ===========================
# ========== API ============
# ===========================

@api_router.get("/folders", response_model=List[MediaFolder])
async def list_folders(request: Request) -> List[MediaFolder]:
    return await asyncio.wrap_future(_repository(request).get_folders())


@api_router.get("/folders/{bucket_id}/media", response_model=List[MediaItem])
async def list_bucket_media(request: Request, bucket_id: str) -> List[MediaItem]:
    return await asyncio.wrap_future(_repository(request).get_media_in_bucket(bucket_id))


@api_router.get("/media/recent", response_model=Optional[MediaItem])
async def most_recent(request: Request) -> Optional[MediaItem]:
    return await asyncio.wrap_future(_repository(request).get_most_recent_item())


@api_router.post("/media/populate", response_model=List[MediaItem])
async def populate(request: Request, items: List[MediaItem]) -> List[MediaItem]:
    out = await asyncio.wrap_future(_repository(request).get_populated_media(items))
    return list(out)


@api_router.post("/media/render", response_model=List[RenderedPair])
async def render(request: Request, body: RenderRequest) -> List[RenderedPair]:
    settings = _settings(request)
    by_location = {item.location: item for item in body.items}
    edits = {}
    for edit in body.edits:
        item = by_location.get(edit.location)
        if item is None:
            raise HTTPException(status_code=400, detail=f"edit for unknown item {edit.location}")
        try:
            operations = tuple(op.as_tuple() for op in edit.operations)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        edits[item] = ImageEdit(source=_edit_source(settings, edit.location), operations=operations)

    rendered = await asyncio.wrap_future(_repository(request).render_media(body.items, edits))
    return [RenderedPair(original=o, result=r) for o, r in rendered.pairs()]


# ==============================
# ======== PUBLIC FILES ========
# ==============================

@public_router.get("/blob/{name}")
def get_blob(request: Request, name: str):
    """Serve a rendered blob."""
    blob_dir = _settings(request).blob_dir
    return FileResponse(_checked_file(blob_dir, blob_dir / name))


@public_router.get("/thumb/blob/{name}")
def get_blob_thumb(request: Request, name: str, h: int = 220):
    settings = _settings(request)
    abs_path = _checked_file(settings.blob_dir, settings.blob_dir / name)
    return serve_or_build_thumb(settings.thumb_dir, abs_path, h)


@public_router.get("/thumb/index")
def get_index_thumb(request: Request, path: str, h: int = 220):
    """Thumbnail for a catalog file; path must live under the media root."""
    settings = _settings(request)
    abs_path = _checked_file(settings.media_root, Path(path))
    return serve_or_build_thumb(settings.thumb_dir, abs_path, h)
