# mediashelf/services/render.py
# Turns user edits into replacement catalog items.
#   - each edited item is rendered with Pillow, JPEG-encoded and persisted
#   - unedited items, and items whose encode/persist fails, map to themselves
#   - results are keyed by item location, never by full-record equality
from __future__ import annotations

import io
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, Optional, Protocol, Sequence, Tuple

from PIL import Image, ImageOps

from mediashelf.schemas.media import MediaItem
from mediashelf.services.probes import BlobStore

LOGGER = logging.getLogger("mediashelf.render")

RENDERED_MIME_TYPE = "image/jpeg"
DEFAULT_QUALITY = 80


class EditRenderable(Protocol):
    def render(self) -> Image.Image:
        """Return a new raster; the caller closes it."""
        ...


@dataclass(frozen=True)
class ImageEdit:
    """
    Reference EditRenderable: a source image plus ordered operations.
      ("rotate", degrees)           counter-clockwise, canvas expands
      ("mirror",)                   left/right flip
      ("flip",)                     top/bottom flip
      ("crop", (left, top, right, bottom))
    """
    source: Path
    operations: Tuple[tuple, ...] = field(default_factory=tuple)

    def render(self) -> Image.Image:
        with Image.open(self.source) as im:
            out = ImageOps.exif_transpose(im).convert("RGB")
        for op in self.operations:
            out = _apply(out, op)
        return out


def _apply(im: Image.Image, op: tuple) -> Image.Image:
    """Return a new raster with op applied; im is closed either way."""
    name = op[0]
    try:
        if name == "rotate":
            return im.rotate(float(op[1]), expand=True)
        if name == "mirror":
            return ImageOps.mirror(im)
        if name == "flip":
            return ImageOps.flip(im)
        if name == "crop":
            return im.crop(tuple(int(v) for v in op[1]))
        raise ValueError(f"unknown edit operation {name!r}")
    finally:
        im.close()


class RenderMap(Mapping):
    """Ordered original -> result mapping whose keys compare by location only."""

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[MediaItem, MediaItem]] = {}

    def put(self, original: MediaItem, result: MediaItem) -> None:
        self._entries[original.location] = (original, result)

    def __getitem__(self, original: MediaItem) -> MediaItem:
        return self._entries[original.location][1]

    def __contains__(self, original: object) -> bool:
        return isinstance(original, MediaItem) and original.location in self._entries

    def __iter__(self) -> Iterator[MediaItem]:
        return (original for original, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def pairs(self) -> Iterator[Tuple[MediaItem, MediaItem]]:
        return iter(self._entries.values())

    def __repr__(self) -> str:
        return f"RenderMap({[(o.location, r.location) for o, r in self.pairs()]})"


def encode_jpeg(raster: Image.Image, quality: int = DEFAULT_QUALITY) -> bytes:
    buf = io.BytesIO()
    if raster.mode == "RGB":
        raster.save(buf, format="JPEG", quality=quality)
    else:
        with raster.convert("RGB") as rgb:
            rgb.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


class RenderMerger:
    def __init__(self, blobs: BlobStore, quality: int = DEFAULT_QUALITY) -> None:
        self.blobs = blobs
        self.quality = quality

    def render(self,
               current_items: Sequence[MediaItem],
               overlays: Mapping[MediaItem, EditRenderable]) -> RenderMap:
        by_location = {item.location: edit for item, edit in overlays.items()}
        result = RenderMap()
        for item in current_items:
            edit = by_location.get(item.location)
            result.put(item, item if edit is None else self._render_one(item, edit))
        return result

    def _render_one(self, item: MediaItem, edit: EditRenderable) -> MediaItem:
        raster: Optional[Image.Image] = None
        try:
            raster = edit.render()
            data = encode_jpeg(raster, self.quality)
            location = self.blobs.persist(data, RENDERED_MIME_TYPE)
            return MediaItem(
                location=location,
                mime_type=RENDERED_MIME_TYPE,
                taken_at=item.taken_at,
                width=raster.width,
                height=raster.height,
                size=len(data),
                bucket_id=item.bucket_id,
                caption=item.caption,
            )
        except (OSError, ValueError) as e:
            LOGGER.warning("Failed to render %s, using base image: %s", item.location, e)
            return item
        finally:
            if raster is not None:
                raster.close()
