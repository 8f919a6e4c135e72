# mediashelf/schemas/media.py
from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# Bucket id of the synthetic folder that spans every bucket
ALL_MEDIA_BUCKET_ID = "org.mediashelf.ALL_MEDIA"


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class FolderKind(str, Enum):
    NORMAL = "normal"
    CAMERA = "camera"
    ALL_MEDIA = "all_media"


class MediaItem(BaseModel):
    """
    One catalog entry. Immutable: corrections go through model_copy(update=...).
    width/height 0 and size <= 0 mean "unknown".
    """
    model_config = ConfigDict(frozen=True)

    location: str
    mime_type: str
    taken_at: int = 0
    width: int = 0
    height: int = 0
    size: int = 0
    bucket_id: Optional[str] = None
    caption: Optional[str] = None

    @property
    def is_populated(self) -> bool:
        return self.width > 0 and self.height > 0 and self.size > 0


class MediaFolder(BaseModel):
    model_config = ConfigDict(frozen=True)

    thumbnail: Optional[str] = None
    title: Optional[str] = None
    item_count: int
    bucket_id: str
    kind: FolderKind = FolderKind.NORMAL


# ---- render API ----

class EditOperation(BaseModel):
    op: Literal["rotate", "mirror", "flip", "crop"]
    degrees: float = 0.0
    box: Optional[List[int]] = Field(default=None, min_length=4, max_length=4)  # left, top, right, bottom

    def as_tuple(self) -> tuple:
        if self.op == "rotate":
            return ("rotate", self.degrees)
        if self.op == "crop":
            if self.box is None:
                raise ValueError("crop needs a box")
            return ("crop", tuple(self.box))
        return (self.op,)


class EditRequest(BaseModel):
    location: str
    operations: List[EditOperation] = Field(default_factory=list)


class RenderRequest(BaseModel):
    items: List[MediaItem]
    edits: List[EditRequest] = Field(default_factory=list)


class RenderedPair(BaseModel):
    original: MediaItem
    result: MediaItem
