# mediashelf/utils/thumbs.py
# Height-bounded JPEG previews for catalog files and rendered blobs.
# Cache entries are keyed on path, mtime and height, so a file replaced in
# place gets a fresh preview.
from pathlib import Path
import hashlib
import io
import logging
from PIL import Image, ImageOps
from fastapi.responses import FileResponse, Response

LOGGER = logging.getLogger("mediashelf.thumbs")

THUMB_QUALITY = 82


def thumb_key(thumb_dir: Path, abs_path: Path, h: int) -> Path:
    mtime = abs_path.stat().st_mtime_ns
    key = hashlib.sha1(f"{abs_path}|{mtime}|h={h}".encode()).hexdigest()
    return thumb_dir / f"{key}.jpg"


def make_thumb_bytes(abs_path: Path, h: int, quality: int = THUMB_QUALITY) -> bytes:
    """Upright preview `h` pixels tall, width scaled to keep the aspect ratio."""
    with Image.open(abs_path) as src:
        upright = ImageOps.exif_transpose(src).convert("RGB")
    with upright:
        w, hh = upright.size
        new_w = max(int(w * h / hh), 1) if hh else w
        with upright.resize((new_w, h)) as small:
            buf = io.BytesIO()
            small.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def serve_or_build_thumb(thumb_dir: Path, abs_path: Path, h: int):
    """
    Serve the cached preview, building it on a miss.
    Files Pillow cannot decode (videos, mostly) are served as-is.
    """
    cache_path = thumb_key(thumb_dir, abs_path, h)
    if cache_path.exists():
        return FileResponse(cache_path, media_type="image/jpeg")
    try:
        img_bytes = make_thumb_bytes(abs_path, h)
    except (OSError, ValueError) as e:
        LOGGER.debug("no preview for %s: %s", abs_path, e)
        return FileResponse(abs_path)
    thumb_dir.mkdir(parents=True, exist_ok=True)
    cache_path.write_bytes(img_bytes)
    return Response(img_bytes, media_type="image/jpeg")
