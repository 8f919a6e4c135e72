# mediashelf/services/metadata.py
# Low-level readers behind the resource probe: exiftool when it is on PATH,
# Pillow otherwise. Nothing is cached; every call reads the file again.
from __future__ import annotations
from pathlib import Path
from typing import Optional, Tuple
import json, subprocess, shutil

from PIL import Image, ExifTags

# EXIF orientations that rotate the picture by 90/270 degrees
_TRANSPOSED_ORIENTATIONS = {5, 6, 7, 8}
_ORIENTATION_TAG = 0x0112

# Byte-size tags, most specific first (exiftool -G1 groups, then our basics)
_SIZE_KEYS = ("System:FileSize", "File:FileSize", "Basic:Size")
_WIDTH_KEYS = ("Track1:ImageWidth", "QuickTime:ImageWidth", "File:ImageWidth", "Basic:Width")
_HEIGHT_KEYS = ("Track1:ImageHeight", "QuickTime:ImageHeight", "File:ImageHeight", "Basic:Height")


def _has_exiftool() -> bool:
    return shutil.which("exiftool") is not None


def _via_exiftool(p: Path) -> dict:
    """
    Return raw exiftool tags as a flat dict.
    We exclude known huge/binary blobs at the CLI level.
    """
    cmd = [
        "exiftool",
        "-j", "-n", "-G1",
        "-api", "largefilesupport=1",
        "--MakerNotes", "--PreviewImage", "--ThumbnailImage",
        str(p),
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    if proc.returncode != 0:
        raise OSError(proc.stderr.strip() or f"exiftool rc={proc.returncode}")
    try:
        data = json.loads(proc.stdout) or [{}]
    except json.JSONDecodeError as e:
        raise OSError(f"exiftool output for {p} is not JSON: {e}") from e
    row = dict(data[0])
    row.pop("SourceFile", None)
    return {str(k): row[k] for k in row}


def _via_pillow(p: Path) -> dict:
    """Very small, image-only reader; whatever Pillow exposes."""
    out: dict = {}
    with Image.open(p) as im:
        out["Basic:Format"] = im.format
        w, h = im.size
        out["Basic:Width"] = int(w)
        out["Basic:Height"] = int(h)
        raw = im.getexif()
        if raw:
            for tag_id, val in raw.items():
                name = ExifTags.TAGS.get(tag_id, f"EXIF:{tag_id}")
                out[str(name)] = _to_jsonable(val)
    return out


def _to_jsonable(v):
    """Generic: make any value JSON-serializable without special casing fields."""
    if isinstance(v, (str, int, float, bool)) or v is None:
        return v
    try:
        json.dumps(v)
        return v
    except (TypeError, ValueError):
        # Last resort: string form
        return str(v)


def read_metadata(p: Path) -> dict:
    """
    Return all available tags plus basic file stats.
    Raises OSError only when the file cannot be stat'ed; a tag reader that
    chokes on the file leaves an "_error" note next to the basics.
    """
    st = p.stat()
    source = "exiftool" if _has_exiftool() else "pillow"
    try:
        meta = _via_exiftool(p) if source == "exiftool" else _via_pillow(p)
    except OSError as e:
        meta = {"_error": str(e)}
    meta["_source"] = source
    meta.setdefault("Basic:Filename", p.name)
    meta.setdefault("Basic:Size", st.st_size)
    meta.setdefault("Basic:Modified", int(st.st_mtime))
    return meta


def _first_int(meta: dict, keys: Tuple[str, ...]) -> Optional[int]:
    for k in keys:
        v = meta.get(k)
        if isinstance(v, (int, float)) and v > 0:
            return int(v)
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
    return None


def byte_size(meta: dict) -> Optional[int]:
    return _first_int(meta, _SIZE_KEYS)


def image_dimensions(p: Path) -> Tuple[int, int]:
    """Display dimensions of an image: EXIF rotations by 90/270 swap w/h."""
    with Image.open(p) as im:
        w, h = im.size
        orientation = im.getexif().get(_ORIENTATION_TAG, 1)
    if orientation in _TRANSPOSED_ORIENTATIONS:
        return h, w
    return w, h


def video_dimensions(p: Path) -> Tuple[int, int]:
    """Frame size from exiftool; (0, 0) when exiftool is not installed."""
    if not _has_exiftool():
        return 0, 0
    meta = _via_exiftool(p)
    # -n prints "1920 1080", without it "1920x1080"
    parts = str(meta.get("Composite:ImageSize", "")).lower().replace("x", " ").split()
    if len(parts) == 2 and all(part.isdigit() for part in parts):
        return int(parts[0]), int(parts[1])
    return _first_int(meta, _WIDTH_KEYS) or 0, _first_int(meta, _HEIGHT_KEYS) or 0
