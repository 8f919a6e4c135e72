# mediashelf/core/config.py
# Loads MediaShelf settings from a TOML file (defaults + overrides).
# - Reads MEDIASHELF_CONFIG or searches for mediashelf.toml
# - Relative paths resolve under [paths].data_dir
# - Camera directory defaults to <media_root>/DCIM/Camera
# - Directories are NOT created here; writers create them on first use

from __future__ import annotations
from pathlib import Path
import os
from typing import Optional
import tomli as tomllib  # py3.11+: tomllib in stdlib; using tomli for compatibility


# -------------------- Defaults (used if TOML omits keys) --------------------
_DEFAULTS = {
    "paths": {
        "data_dir": "data",
        "media_root": "/storage/emulated/0",
        "blob_subdir": "blobs",
        "thumb_subdir": "thumb-cache",
        # optional DB pieces; see "Database path" section below
        # "db_path": "/abs/or/relative.sqlite3"
        # "db_subdir": "db",
        # "db_file":   "index.sqlite3",
    },
    "catalog": {
        "camera_dir": "",               # empty => <media_root>/DCIM/Camera
        "all_media_title": "All media",
        "render_quality": 80,           # JPEG quality for rendered edits
    },
    "executor": {
        "max_workers": 4,
    },
}


# -------------------- Read + merge TOML --------------------

def _find_config_path() -> Optional[Path]:
    """Find mediashelf.toml without user input.
    Priority:
      1) MEDIASHELF_CONFIG
      2) ./mediashelf.toml (CWD)
      3) ascend parents from CWD looking for mediashelf.toml
      4) mediashelf.toml next to this file
    """
    cfg_env = os.getenv("MEDIASHELF_CONFIG")
    if cfg_env:
        p = Path(cfg_env).expanduser()
        if p.exists():
            return p

    cur = Path.cwd()
    while True:
        candidate = cur / "mediashelf.toml"
        if candidate.exists():
            return candidate
        if cur.parent == cur:
            break  # reached filesystem root
        cur = cur.parent

    local_default = Path(__file__).with_name("mediashelf.toml")
    if local_default.exists():
        return local_default

    return None


def load_config_toml(path: Optional[Path] = None) -> dict:
    """Load TOML from `path` (or the best match) or return {} if not found."""
    path = path or _find_config_path()
    if path and path.exists():
        with path.open("rb") as f:
            return tomllib.load(f)
    return {}


def _under(base: Path, value: str) -> Path:
    p = Path(value).expanduser()
    return p if p.is_absolute() else (base / p)


class CatalogSettings:
    """
    Resolved settings for one catalog instance.
    Built from a raw TOML dict merged over _DEFAULTS; tests build their own
    from a dict instead of touching the process-wide file.
    """
    def __init__(self, cfg: Optional[dict] = None) -> None:
        cfg = cfg or {}
        paths = {**_DEFAULTS["paths"], **cfg.get("paths", {})}
        catalog = {**_DEFAULTS["catalog"], **cfg.get("catalog", {})}
        executor = {**_DEFAULTS["executor"], **cfg.get("executor", {})}

        self.data_dir: Path = Path(paths["data_dir"]).expanduser().resolve()
        self.media_root: Path = Path(paths["media_root"]).expanduser()
        self.blob_dir: Path = _under(self.data_dir, paths["blob_subdir"]).resolve()
        self.thumb_dir: Path = _under(self.data_dir, paths["thumb_subdir"]).resolve()

        # -------------------- Database path --------------------
        # Either [paths] db_path, or db_subdir + db_file under data_dir.
        db_path_cfg = paths.get("db_path")
        if db_path_cfg:
            db_path = _under(self.data_dir, db_path_cfg)
        else:
            db_path = self.data_dir / paths.get("db_subdir", "db") / paths.get("db_file", "index.sqlite3")
        self.db_path: Path = db_path.resolve()

        camera_dir = str(catalog.get("camera_dir") or "").strip()
        self.camera_dir: str = camera_dir or str(self.media_root / "DCIM" / "Camera")
        self.all_media_title: str = str(catalog.get("all_media_title", "All media"))
        self.render_quality: int = int(catalog.get("render_quality", 80))

        self.max_workers: int = max(1, int(executor.get("max_workers", 4)))

    def __repr__(self) -> str:
        return (
            f"CatalogSettings(data_dir={self.data_dir}, media_root={self.media_root}, "
            f"db_path={self.db_path}, blob_dir={self.blob_dir}, thumb_dir={self.thumb_dir}, "
            f"camera_dir={self.camera_dir}, all_media_title={self.all_media_title!r}, "
            f"render_quality={self.render_quality}, max_workers={self.max_workers})"
        )


SETTINGS = CatalogSettings(load_config_toml())

# Default index location for get_conn() and scripts/init_index.py
DB_PATH = SETTINGS.db_path
