import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Optional

import pytest
from PIL import Image

from mediashelf.repositories.db import init_schema

REPO_ROOT = Path(__file__).resolve().parents[1]
SCHEMA_SQL = (REPO_ROOT / "db" / "schema.sql").read_text(encoding="utf-8")


@pytest.fixture
def index_db(tmp_path: Path):
    """Empty media index; returns (db_path, insert) where insert(**row) adds a row."""
    db_path = tmp_path / "index.sqlite3"
    with closing(sqlite3.connect(db_path)) as conn:
        init_schema(conn, SCHEMA_SQL)

    def insert(**row) -> None:
        cols = ", ".join(row)
        marks = ", ".join("?" for _ in row)
        with closing(sqlite3.connect(db_path)) as conn:
            conn.execute(f"INSERT INTO media_index ({cols}) VALUES ({marks})", list(row.values()))
            conn.commit()

    return db_path, insert


@pytest.fixture
def jpeg_file(tmp_path: Path):
    """Write a JPEG of the given size under tmp_path and return its path."""
    def _make(name: str = "photo.jpg", size=(40, 30), exif_orientation: Optional[int] = None) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        im = Image.new("RGB", size, (10, 120, 200))
        if exif_orientation is None:
            im.save(path, format="JPEG")
        else:
            exif = Image.Exif()
            exif[0x0112] = exif_orientation
            im.save(path, format="JPEG", exif=exif.tobytes())
        return path

    return _make
