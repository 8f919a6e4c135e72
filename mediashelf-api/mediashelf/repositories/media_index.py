# mediashelf/repositories/media_index.py
# Read-only queries against the media_index table (see db/schema.sql).
# One connection per call; no cursor is shared between calls.
from __future__ import annotations

import sqlite3
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from mediashelf.repositories.db import get_conn
from mediashelf.schemas.media import MediaKind


class IndexQueryError(Exception):
    """The media index could not be read."""


@dataclass(frozen=True)
class FolderRow:
    path: str
    bucket_id: Optional[str]
    title: Optional[str]
    taken_at: int


@dataclass(frozen=True)
class ItemRow:
    path: str
    mime_type: str
    taken_at: int
    width: int
    height: int
    size: int
    orientation: int = 0


_FOLDER_SQL = """
  SELECT path, bucket_id, bucket_title, taken_at
  FROM media_index
  WHERE kind = ? AND path IS NOT NULL AND bucket_id IS NOT NULL
  ORDER BY bucket_title COLLATE NOCASE ASC, taken_at DESC
"""

# Videos carry no orientation column.
_ITEM_COLUMNS = {
    MediaKind.IMAGE: "path, mime_type, taken_at, orientation, width, height, size",
    MediaKind.VIDEO: "path, mime_type, taken_at, width, height, size",
}


class SqliteMediaIndex:
    """MediaIndexQuery over a SQLite media_index table."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def _fetch(self, sql: str, params: list) -> List[sqlite3.Row]:
        try:
            with closing(get_conn(self.db_path)) as con:
                return con.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise IndexQueryError(f"{self.db_path}: {e}") from e

    def query_folders(self, kind: MediaKind) -> List[FolderRow]:
        rows = self._fetch(_FOLDER_SQL, [kind.value])
        return [
            FolderRow(
                path=r["path"],
                bucket_id=r["bucket_id"],
                title=r["bucket_title"],
                taken_at=int(r["taken_at"] or 0),
            )
            for r in rows
        ]

    def query_items(self, kind: MediaKind, bucket_id: Optional[str]) -> List[ItemRow]:
        """Rows of one kind, newest first. bucket_id=None spans every bucket."""
        sql = f"SELECT {_ITEM_COLUMNS[kind]} FROM media_index WHERE kind = ? AND path IS NOT NULL"
        params: list = [kind.value]
        if bucket_id is not None:
            sql += " AND bucket_id = ?"
            params.append(bucket_id)
        sql += " ORDER BY taken_at DESC"

        out: List[ItemRow] = []
        for r in self._fetch(sql, params):
            out.append(ItemRow(
                path=r["path"],
                mime_type=r["mime_type"] or "",
                taken_at=int(r["taken_at"] or 0),
                width=int(r["width"] or 0),
                height=int(r["height"] or 0),
                size=int(r["size"] or 0),
                orientation=int(r["orientation"] or 0) if kind is MediaKind.IMAGE else 0,
            ))
        return out
