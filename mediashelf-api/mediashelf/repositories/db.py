# mediashelf/repositories/db.py
import sqlite3
from pathlib import Path
from typing import Optional

from mediashelf.core.config import DB_PATH


def get_conn(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """
    Create a read connection with row access by column name.
    Caller is responsible for closing (use contextlib.closing(get_conn())).
    """
    conn = sqlite3.connect(db_path or DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA busy_timeout=5000;")
    return conn


def init_schema(conn: sqlite3.Connection, schema_sql: str) -> None:
    """Apply schema.sql (idempotent: every statement is IF NOT EXISTS)."""
    conn.executescript(schema_sql)
    conn.commit()
