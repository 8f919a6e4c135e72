#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
init_index.py: create an empty MediaShelf media index from db/schema.sql.

Usage (from repo root):
  python scripts/init_index.py                       # DB path from mediashelf.toml
  python scripts/init_index.py --db data/db/index.sqlite3
"""

import argparse
import sqlite3
from contextlib import closing
from pathlib import Path

from mediashelf.core.config import DB_PATH
from mediashelf.repositories.db import init_schema


def repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def main():
    ap = argparse.ArgumentParser(description="Create the MediaShelf media index")
    ap.add_argument("--db", default=str(DB_PATH), help=f"Path to the index (default: {DB_PATH})")
    ap.add_argument("--schema", default=str(repo_root() / "db" / "schema.sql"))
    args = ap.parse_args()

    db_path = Path(args.db).expanduser().resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    existed = db_path.exists()

    with closing(sqlite3.connect(db_path)) as conn:
        init_schema(conn, Path(args.schema).read_text(encoding="utf-8"))

    if existed:
        print("Index already existed; schema ensured at", db_path)
    else:
        print("Index initialized at", db_path)


if __name__ == "__main__":
    main()
