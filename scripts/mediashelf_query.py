#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
MediaShelf: catalog inspection CLI

Examples:
  # Folder list exactly as the app shows it (camera, all media, then by title)
  python scripts/mediashelf_query.py folders

  # Items of one bucket, newest first
  python scripts/mediashelf_query.py items --bucket 1028075469 --limit 20

  # Everything, across buckets
  python scripts/mediashelf_query.py items --all

  # Fill in missing width/height/size for a bucket and show what changed
  python scripts/mediashelf_query.py populate --bucket 1028075469 -v

  # Newest image
  python scripts/mediashelf_query.py recent

  # Point at another config / index
  python scripts/mediashelf_query.py --config ~/mediashelf.toml --db /tmp/index.sqlite3 folders
"""

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from mediashelf.core.config import CatalogSettings, load_config_toml
from mediashelf.core.logs import setup_logging
from mediashelf.schemas.media import ALL_MEDIA_BUCKET_ID, MediaItem
from mediashelf.services.probes import StaticPermission
from mediashelf.services.repository import MediaRepository

LOGGER = logging.getLogger("mediashelf.cli")


# ------- tiny table printer (stdlib only) -------

def _stringify(x):
    if x is None:
        return ""
    return str(x)


def print_table(headers: Sequence[str], rows: Sequence[Sequence[object]]) -> None:
    if not rows:
        print("(no rows)")
        return
    srows = [[_stringify(v) for v in row] for row in rows]
    widths = [max(len(h), *(len(r[i]) for r in srows)) for i, h in enumerate(headers)]

    def fmt_row(vals):
        return "  " + " | ".join(v.ljust(widths[i]) for i, v in enumerate(vals))

    print(fmt_row(headers))
    print("  " + "-+-".join("-" * w for w in widths))
    for r in srows:
        print(fmt_row(r))


def human_bytes(n: Optional[int]) -> str:
    if not n or n <= 0:
        return "?"
    step = 1024.0
    units = ["B", "KiB", "MiB", "GiB", "TiB"]
    s = float(n)
    for u in units:
        if s < step or u == units[-1]:
            return f"{s:.0f}{u}" if u == "B" else f"{s:.1f}{u}"
        s /= step
    return f"{n}B"


def item_row(m: MediaItem) -> list:
    dims = f"{m.width}x{m.height}" if m.width and m.height else "?"
    return [m.taken_at, m.mime_type, dims, human_bytes(m.size), m.location]


ITEM_HEADERS = ["taken_at", "mime", "dims", "size", "location"]


# ------- commands -------

def cmd_folders(repo: MediaRepository, args) -> None:
    folders = repo.get_folders().result()
    print_table(["kind", "title", "count", "bucket_id", "thumbnail"],
                [[f.kind.value, f.title, f.item_count, f.bucket_id, f.thumbnail] for f in folders])


def _bucket(args) -> str:
    if args.all:
        return ALL_MEDIA_BUCKET_ID
    if not args.bucket:
        raise SystemExit("--bucket <id> or --all is required")
    return args.bucket


def cmd_items(repo: MediaRepository, args) -> None:
    items = repo.get_media_in_bucket(_bucket(args)).result()
    print_table(ITEM_HEADERS, [item_row(m) for m in items[: args.limit]])


def cmd_populate(repo: MediaRepository, args) -> None:
    items = repo.get_media_in_bucket(_bucket(args)).result()[: args.limit]
    populated = repo.get_populated_media(items).result()
    changed = [after for before, after in zip(items, populated) if after is not before]
    LOGGER.info("%d of %d items needed completion", len(changed), len(items))
    print_table(ITEM_HEADERS, [item_row(m) for m in populated])


def cmd_recent(repo: MediaRepository, args) -> None:
    item = repo.get_most_recent_item().result()
    print_table(ITEM_HEADERS, [item_row(item)] if item else [])


# ------- main -------

def build_settings(args) -> CatalogSettings:
    cfg = load_config_toml(Path(args.config).expanduser() if args.config else None)
    paths = dict(cfg.get("paths", {}))
    if args.data_dir:
        paths["data_dir"] = args.data_dir
    if args.db:
        paths["db_path"] = str(Path(args.db).expanduser().resolve())
    cfg["paths"] = paths
    return CatalogSettings(cfg)


def main():
    ap = argparse.ArgumentParser(description="MediaShelf catalog inspection")
    ap.add_argument("--config", help="Path to mediashelf.toml (default: search from CWD)")
    ap.add_argument("--data-dir", help="Override [paths].data_dir")
    ap.add_argument("--db", help="Path to the media index (overrides everything)")
    ap.add_argument("--skip-permission-check", action="store_true",
                    help="Do not require the media root to be readable")
    ap.add_argument("-v", "--verbose", action="count", default=0)
    ap.add_argument("-q", "--quiet", action="store_true")
    ap.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    ap.add_argument("--log-dir", help="Also write rotating logs (mediashelf.log) here")
    ap.add_argument("--json-logs", action="store_true", help="Write the log file as JSON lines")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("folders", help="List folders").set_defaults(func=cmd_folders)

    for name, func, help_text in (
        ("items", cmd_items, "List items of a bucket, newest first"),
        ("populate", cmd_populate, "Complete width/height/size for a bucket's items"),
    ):
        sp = sub.add_parser(name, help=help_text)
        sp.add_argument("--bucket", help="Bucket id")
        sp.add_argument("--all", action="store_true", help="Every bucket (the all-media view)")
        sp.add_argument("--limit", type=int, default=50)
        sp.set_defaults(func=func)

    sub.add_parser("recent", help="Newest image").set_defaults(func=cmd_recent)

    args = ap.parse_args()
    logs_dir = Path(args.log_dir).expanduser() if args.log_dir else None
    setup_logging(logs_dir=logs_dir, verbose=args.verbose, quiet=args.quiet,
                  log_level=args.log_level, json_logs=args.json_logs)

    settings = build_settings(args)
    LOGGER.debug("%r", settings)
    if not settings.db_path.exists():
        raise SystemExit(f"Index not found: {settings.db_path} (run scripts/init_index.py)")

    permissions = StaticPermission(True) if args.skip_permission_check else None
    with MediaRepository.from_settings(settings, permissions=permissions) as repo:
        args.func(repo, args)


if __name__ == "__main__":
    main()
