# mediashelf/utils/locators.py
# Locators are opaque strings to the catalog; only these helpers look inside.
#   file:///abs/path.jpg  -> rows coming from the media index
#   blob:<name>           -> files persisted by the blob store
from __future__ import annotations

import urllib.parse
from pathlib import Path
from typing import Optional

BLOB_SCHEME = "blob:"


def path_to_locator(path: str) -> str:
    """Index paths are absolute; relative ones are anchored at the CWD."""
    return Path(path).absolute().as_uri()


def is_blob_locator(locator: str) -> bool:
    return locator.startswith(BLOB_SCHEME)


def blob_name(locator: str) -> str:
    return locator[len(BLOB_SCHEME):]


def locator_to_path(locator: str, blob_dir: Optional[Path] = None) -> Path:
    """
    Map a locator to a filesystem path.
    Raises FileNotFoundError for blob locators when no blob_dir is known, so
    callers treat it like any other unreadable resource.
    """
    if is_blob_locator(locator):
        if blob_dir is None:
            raise FileNotFoundError(f"no blob directory for {locator}")
        return blob_dir / blob_name(locator)
    parsed = urllib.parse.urlparse(locator)
    if parsed.scheme == "file":
        return Path(urllib.parse.unquote(parsed.path))
    return Path(locator)
