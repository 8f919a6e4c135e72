# dev.py: run the MediaShelf API locally with auto-reload.
# ---------------------------------------------------------------
# What you get:
# - GET  /api/folders                       → folder list (camera, all media, then by title)
# - GET  /api/folders/{bucket_id}/media     → items of a bucket, newest first
# - GET  /api/media/recent                  → newest image
# - POST /api/media/populate                → fill in width/height/size
# - POST /api/media/render                  → render edits into new blobs
# - GET  /blob/{name}, /thumb/blob/{name}, /thumb/index?path=
#
# How to run:
#   python -m venv .venv && source .venv/bin/activate
#   pip install -e ".[server]"
#   MEDIASHELF_CONFIG=./mediashelf.toml python mediashelf-api/dev.py

import uvicorn

from mediashelf.core.logs import setup_logging

if __name__ == "__main__":
    setup_logging(verbose=1)
    uvicorn.run("mediashelf.main:app", host="127.0.0.1", port=8000, reload=True)
