# mediashelf/main.py: only app wiring, no endpoints here.
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mediashelf.api.routes import catalog
from mediashelf.core.config import SETTINGS, CatalogSettings
from mediashelf.services.repository import MediaRepository


def create_app(repository: Optional[MediaRepository] = None,
               settings: CatalogSettings = SETTINGS) -> FastAPI:
    repository = repository or MediaRepository.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        repository.close()

    app = FastAPI(title="MediaShelf API", version="0.1", lifespan=lifespan)
    app.state.repository = repository
    app.state.settings = settings

    # CORS (allow Vite dev)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routers
    app.include_router(catalog.api_router, prefix="/api")

    # public (non-API) routers for serving blobs/thumbs
    app.include_router(catalog.public_router)
    return app


app = create_app()
