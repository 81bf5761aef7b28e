# main.py
# Entry point for the web service.
# - Builds the FastAPI app around one read-only Settings instance
# - Registers the scan route (POST /scan)
# - Provides root health-check endpoint
# - Run with: fileinfo web
from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from .api import scan_router
from .config.settings import Settings


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(
        title="File Info Scan API",
        description="Magic, ssdeep, TRiD, exiftool and apkfile metadata for one uploaded file",
        version=settings.version,
    )
    app.state.settings = settings

    @app.get("/")
    def root():
        return {"status": "healthy", "version": settings.version_string}

    app.include_router(scan_router)
    return app
