"""Mindweave import API entry point."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mindweave.importer.config import ImportLimits
from mindweave.importer.router import get_import_service
from mindweave.importer.router import router as import_router
from mindweave.importer.service import ImportService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load configuration and wire services."""
    # Load .env from backend/ directory
    load_dotenv(Path(__file__).resolve().parent.parent / ".env")
    logging.basicConfig(level=os.environ.get("MINDWEAVE_LOG_LEVEL", "INFO"))

    limits = ImportLimits()
    import_svc = ImportService(limits)
    app.dependency_overrides[get_import_service] = lambda: import_svc
    logger.info(
        "Import limits: max_upload_bytes=%d parse_timeout_seconds=%g",
        limits.max_upload_bytes,
        limits.parse_timeout_seconds,
    )

    yield

    app.dependency_overrides.pop(get_import_service, None)


app = FastAPI(
    title="Mindweave Import",
    description="Parses exports from other services into previewable notes and links",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("MINDWEAVE_CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(import_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": "0.1.0"}
