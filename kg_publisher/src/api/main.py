"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from .dependencies import install_configured_wallet, reset_dependencies
from .middleware import register_error_handlers
from .routes import graph, publish, spaces, tags
from ..services.config import get_config
from ..services.database import init_database
from ..services.errors import StorageUnavailable

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler to run startup tasks."""
    config = get_config()
    logger.info("Running startup: initializing space registry...")
    try:
        init_database(config.db_path)
        logger.info("Startup complete: registry ready at %s", config.db_path)
    except StorageUnavailable as exc:
        logger.warning("Space registry unavailable, continuing without it: %s", exc.message)
    install_configured_wallet(config)
    yield
    reset_dependencies()


app = FastAPI(
    title="Knowledge Graph Publisher API",
    description="Extract Markdown vault notes and publish them to a knowledge graph",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "app://obsidian.md",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(tags.router, tags=["tags"])
app.include_router(graph.router, tags=["graph"])
app.include_router(publish.router, tags=["publish"])
app.include_router(spaces.router, tags=["spaces"])


@app.get("/health")
async def health():
    """Health check endpoint."""
    config = get_config()
    return {"status": "healthy", "network": config.network.value}


__all__ = ["app"]
