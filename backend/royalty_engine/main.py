"""
Royalty Engine API
FastAPI application for tiered royalty calculation and advance recoupment.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from royalty_engine import config
from royalty_engine.routers import royalties

# Configure logging to output to console
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Royalty Engine API",
    description="Tiered royalty calculation, returns netting and advance recoupment",
    version="0.1.0",
)

# CORS origins are resolved at startup from the environment
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(royalties.router, prefix="/api/royalties", tags=["royalties"])


@app.on_event("startup")
async def log_startup_url() -> None:
    """Log where the API is reachable; HOST_PORT reflects Docker port mapping."""
    logger.info(
        "Royalty Engine API running at http://localhost:%s (default mode: %s)",
        config.HOST_PORT,
        config.DEFAULT_CALCULATION_MODE,
    )


@app.get("/")
async def root():
    return {"message": "Royalty Engine API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}
