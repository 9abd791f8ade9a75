"""
Main application entry point - FastAPI app instance and configuration.
This is where the ASGI application is created and configured.
Run with: uvicorn homebot.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from homebot.core.config import settings
from homebot.deps import bootstrap_actions
from homebot.routers import messages, webhooks

logger = logging.getLogger("homebot.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load commands and webhooks into the registry before serving."""
    count = bootstrap_actions()
    logger.info(f"{settings.APP_NAME} ready with {count} actions")
    yield


# ---------------------------------------------------------------------------
# CREATE FASTAPI APPLICATION
# ---------------------------------------------------------------------------
app = FastAPI(
    title=settings.APP_NAME,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# REGISTER ROUTERS
# ---------------------------------------------------------------------------
# webhooks.router: POST /webhook/{id}, GET /webhooks
# messages.router: POST /messages, GET /stats
app.include_router(webhooks.router)
app.include_router(messages.router)


# ---------------------------------------------------------------------------
# HEALTH CHECK ENDPOINT
# ---------------------------------------------------------------------------
@app.get("/health", tags=["health"])
def health_check():
    """
    Simple health check endpoint.

    Does NOT check model or Home Assistant connectivity (see !status).

    Returns:
        {"status": "ok"}
    """
    return {"status": "ok"}
