from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from clabot import __version__
from clabot.config import read_bot_settings
from clabot.routers import health, webhook

app = FastAPI(title="CLA Bot", version=__version__)
logger = logging.getLogger("clabot")
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
logger.propagate = False
logger.setLevel(os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO")

app.state.bot_settings = read_bot_settings()


@app.get("/", include_in_schema=False)
async def root():
    """Redirect to API documentation."""
    return RedirectResponse(url="/docs")


app.include_router(webhook.router, prefix="/api", tags=["webhook"])
app.include_router(health.router, prefix="/api", tags=["health"])

# GitHub App manifests registered before the /api prefix post to /webhook.
app.include_router(webhook.router, include_in_schema=False)
