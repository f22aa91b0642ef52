"PacketLab attachments API"
from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from backend.web.config import ensure_secure_config_on_startup
from backend.web.routes.attachments import attachments_router
from backend.web.storage_wiring import wire_storage_adapter_if_configured


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out/opt-in via PACKETLAB_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("PACKETLAB_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
ensure_secure_config_on_startup()

logger = logging.getLogger("packetlab.web")

app = FastAPI(title="PacketLab attachments", description="Deduplicating chat attachment uploads", version="0.1.0")
app.include_router(attachments_router)

# Call wiring early so routes receive the adapter before first request handling.
# If this fails (e.g., local Supabase still starting), the lazy rewire path in
# the routes will attempt wiring again on the first upload.
if not wire_storage_adapter_if_configured():
    logger.info("Storage adapter not wired at startup; uploads will retry wiring lazily")


@app.get("/health")
async def health_check():
    # Minimal health endpoint used by orchestrators and tests.
    return JSONResponse({"status": "healthy"}, headers={"Cache-Control": "private, no-store"})
