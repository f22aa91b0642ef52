"""
Shared helper for wiring the attachments storage adapter.

Why:
    App startup may occur before Supabase is reachable locally, leaving the
    storage adapter unset and breaking uploads. This module provides an
    idempotent helper that can be used both at startup and lazily on-demand
    from API routes to (re)attempt wiring when configuration is present.

Security:
    Requires SUPABASE_SERVICE_ROLE_KEY and SUPABASE_URL environment variables.
    The helper only wires server-side adapters; no secrets are exposed to clients.
"""
from __future__ import annotations

import logging
import os
from urllib.parse import urlparse as _urlparse

from backend.storage.bootstrap import ensure_bucket_from_env
from backend.storage.config import get_storage_backend
from backend.storage.memory import InMemoryAttachmentStorage
from backend.storage.ports import AttachmentStorageProtocol
from backend.storage.supabase_attachments import SupabaseAttachmentStorage

logger = logging.getLogger("packetlab.web")

_STARTUP_ATTEMPTED = False


def _is_local_host(url: str) -> bool:
    host = (_urlparse(url).hostname or "").lower()
    return host in {"127.0.0.1", "localhost"}


def build_storage_from_env() -> AttachmentStorageProtocol | None:
    """Create the storage adapter selected by the environment.

    Behavior:
        - ATTACHMENTS_STORAGE_BACKEND=memory returns a fresh in-memory store.
        - Otherwise requires SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY and
          prefers the official supabase client; for local hosts (or with
          SUPABASE_FALLBACK_STORAGE3=true) it falls back to a bare storage3
          client, which accepts the non-JWT keys of `supabase start`.
        - Returns None when not configured or when no client can be built.
    """
    global _STARTUP_ATTEMPTED
    if get_storage_backend() == "memory":
        return InMemoryAttachmentStorage()

    url = (os.getenv("SUPABASE_URL") or "").strip()
    key = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
    if not url or not key:
        return None

    from supabase import create_client

    try:
        return SupabaseAttachmentStorage(create_client(url, key))
    except Exception as exc:
        # On the first (startup) attempt prefer the lazy rewire path, except for
        # local dev instances where the storage3 fallback is expected.
        if not _STARTUP_ATTEMPTED and not _is_local_host(url):
            logger.warning("Supabase client unavailable at startup: %s: %s", exc.__class__.__name__, str(exc))
            _STARTUP_ATTEMPTED = True
            return None
        logger.warning("Supabase client unavailable: %s: %s; falling back to storage3", exc.__class__.__name__, str(exc))

    force = (os.getenv("SUPABASE_FALLBACK_STORAGE3", "false").lower() == "true")
    if not force and not _is_local_host(url):
        return None
    from storage3._sync.client import SyncStorageClient

    storage_url = f"{url.rstrip('/')}/storage/v1"
    headers = {"Authorization": f"Bearer {key}", "apikey": key}
    return SupabaseAttachmentStorage(SyncStorageClient(storage_url, headers))


def wire_storage_adapter_if_configured() -> bool:
    """Attempt to wire the attachments storage adapter into the web routes.

    Behavior:
        - Returns True when wiring succeeds (adapter injected).
        - Returns False when not configured or any error occurs (keeps Null).
        - Safe and idempotent to call multiple times.

    Logging:
        - On success, logs an info message.
        - On failure, logs a warning including exception class and message.
    """
    global _STARTUP_ATTEMPTED
    try:
        adapter = build_storage_from_env()
    except Exception as exc:  # pragma: no cover - defensive logging
        logger.warning("Storage wiring skipped due to error: %s: %s", exc.__class__.__name__, str(exc))
        return False
    if adapter is None:
        return False

    from backend.web.routes import attachments as _attachments

    _attachments.set_storage_adapter(adapter)
    logger.info("Storage adapter wired: %s", type(adapter).__name__)
    _STARTUP_ATTEMPTED = True

    if isinstance(adapter, SupabaseAttachmentStorage):
        # Dev convenience: ensure the bucket exists when explicitly requested.
        ensure_bucket_from_env()
    return True


__all__ = ["build_storage_from_env", "wire_storage_adapter_if_configured"]
