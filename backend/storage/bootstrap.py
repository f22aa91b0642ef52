"""
Supabase Storage bootstrap helpers.

Intent:
    Ensure the attachments bucket exists on startup (dev/stage friendly).

Security & Safety:
    - Controlled by `AUTO_CREATE_STORAGE_BUCKETS=true` env flag.
    - Requires server-side `SUPABASE_SERVICE_ROLE_KEY`.
    - Idempotent: lists buckets first, creates only missing ones.
    - The attachments bucket is created public because attachment links are
      handed to the chat workflow as plain public URLs.

Usage:
    Call `ensure_bucket_from_env()` after wiring the storage adapter.
"""
from __future__ import annotations

import os
from typing import Iterable
import inspect

import requests
import logging

from .config import get_attachments_bucket

_log = logging.getLogger("packetlab.storage")


def _env_flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or "").strip().lower() == "true"


def _supports_timeout(func) -> bool:
    """Return True if callable signature supports a 'timeout' kw or **kwargs.

    This guards tests that monkeypatch `bootstrap.requests` with simple callables
    not accepting a `timeout` keyword argument, while keeping timeouts enabled
    for real HTTP clients.
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return False
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in sig.parameters.values()):
        return True
    return "timeout" in sig.parameters


def _list_buckets(base_url: str, key: str) -> list[dict]:
    url = f"{base_url.rstrip('/')}/storage/v1/bucket"
    headers = {"apikey": key, "Authorization": f"Bearer {key}"}
    get = getattr(requests, "get")
    kwargs = {"headers": headers}
    if _supports_timeout(get):
        kwargs["timeout"] = (3, 10)
    try:
        resp = get(url, **kwargs)
    except Exception as exc:
        _log.warning("list buckets failed: error=%s", type(exc).__name__)
        return []
    _log.debug("GET /storage/v1/bucket status=%s", getattr(resp, "status_code", "?"))
    try:
        data = resp.json() if hasattr(resp, "json") else []
    except ValueError:
        data = []
    return data if isinstance(data, list) else []


def _create_bucket(base_url: str, key: str, name: str, public: bool = False) -> bool:
    url = f"{base_url.rstrip('/')}/storage/v1/bucket"
    headers = {"apikey": key, "Authorization": f"Bearer {key}", "Content-Type": "application/json"}
    payload = {"name": name, "public": public}
    post = getattr(requests, "post")
    kwargs = {"headers": headers, "json": payload}
    if _supports_timeout(post):
        kwargs["timeout"] = (3, 10)
    try:
        resp = post(url, **kwargs)
    except Exception as exc:
        _log.warning("create bucket '%s' failed: error=%s", name, type(exc).__name__)
        return False
    status = getattr(resp, "status_code", 500)
    # Log outcome for diagnostics (e.g., 409 conflict / 403 forbidden / 503 unavailable)
    body_text = getattr(resp, "text", "")
    if status >= 300:
        _log.warning("create bucket '%s' failed: status=%s body=%s", name, status, body_text)
    else:
        _log.debug("POST /storage/v1/bucket status=%s created='%s'", status, name)
    return status < 300


def ensure_buckets(base_url: str, key: str, buckets: Iterable[str], *, public: bool = True) -> bool:
    """Ensure each bucket in `buckets` exists; create if missing.

    Parameters:
        base_url: Supabase API base (e.g., http://host.docker.internal:54321)
        key: Service role JWT for server-side administration
        buckets: Iterable of bucket names to ensure exist
        public: Visibility used for newly created buckets

    Behavior:
        - Lists existing buckets, creates only missing ones (idempotent).
        - Logs non-2xx responses for visibility (e.g., 409/403/503).
        - Performs a best-effort verification via a follow-up list and warns if
          a requested bucket is still missing.

    Returns:
        True (work attempted). Warnings in logs indicate problems to investigate.
    """
    existing = _list_buckets(base_url, key)
    names = {str(it.get("name") or it.get("id") or "") for it in existing}
    wanted = {name for name in buckets if name}
    for name in sorted(wanted - names):
        _create_bucket(base_url, key, name, public=public)
    # Verify existence after creation attempts and log if still missing.
    final = _list_buckets(base_url, key)
    final_names = {str(it.get("name") or it.get("id") or "") for it in final}
    for name in sorted(wanted - final_names):
        _log.warning("bucket '%s' still missing after create attempt", name)
    return True


def ensure_bucket_from_env() -> bool:
    """Read env and ensure the attachments bucket when AUTO_CREATE_STORAGE_BUCKETS=true.

    Env:
        - AUTO_CREATE_STORAGE_BUCKETS=true (opt-in safety)
        - SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY (server-side credentials)
        - ATTACHMENTS_STORAGE_BUCKET (default: chat-attachments)

    Behavior:
        - No-ops when AUTO_CREATE_STORAGE_BUCKETS is not exactly 'true'.
        - Returns False when mandatory env is missing; otherwise delegates to
          ensure_buckets() and returns True.
    """
    if not _env_flag("AUTO_CREATE_STORAGE_BUCKETS"):
        return False
    _log.warning(
        "AUTO_CREATE_STORAGE_BUCKETS=true detected (dev/test convenience only). Disable this flag in prod/stage environments."
    )
    base = (os.getenv("SUPABASE_URL") or "").strip()
    key = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
    if not base or not key:
        return False
    return ensure_buckets(base, key, [get_attachments_bucket()], public=True)


__all__ = ["ensure_bucket_from_env", "ensure_buckets"]
