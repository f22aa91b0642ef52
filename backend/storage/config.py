"""
Centralized storage configuration for chat attachments.

Intent:
    Provide a single source of truth for the attachments bucket name, upload
    limits and storage timeouts together with their environment-variable
    overrides. Prevents drift between the upload service, the web routes, the
    CLI and the bucket bootstrap, and enables simple testing.

Behavior:
    - ATTACHMENTS_BUCKET_DEFAULT defines the canonical bucket ("chat-attachments").
    - Getters read env overrides at call time with sane fallbacks; invalid
      values fall back to defaults instead of raising.

Permissions:
    Pure configuration; no external calls or privileges required.
"""
from __future__ import annotations

import os


ATTACHMENTS_BUCKET_DEFAULT = "chat-attachments"
STORAGE_BACKEND_DEFAULT = "supabase"
STORAGE_BACKENDS = frozenset({"supabase", "memory"})


def get_attachments_bucket() -> str:
    """Return the configured attachments bucket name.

    Env:
        ATTACHMENTS_STORAGE_BUCKET – optional override; otherwise defaults to
        ATTACHMENTS_BUCKET_DEFAULT.
    """
    return (os.getenv("ATTACHMENTS_STORAGE_BUCKET") or "").strip() or ATTACHMENTS_BUCKET_DEFAULT


def get_storage_backend() -> str:
    """Return the storage backend selector ("supabase" or "memory")."""
    value = (os.getenv("ATTACHMENTS_STORAGE_BACKEND") or STORAGE_BACKEND_DEFAULT).strip().lower()
    return value if value in STORAGE_BACKENDS else STORAGE_BACKEND_DEFAULT


# --- Size limits --------------------------------------------------------------

def _parse_int_env(name: str, default: int, *, contract_max: int | None = None) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    if isinstance(contract_max, int) and contract_max > 0:
        value = min(value, contract_max)
    return value


def get_attachments_max_upload_bytes() -> int:
    """Maximum upload size for chat attachments (default/clamped 20 MiB)."""
    contract_max = 20 * 1024 * 1024
    return _parse_int_env("ATTACHMENTS_MAX_UPLOAD_BYTES", contract_max, contract_max=contract_max)


def get_cache_control_seconds() -> int:
    """Cache lifetime announced for uploaded objects (default 3600 seconds)."""
    return _parse_int_env("ATTACHMENTS_CACHE_CONTROL_SECONDS", 3600)


# --- Timeouts -----------------------------------------------------------------

def _parse_float_env(name: str, default: float, *, upper: float = 300.0) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    return min(value, upper)


def get_storage_timeout_seconds() -> float:
    """Default per-call timeout for storage operations (lookup, write, URL)."""
    return _parse_float_env("ATTACHMENTS_STORAGE_TIMEOUT_SECONDS", 10.0)


__all__ = [
    "ATTACHMENTS_BUCKET_DEFAULT",
    "STORAGE_BACKEND_DEFAULT",
    "get_attachments_bucket",
    "get_storage_backend",
    "get_attachments_max_upload_bytes",
    "get_cache_control_seconds",
    "get_storage_timeout_seconds",
]
