"""
Configuration and startup security checks for the PacketLab attachments API.

Why: Attachments end up in a public bucket, so an accidental insecure
deployment leaks or loses user files. This module provides a single guard that
enforces minimal production safety constraints without burdening local
development.

Permissions: The caller needs no special privileges. The function simply reads
environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os

from backend.storage.config import get_storage_backend


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - Supabase Service Role key must be set and not a known dummy placeholder.
    - SUPABASE_URL must use https.
    - The in-memory storage backend is dev/test only.
    - Bucket auto-creation is dev/test only.
    """

    env = os.getenv("PACKETLAB_ENV", "dev")
    if not _is_prod_like(env):
        return  # dev/test remain permissive

    # 1) Supabase Service Role key
    srole = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip()
    if not srole or srole.upper() == "DUMMY_DO_NOT_USE":
        raise SystemExit(
            "Refusing to start: SUPABASE_SERVICE_ROLE_KEY is unset or a dummy placeholder in production."
        )

    # 2) Storage endpoint must use HTTPS
    url = (os.getenv("SUPABASE_URL", "") or "").strip().lower()
    if not url.startswith("https://"):
        raise SystemExit("Refusing to start: SUPABASE_URL must use https in production.")

    # 3) Attachments would vanish with the process
    if get_storage_backend() == "memory":
        raise SystemExit(
            "Refusing to start: ATTACHMENTS_STORAGE_BACKEND=memory is not allowed in production/staging."
        )

    # 4) Bucket provisioning belongs to deployment, not app startup
    if (os.getenv("AUTO_CREATE_STORAGE_BUCKETS", "false") or "").strip().lower() == "true":
        raise SystemExit(
            "Refusing to start: AUTO_CREATE_STORAGE_BUCKETS must be false in production/staging."
        )


__all__ = ["ensure_secure_config_on_startup"]
