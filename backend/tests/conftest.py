"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend to avoid sandbox restrictions
that can affect the Trio backend (e.g., socketpair permission errors), and
keep storage-related environment variables from leaking into unit tests.
"""
import sys
from pathlib import Path

import pytest

# Ensure `backend.*` is importable when running pytest from any directory
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


_STORAGE_ENV = (
    "ATTACHMENTS_STORAGE_BUCKET",
    "ATTACHMENTS_STORAGE_BACKEND",
    "ATTACHMENTS_MAX_UPLOAD_BYTES",
    "ATTACHMENTS_ALLOWED_TYPES",
    "ATTACHMENTS_ALLOWED_IMAGE_TYPES",
    "ATTACHMENTS_STORAGE_TIMEOUT_SECONDS",
    "ATTACHMENTS_CACHE_CONTROL_SECONDS",
    "AUTO_CREATE_STORAGE_BUCKETS",
    "SUPABASE_URL",
    "SUPABASE_PUBLIC_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_FALLBACK_STORAGE3",
    "PACKETLAB_ENV",
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clean_storage_env(monkeypatch: pytest.MonkeyPatch):
    """Start every test from default storage configuration.

    Developers often export SUPABASE_* for local runs; unit tests must not
    pick those up and talk to a real instance.
    """
    for name in _STORAGE_ENV:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_attachment_routes_adapter():
    """Reset the route-level storage adapter between tests (Null by default)."""
    yield
    mod = sys.modules.get("backend.web.routes.attachments")
    if mod is not None:
        from backend.storage.ports import NullAttachmentStorage

        mod.set_storage_adapter(NullAttachmentStorage())
