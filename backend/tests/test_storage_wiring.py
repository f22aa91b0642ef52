"""
Storage wiring: env-selected adapter injected into the attachment routes.

Notes:
    - A minimal fake `supabase` module is placed in `sys.modules` so the
      wiring path runs without network access.
    - Only adapter types are asserted; storage calls are covered elsewhere.
"""
from __future__ import annotations

import logging
import sys
import types

import pytest

from backend.storage.memory import InMemoryAttachmentStorage
from backend.storage.ports import NullAttachmentStorage
from backend.storage.supabase_attachments import SupabaseAttachmentStorage
import backend.web.routes.attachments as attachments_routes
import backend.web.storage_wiring as storage_wiring


@pytest.fixture(autouse=True)
def _fresh_startup_flag(monkeypatch):
    monkeypatch.setattr(storage_wiring, "_STARTUP_ATTEMPTED", False)


def _install_fake_supabase(monkeypatch, *, fail: bool = False) -> list[tuple[str, str]]:
    created: list[tuple[str, str]] = []

    class _FakeStorage:
        def from_(self, bucket: str):  # pragma: no cover - not exercised
            raise AssertionError("no storage calls during wiring")

    class _FakeClient:
        def __init__(self) -> None:
            self.storage = _FakeStorage()

    def create_client(url: str, key: str):
        created.append((url, key))
        if fail:
            raise ValueError("Invalid API key")
        return _FakeClient()

    monkeypatch.setitem(sys.modules, "supabase", types.SimpleNamespace(create_client=create_client))
    return created


def test_memory_backend_is_wired(monkeypatch):
    monkeypatch.setenv("ATTACHMENTS_STORAGE_BACKEND", "memory")
    assert storage_wiring.wire_storage_adapter_if_configured() is True
    assert isinstance(attachments_routes.STORAGE_ADAPTER, InMemoryAttachmentStorage)


def test_nothing_configured_keeps_null_adapter():
    assert storage_wiring.build_storage_from_env() is None
    assert storage_wiring.wire_storage_adapter_if_configured() is False
    assert isinstance(attachments_routes.STORAGE_ADAPTER, NullAttachmentStorage)


def test_supabase_env_wires_supabase_adapter(monkeypatch, caplog):
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-role")
    created = _install_fake_supabase(monkeypatch)
    caplog.set_level(logging.INFO, logger="packetlab.web")

    assert storage_wiring.wire_storage_adapter_if_configured() is True

    assert created == [("https://project.supabase.co", "service-role")]
    assert isinstance(attachments_routes.STORAGE_ADAPTER, SupabaseAttachmentStorage)
    assert any("Storage adapter wired: SupabaseAttachmentStorage" in rec.getMessage() for rec in caplog.records)


def test_client_failure_at_startup_defers_to_lazy_wiring(monkeypatch, caplog):
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-role")
    _install_fake_supabase(monkeypatch, fail=True)
    caplog.set_level(logging.WARNING, logger="packetlab.web")

    assert storage_wiring.wire_storage_adapter_if_configured() is False
    assert isinstance(attachments_routes.STORAGE_ADAPTER, NullAttachmentStorage)
    assert any("unavailable at startup" in rec.getMessage() for rec in caplog.records)

    # Remote host without explicit opt-in: no storage3 fallback on later attempts either.
    assert storage_wiring.build_storage_from_env() is None


def test_local_host_falls_back_to_storage3(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "http://127.0.0.1:54321")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "sb_secret_local")
    _install_fake_supabase(monkeypatch, fail=True)

    adapter = storage_wiring.build_storage_from_env()

    assert isinstance(adapter, SupabaseAttachmentStorage)
