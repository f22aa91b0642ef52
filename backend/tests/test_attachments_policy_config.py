"""
Attachments policy and storage config come from one central place (env-driven).
"""
from __future__ import annotations

from backend.attachments.policy import (
    ALLOWED_IMAGE_TYPES,
    ALLOWED_TYPES,
    DEFAULT_POLICY,
    format_size_limit,
    normalize_mime,
    policy_from_env,
    type_labels,
)
from backend.storage import config

MB = 1024 * 1024


def test_default_policy_matches_documented_constants():
    assert DEFAULT_POLICY.max_size_bytes == 20 * MB
    assert DEFAULT_POLICY.max_size_display == "20MB"
    assert DEFAULT_POLICY.allowed_types == ALLOWED_TYPES
    assert DEFAULT_POLICY.allowed_image_types == ALLOWED_IMAGE_TYPES
    assert DEFAULT_POLICY.allowed_types_display == "PDF, PNG, JPG, or TXT"
    assert DEFAULT_POLICY.allowed_image_types_display == "PNG, JPG"
    assert ALLOWED_IMAGE_TYPES <= ALLOWED_TYPES


def test_policy_from_env_reads_overrides(monkeypatch):
    monkeypatch.setenv("ATTACHMENTS_MAX_UPLOAD_BYTES", str(5 * MB))
    monkeypatch.setenv("ATTACHMENTS_ALLOWED_TYPES", "application/pdf, TEXT/PLAIN")
    monkeypatch.setenv("ATTACHMENTS_ALLOWED_IMAGE_TYPES", "image/png")
    policy = policy_from_env()
    assert policy.max_size_bytes == 5 * MB
    assert policy.allowed_types == frozenset({"application/pdf", "text/plain"})
    assert policy.allowed_image_types == frozenset({"image/png"})
    assert policy.allowed_types_display == "PDF or TXT"


def test_policy_from_env_defaults_without_overrides():
    assert policy_from_env() == DEFAULT_POLICY


def test_blank_type_list_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("ATTACHMENTS_ALLOWED_TYPES", " , ")
    assert policy_from_env().allowed_types == ALLOWED_TYPES


def test_max_upload_bytes_is_clamped_to_contract(monkeypatch):
    monkeypatch.setenv("ATTACHMENTS_MAX_UPLOAD_BYTES", str(200 * MB))
    assert config.get_attachments_max_upload_bytes() == 20 * MB


def test_invalid_max_upload_bytes_falls_back(monkeypatch):
    monkeypatch.setenv("ATTACHMENTS_MAX_UPLOAD_BYTES", "lots")
    assert config.get_attachments_max_upload_bytes() == 20 * MB
    monkeypatch.setenv("ATTACHMENTS_MAX_UPLOAD_BYTES", "-1")
    assert config.get_attachments_max_upload_bytes() == 20 * MB


def test_bucket_default_and_override(monkeypatch):
    assert config.get_attachments_bucket() == "chat-attachments"
    monkeypatch.setenv("ATTACHMENTS_STORAGE_BUCKET", " uploads ")
    assert config.get_attachments_bucket() == "uploads"


def test_storage_backend_selector(monkeypatch):
    assert config.get_storage_backend() == "supabase"
    monkeypatch.setenv("ATTACHMENTS_STORAGE_BACKEND", "MEMORY")
    assert config.get_storage_backend() == "memory"
    monkeypatch.setenv("ATTACHMENTS_STORAGE_BACKEND", "s3")
    assert config.get_storage_backend() == "supabase"


def test_storage_timeout_parsing(monkeypatch):
    assert config.get_storage_timeout_seconds() == 10.0
    monkeypatch.setenv("ATTACHMENTS_STORAGE_TIMEOUT_SECONDS", "2.5")
    assert config.get_storage_timeout_seconds() == 2.5
    monkeypatch.setenv("ATTACHMENTS_STORAGE_TIMEOUT_SECONDS", "0")
    assert config.get_storage_timeout_seconds() == 10.0
    monkeypatch.setenv("ATTACHMENTS_STORAGE_TIMEOUT_SECONDS", "9999")
    assert config.get_storage_timeout_seconds() == 300.0


def test_cache_control_default():
    assert config.get_cache_control_seconds() == 3600


def test_helpers():
    assert normalize_mime(" Application/PDF ; q=1") == "application/pdf"
    assert normalize_mime(None) == ""
    assert type_labels({"image/jpeg", "image/jpg", "application/x-custom"}) == ["JPG", "application/x-custom"]
    assert format_size_limit(20 * MB) == "20MB"
    assert format_size_limit(int(1.5 * MB)) == "1.5MB"
    assert format_size_limit(2048) == "2KB"
    assert format_size_limit(10) == "10 bytes"
