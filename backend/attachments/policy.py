"""
Shared upload policy for chat attachments.

Centralises MIME/type/size constraints so that the validator, the web routes
and the CLI reference a single source of truth. Allowed types are explicit
sets passed through configuration, never inline literals in the validator.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

from backend.storage.config import get_attachments_max_upload_bytes

ALLOWED_TYPES = frozenset({
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/jpg",
    "text/plain",
})
ALLOWED_IMAGE_TYPES = frozenset({"image/png", "image/jpeg", "image/jpg"})

# Display order and labels for human-readable type lists.
_TYPE_LABELS = (
    ("application/pdf", "PDF"),
    ("image/png", "PNG"),
    ("image/jpeg", "JPG"),
    ("image/jpg", "JPG"),
    ("image/gif", "GIF"),
    ("image/webp", "WEBP"),
    ("text/plain", "TXT"),
    ("text/markdown", "MD"),
)


def normalize_mime(value: str | None) -> str:
    """Lowercase a MIME type and drop parameters ("text/plain; charset=utf-8")."""
    return (str(value or "").split(";", 1)[0]).strip().lower()


def type_labels(types: Iterable[str]) -> list[str]:
    """Return unique display labels for `types` in a stable order."""
    wanted = {normalize_mime(t) for t in types}
    labels: list[str] = []
    for mime, label in _TYPE_LABELS:
        if mime in wanted and label not in labels:
            labels.append(label)
    known = {mime for mime, _ in _TYPE_LABELS}
    labels.extend(sorted(t for t in wanted if t and t not in known))
    return labels


def _join_alternatives(labels: list[str]) -> str:
    if not labels:
        return ""
    if len(labels) == 1:
        return labels[0]
    if len(labels) == 2:
        return f"{labels[0]} or {labels[1]}"
    return f"{', '.join(labels[:-1])}, or {labels[-1]}"


def format_size_limit(size_bytes: int) -> str:
    """Render a byte limit the way users read it (20971520 -> "20MB")."""
    mib = 1024 * 1024
    if size_bytes >= mib:
        return f"{round(size_bytes / mib, 1):g}MB"
    if size_bytes >= 1024:
        return f"{round(size_bytes / 1024, 1):g}KB"
    return f"{size_bytes} bytes"


@dataclass(frozen=True, slots=True)
class UploadPolicy:
    """Immutable policy object used at validation time."""

    max_size_bytes: int
    allowed_types: frozenset[str]
    allowed_image_types: frozenset[str]

    @property
    def max_size_display(self) -> str:
        return format_size_limit(self.max_size_bytes)

    @property
    def allowed_types_display(self) -> str:
        return _join_alternatives(type_labels(self.allowed_types))

    @property
    def allowed_image_types_display(self) -> str:
        return ", ".join(type_labels(self.allowed_image_types))


def _types_from_env(name: str, default: frozenset[str]) -> frozenset[str]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    parsed = frozenset(normalize_mime(part) for part in raw.split(",") if normalize_mime(part))
    return parsed or default


def policy_from_env() -> UploadPolicy:
    """Build the upload policy from environment overrides.

    Env:
        ATTACHMENTS_MAX_UPLOAD_BYTES – size ceiling (clamped to 20 MiB).
        ATTACHMENTS_ALLOWED_TYPES – comma-separated MIME types.
        ATTACHMENTS_ALLOWED_IMAGE_TYPES – comma-separated MIME types for pastes.
    """
    return UploadPolicy(
        max_size_bytes=get_attachments_max_upload_bytes(),
        allowed_types=_types_from_env("ATTACHMENTS_ALLOWED_TYPES", ALLOWED_TYPES),
        allowed_image_types=_types_from_env("ATTACHMENTS_ALLOWED_IMAGE_TYPES", ALLOWED_IMAGE_TYPES),
    )


DEFAULT_POLICY = UploadPolicy(
    max_size_bytes=20 * 1024 * 1024,
    allowed_types=ALLOWED_TYPES,
    allowed_image_types=ALLOWED_IMAGE_TYPES,
)


__all__ = [
    "ALLOWED_TYPES",
    "ALLOWED_IMAGE_TYPES",
    "DEFAULT_POLICY",
    "UploadPolicy",
    "format_size_limit",
    "normalize_mime",
    "policy_from_env",
    "type_labels",
]
