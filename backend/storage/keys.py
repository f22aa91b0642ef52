"""
Helpers to build deterministic storage keys for chat attachments.

Why:
    The storage namespace is the deduplication index: an attachment lives at a
    key derived only from its owner scope, its content hash and its original
    name. Keeping key construction in one place guarantees that repeated calls
    (and restarted processes) compute the very same key for the same inputs.

Conventions:
    - Attachments: {owner_scope}/{sha256}_{filename}
    - Unauthenticated uploads use the "guest" owner scope.

Encoding:
    Characters outside a small safe set are written as "+XX" per UTF-8 byte
    (uppercase hex); "+" itself is always escaped. The mapping is injective:
    distinct owner ids give distinct folders and distinct file names give
    distinct object names. Ordinary names ("notes.pdf", uuids) are unchanged.

Security:
    - "/" and "\\" are always escaped, so neither owner ids nor file names can
      introduce extra path segments.
    - "." is escaped in owner scopes, so a folder is never "." or "..".
"""
from __future__ import annotations

import re

GUEST_SCOPE = "guest"

_OWNER_SAFE_RE = re.compile(r"[A-Za-z0-9_-]")
_NAME_SAFE_RE = re.compile(r"[A-Za-z0-9._-]")


def _escape(value: str, safe: re.Pattern[str]) -> str:
    out: list[str] = []
    for ch in value:
        if safe.fullmatch(ch):
            out.append(ch)
        else:
            out.extend(f"+{b:02X}" for b in ch.encode("utf-8"))
    return "".join(out)


def encode_filename(filename: str) -> str:
    """Return the storage-safe encoding of `filename`.

    Ordinary names (e.g. "notes.pdf", "Slides-2.PDF") are returned unchanged;
    case and extension are preserved, spaces become "+20".
    """
    return _escape(filename or "", _NAME_SAFE_RE)


def resolve_owner_scope(owner_id: str | None) -> str:
    """Map an optional owner id to its storage folder.

    Missing or blank owner ids resolve to GUEST_SCOPE instead of raising. An
    authenticated owner whose id is literally "guest" gets "+67uest" so it
    never shares the guest folder.
    """
    if owner_id is None or not str(owner_id).strip():
        return GUEST_SCOPE
    scope = _escape(str(owner_id), _OWNER_SAFE_RE)
    if scope == GUEST_SCOPE:
        return f"+{ord(scope[0]):02X}{scope[1:]}"
    return scope


def make_attachment_object_name(*, content_key: str, filename: str) -> str:
    """Build the object name within an owner folder: {content_key}_{filename}."""
    return f"{content_key}_{encode_filename(filename)}"


__all__ = [
    "GUEST_SCOPE",
    "encode_filename",
    "resolve_owner_scope",
    "make_attachment_object_name",
]
