"""
Storage ports used by the attachments subsystem.

Keep these small and framework-agnostic so tests can supply simple fakes.
"""
from __future__ import annotations

from typing import Protocol


class ObjectAlreadyExistsError(Exception):
    """Raised by `put_object_if_absent` when the key is already taken.

    Adapters must raise this (and only this) for the "already exists"
    condition so callers can tell a lost write race from a real failure.
    """

    def __init__(self, key: str):
        super().__init__(f"object_exists: {key}")
        self.key = key


class AttachmentStorageProtocol(Protocol):
    """Minimal object-store contract for content-addressed attachments.

    Intent:
        Let the upload service check for, write and link stored attachments
        without depending on a specific cloud SDK.

    Contract:
        - object_exists: exact name lookup inside one folder of a bucket.
        - put_object_if_absent: never overwrites; returns the stored key and
          raises ObjectAlreadyExistsError when the key already exists.
        - public_url: deterministic URL for a stored key.

    Permissions:
        Implementations must enforce bucket/key ACLs and validation.
    """

    def object_exists(self, *, bucket: str, folder: str, name: str) -> bool: ...

    def put_object_if_absent(self, *, bucket: str, key: str, body: bytes, content_type: str) -> str: ...

    def public_url(self, *, bucket: str, key: str) -> str: ...


class NullAttachmentStorage:
    """Fallback adapter that signals the storage backend is not configured."""

    def object_exists(self, *, bucket: str, folder: str, name: str) -> bool:  # noqa: D401
        raise RuntimeError("storage_adapter_not_configured")

    def put_object_if_absent(self, *, bucket: str, key: str, body: bytes, content_type: str) -> str:  # noqa: D401
        raise RuntimeError("storage_adapter_not_configured")

    def public_url(self, *, bucket: str, key: str) -> str:  # noqa: D401
        raise RuntimeError("storage_adapter_not_configured")


__all__ = ["AttachmentStorageProtocol", "NullAttachmentStorage", "ObjectAlreadyExistsError"]
