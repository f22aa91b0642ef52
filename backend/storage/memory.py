"""
In-memory attachment storage for local development and tests.

Behaves like a write-if-absent object store: a second write to an existing
key raises ObjectAlreadyExistsError and leaves the first object untouched.
A lock guards the dict because the upload service calls adapters from worker
threads.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Tuple

from .ports import ObjectAlreadyExistsError


@dataclass(frozen=True)
class StoredObject:
    body: bytes
    content_type: str


class InMemoryAttachmentStorage:
    """Thread-safe dict-backed store implementing AttachmentStorageProtocol."""

    def __init__(self, public_base_url: str = "http://storage.local/storage/v1/object/public"):
        self._public_base_url = public_base_url.rstrip("/")
        self._objects: Dict[Tuple[str, str], StoredObject] = {}
        self._lock = threading.Lock()

    def object_exists(self, *, bucket: str, folder: str, name: str) -> bool:
        key = f"{folder.strip('/')}/{name}"
        with self._lock:
            return (bucket, key) in self._objects

    def put_object_if_absent(self, *, bucket: str, key: str, body: bytes, content_type: str) -> str:
        norm_key = key.lstrip("/")
        with self._lock:
            if (bucket, norm_key) in self._objects:
                raise ObjectAlreadyExistsError(norm_key)
            self._objects[(bucket, norm_key)] = StoredObject(body=bytes(body), content_type=content_type)
        return norm_key

    def public_url(self, *, bucket: str, key: str) -> str:
        return f"{self._public_base_url}/{bucket}/{key.lstrip('/')}"

    # --- Inspection helpers (tests, diagnostics) --------------------------------

    def get_object(self, *, bucket: str, key: str) -> StoredObject | None:
        with self._lock:
            return self._objects.get((bucket, key.lstrip("/")))

    def keys(self, bucket: str) -> list[str]:
        with self._lock:
            return sorted(k for (b, k) in self._objects if b == bucket)


__all__ = ["InMemoryAttachmentStorage", "StoredObject"]
