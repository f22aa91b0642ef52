"""
Deduplicating upload service for chat attachments.

Intent:
    Store each distinct file content once per owner scope. The storage key is
    derived from the SHA-256 of the bytes plus the original name, so the object
    store's own namespace is the deduplication index; the service keeps no
    state between calls.

Flow (strictly sequential per call):
    validate -> hash -> existence check -> (write-if-absent) -> public URL

Concurrency:
    Two uploads of identical bytes may both pass the existence check. The
    adapter's write-if-absent rejects the second write with
    ObjectAlreadyExistsError, which is reported as a duplicate. If a backend
    overwrote instead, both writers store identical bytes under the identical
    key, so the end state is the same. No in-process lock is held.

Timeouts:
    Storage adapters are blocking; each call runs in a worker thread under its
    own timeout. Timeouts raised by the storage client itself (httpx) count the
    same as ours. A lookup timeout aborts before any write. A write timeout is
    reported as AmbiguousWriteOutcomeError and never retried here.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional

import httpx

from backend.storage.config import get_attachments_bucket, get_storage_timeout_seconds
from backend.storage.keys import make_attachment_object_name, resolve_owner_scope
from backend.storage.ports import AttachmentStorageProtocol, ObjectAlreadyExistsError

from . import hashing
from .errors import (
    AmbiguousWriteOutcomeError,
    BackendError,
    LookupFailedError,
    UrlResolutionFailedError,
    ValidationError,
    WriteFailedError,
)
from .models import FilePayload, ObjectLocator, UploadResult
from .policy import UploadPolicy, normalize_mime, policy_from_env
from .validation import check_file, check_image_file

_log = logging.getLogger("packetlab.attachments")


@dataclass(frozen=True)
class StorageTimeouts:
    """Per-stage timeouts in seconds for storage calls."""

    lookup: float
    write: float
    url: float

    @classmethod
    def uniform(cls, seconds: float) -> "StorageTimeouts":
        return cls(lookup=seconds, write=seconds, url=seconds)

    @classmethod
    def from_env(cls) -> "StorageTimeouts":
        return cls.uniform(get_storage_timeout_seconds())


def _describe(exc: BaseException) -> str:
    return f"{exc.__class__.__name__}: {exc}"


def _is_timeout(exc: BaseException) -> bool:
    """True for caller-side timeouts and timeouts raised inside the storage client."""
    return isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException))


class DedupUploadService:
    """Content-addressed, idempotent uploads against an injected storage adapter."""

    def __init__(
        self,
        storage: AttachmentStorageProtocol,
        *,
        bucket: Optional[str] = None,
        policy: Optional[UploadPolicy] = None,
        timeouts: Optional[StorageTimeouts] = None,
    ) -> None:
        self._storage = storage
        self.bucket = bucket or get_attachments_bucket()
        self.policy = policy or policy_from_env()
        self.timeouts = timeouts or StorageTimeouts.from_env()

    async def _call(self, fn: Callable[..., Any], timeout: float, **kwargs: Any) -> Any:
        return await asyncio.wait_for(asyncio.to_thread(fn, **kwargs), timeout=timeout)

    async def _locate(self, locator: ObjectLocator, timeout: float, context: Dict[str, str]) -> ObjectLocator:
        """Return `locator` with its public URL resolved."""
        try:
            url = await self._call(self._storage.public_url, timeout, bucket=self.bucket, key=locator.key)
        except Exception as exc:
            if _is_timeout(exc):
                raise UrlResolutionFailedError("url_timeout", timed_out=True, **context) from None
            raise UrlResolutionFailedError(_describe(exc), **context) from exc
        if not url:
            raise UrlResolutionFailedError("empty_public_url", **context)
        return replace(locator, public_url=str(url))

    @staticmethod
    def _result(located: ObjectLocator, payload: FilePayload, *, is_duplicate: bool) -> UploadResult:
        return UploadResult(
            url=located.public_url,
            name=payload.name,
            type=payload.declared_type,
            is_duplicate=is_duplicate,
            locator=located,
        )

    async def upload(
        self,
        payload: FilePayload,
        owner_id: Optional[str],
        *,
        images_only: bool = False,
        timeouts: Optional[StorageTimeouts] = None,
    ) -> UploadResult:
        """Upload `payload` for `owner_id` unless identical content is already stored.

        Parameters:
            payload: File bytes with original name and declared type.
            owner_id: Authenticated owner id; None/blank uploads as guest.
            images_only: Apply the paste (image-only) policy.
            timeouts: Per-call override of the configured storage timeouts.

        Returns:
            UploadResult with the public URL; `is_duplicate` is True when no
            write was needed (or another writer stored the object first).

        Raises:
            ValidationError before any hashing or storage access;
            BackendError subclasses for storage failures.
        """
        if images_only:
            check_image_file(payload, self.policy)
        else:
            check_file(payload, self.policy)

        limits = timeouts or self.timeouts
        owner_scope = resolve_owner_scope(owner_id)
        context = {"file_name": payload.name, "owner_scope": owner_scope}

        content_key = await asyncio.to_thread(hashing.compute_content_key, payload.data)
        locator = ObjectLocator(
            folder=owner_scope,
            object_name=make_attachment_object_name(content_key=content_key, filename=payload.name),
        )

        try:
            exists = await self._call(
                self._storage.object_exists,
                limits.lookup,
                bucket=self.bucket,
                folder=locator.folder,
                name=locator.object_name,
            )
        except Exception as exc:
            if _is_timeout(exc):
                raise LookupFailedError("lookup_timeout", timed_out=True, **context) from None
            raise LookupFailedError(_describe(exc), **context) from exc

        if exists:
            located = await self._locate(locator, limits.url, context)
            _log.info("Duplicate detected: %s (reusing existing file)", payload.name)
            return self._result(located, payload, is_duplicate=True)

        content_type = normalize_mime(payload.declared_type) or "application/octet-stream"
        try:
            await self._call(
                self._storage.put_object_if_absent,
                limits.write,
                bucket=self.bucket,
                key=locator.key,
                body=payload.data,
                content_type=content_type,
            )
        except ObjectAlreadyExistsError:
            located = await self._locate(locator, limits.url, context)
            _log.info("Duplicate detected on write: %s (stored concurrently)", payload.name)
            return self._result(located, payload, is_duplicate=True)
        except Exception as exc:
            if _is_timeout(exc):
                raise AmbiguousWriteOutcomeError(f"write_timeout: {_describe(exc)}", **context) from exc
            raise WriteFailedError(_describe(exc), **context) from exc

        located = await self._locate(locator, limits.url, context)
        _log.info("Uploaded new file: %s", payload.name)
        return self._result(located, payload, is_duplicate=False)

    async def upload_attachment(
        self,
        payload: FilePayload,
        owner_id: Optional[str],
        *,
        images_only: bool = False,
    ) -> Optional[UploadResult]:
        """Upload one attachment; return None instead of raising on failure.

        Validation rejections are logged at INFO, storage failures at WARNING
        with stage, owner scope and file name for diagnosis.
        """
        try:
            return await self.upload(payload, owner_id, images_only=images_only)
        except ValidationError as exc:
            _log.info("attachment rejected: owner=%s file=%s reason=%s", resolve_owner_scope(owner_id), payload.name, exc.reason)
            return None
        except BackendError as exc:
            _log.warning(
                "attachment upload failed: stage=%s owner=%s file=%s error=%s",
                exc.stage,
                exc.owner_scope,
                exc.file_name,
                exc.detail,
            )
            return None


__all__ = ["DedupUploadService", "StorageTimeouts"]
