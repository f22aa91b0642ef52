"""Chat attachment API routes."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, File, Request, UploadFile
from fastapi.responses import JSONResponse

from backend.attachments.batch import BatchUploader
from backend.attachments.errors import BackendError, ValidationError, user_message
from backend.attachments.models import FilePayload
from backend.attachments.service import DedupUploadService
from backend.attachments.validation import validate_files
from backend.storage.ports import AttachmentStorageProtocol, NullAttachmentStorage
from backend.web.storage_wiring import wire_storage_adapter_if_configured as _wire_storage

logger = logging.getLogger("packetlab.web")

attachments_router = APIRouter(tags=["Attachments"])

STORAGE_ADAPTER: AttachmentStorageProtocol = NullAttachmentStorage()


def set_storage_adapter(adapter: AttachmentStorageProtocol) -> None:
    """Inject the storage adapter used by the attachment routes."""
    global STORAGE_ADAPTER
    STORAGE_ADAPTER = adapter


def _cache_headers() -> dict[str, str]:
    # Responses carry per-user URLs; never store them in shared caches.
    return {"Cache-Control": "private, no-store", "Vary": "Origin"}


def _storage_ready() -> bool:
    """Return True when a real adapter is wired, attempting a lazy rewire once per call."""
    if not isinstance(STORAGE_ADAPTER, NullAttachmentStorage):
        return True
    return _wire_storage() and not isinstance(STORAGE_ADAPTER, NullAttachmentStorage)


def _unavailable() -> JSONResponse:
    return JSONResponse(
        {"error": "service_unavailable", "detail": "storage_adapter_not_configured"},
        status_code=503,
        headers=_cache_headers(),
    )


def _owner_id(request: Request) -> Optional[str]:
    """Return the authenticated user's `sub`, or None for guests.

    The auth layer (outside this service) stores the user on `request.state`.
    """
    user = getattr(request.state, "user", None)
    if isinstance(user, dict):
        sub = user.get("sub")
        if sub:
            return str(sub)
    return None


async def _read_payload(upload: UploadFile, max_size_bytes: int) -> FilePayload:
    # Read one byte past the limit: enough to reject oversize files without
    # buffering the whole body.
    data = await upload.read(max_size_bytes + 1)
    return FilePayload.from_bytes(upload.filename or "file", upload.content_type or "", data)


@attachments_router.post("/api/attachments")
async def upload_attachments(request: Request, files: List[UploadFile] = File(...)):
    """Upload chat attachments with content-hash deduplication.

    Parameters:
        request: FastAPI request; the owner is taken from `request.state.user`.
        files: Multipart file parts (PDF, PNG, JPG or TXT up to the size limit).

    Returns:
        200 JSON with `items` (successful uploads in request order, each with
        url/name/type/isDuplicate), `errors` (one validation message per
        rejected file) and `summary` (total/duplicates/newUploads). Files that
        fail in storage are omitted from `items`; clients diff requested vs.
        returned names to detect them.
    """
    if not _storage_ready():
        return _unavailable()
    service = DedupUploadService(STORAGE_ADAPTER)
    payloads = [await _read_payload(f, service.policy.max_size_bytes) for f in files]
    validation = validate_files(payloads, service.policy)
    report = await BatchUploader(service).upload_all(validation.valid_files, _owner_id(request))
    body = {
        "items": [result.to_dict() for result in report.results],
        "errors": validation.errors,
        "summary": report.summary.to_dict(),
    }
    return JSONResponse(body, headers=_cache_headers())


@attachments_router.post("/api/attachments/paste")
async def paste_image(request: Request, file: UploadFile = File(...)):
    """Upload one pasted image (PNG/JPG only).

    Returns:
        200 JSON UploadResult; 400 with the validation message as `detail`;
        502 `upload_failed` when storage fails (details are only logged).
    """
    if not _storage_ready():
        return _unavailable()
    service = DedupUploadService(STORAGE_ADAPTER)
    payload = await _read_payload(file, service.policy.max_size_bytes)
    try:
        result = await service.upload(payload, _owner_id(request), images_only=True)
    except ValidationError as exc:
        return JSONResponse({"error": "bad_request", "detail": user_message(exc)}, status_code=400, headers=_cache_headers())
    except BackendError as exc:
        logger.warning(
            "paste upload failed: stage=%s owner=%s file=%s error=%s",
            exc.stage,
            exc.owner_scope,
            exc.file_name,
            exc.detail,
        )
        return JSONResponse({"error": user_message(exc)}, status_code=502, headers=_cache_headers())
    return JSONResponse(result.to_dict(), headers=_cache_headers())


__all__ = ["attachments_router", "set_storage_adapter"]
