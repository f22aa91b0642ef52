"""
Supabase-backed storage adapter for chat attachments.

This adapter implements AttachmentStorageProtocol using a provided Supabase
client. It is intentionally duck-typed to avoid a hard dependency during
testing. The client is expected to expose `.storage.from_(bucket)` (or
`.from_(bucket)` for a bare storage3 client) which returns an object offering:

- list(folder, {"search": name, ...}) -> [{name, ...}, ...]
- upload(path, body, file_options) -> UploadResponse | Response | dict
- get_public_url(path) -> str | {publicURL | publicUrl}

Security:
- The caller must ensure the client is initialized with the Service Role key.
- The attachments bucket is public: stored objects are reachable by anyone who
  knows the content-addressed URL.
"""
from __future__ import annotations

from typing import Any, Dict
import os
from urllib.parse import urlparse as _urlparse, urlunparse as _urlunparse

from .config import get_cache_control_seconds
from .ports import AttachmentStorageProtocol, ObjectAlreadyExistsError


def _is_already_exists_error(exc: Exception) -> bool:
    """Return True when a client exception reports an existing object.

    Supabase Storage answers a non-upsert write to a taken key with
    `{"statusCode": "409", "error": "Duplicate", "message": "The resource already exists"}`;
    client versions surface that as attributes or only in the message.
    """
    for attr in ("status", "status_code", "statusCode"):
        value = getattr(exc, attr, None)
        if value is not None and str(value).strip() == "409":
            return True
    code = str(getattr(exc, "code", "") or getattr(exc, "error", "") or "")
    if code.strip().lower() == "duplicate":
        return True
    text = str(exc).lower()
    return "already exists" in text or "duplicate" in text


class SupabaseAttachmentStorage(AttachmentStorageProtocol):
    """Storage adapter using a supabase client for attachment objects."""

    def __init__(self, client: Any, *, cache_control_seconds: int | None = None):
        # Duck-typed supabase client, e.g., from `supabase import create_client(...)`.
        self._client = client
        self._cache_control = int(cache_control_seconds or get_cache_control_seconds())

    # --- Helpers -----------------------------------------------------------------

    def _bucket(self, bucket: str) -> Any:
        """Return a bucket proxy from either supabase client or storage3 client.

        Supports two client shapes:
        - supabase.create_client(...): expose `.storage.from_(bucket)`
        - storage3 SyncStorageClient: expose `.from_(bucket)` directly
        """
        c = self._client
        storage = getattr(c, "storage", None)
        if storage is not None and hasattr(storage, "from_"):
            return storage.from_(bucket)
        if hasattr(c, "from_"):
            return c.from_(bucket)  # type: ignore[attr-defined]
        raise RuntimeError("invalid_supabase_client")

    @staticmethod
    def _first_key(d: Dict[str, Any], *keys: str) -> Any:
        for k in keys:
            if k in d and d[k] is not None:
                return d[k]
        return None

    @staticmethod
    def _relative_key(bucket: str, key: str) -> str:
        # Normalize key to be relative to the bucket (storage3 prepends the bucket id)
        norm_key = key.lstrip("/")
        prefix = f"{bucket}/"
        if norm_key.startswith(prefix):
            norm_key = norm_key[len(prefix):]
        return norm_key

    # --- Protocol methods --------------------------------------------------------

    def object_exists(self, *, bucket: str, folder: str, name: str) -> bool:
        """Return True when `folder/name` exists.

        Storage `list(..., search=...)` is a prefix search, so results are
        filtered for an exact name match.
        """
        b = self._bucket(bucket)
        res = b.list(folder.strip("/"), {"search": name, "limit": 100})
        if isinstance(res, dict):
            res = res.get("data") or []
        for item in res or []:
            item_name = item.get("name") if isinstance(item, dict) else getattr(item, "name", None)
            if item_name == name:
                return True
        return False

    def put_object_if_absent(self, *, bucket: str, key: str, body: bytes, content_type: str) -> str:
        """Upload `body` to `key` without overwriting.

        Raises:
            ObjectAlreadyExistsError when the key is already taken; other
            client exceptions propagate unchanged.
        """
        b = self._bucket(bucket)
        norm_key = self._relative_key(bucket, key)
        opts = {
            "content-type": content_type,
            "cache-control": str(self._cache_control),
            "upsert": "false",
            "x-upsert": "false",
        }
        try:
            res = b.upload(norm_key, body, opts)
        except Exception as exc:
            if _is_already_exists_error(exc):
                raise ObjectAlreadyExistsError(norm_key) from exc
            raise
        # Older clients hand back the raw HTTP response instead of raising.
        status = getattr(res, "status_code", None)
        if isinstance(status, int) and status >= 400:
            if status == 409:
                raise ObjectAlreadyExistsError(norm_key)
            raise RuntimeError(f"upload_failed: status={status}")
        path = getattr(res, "path", None)
        if isinstance(res, dict):
            path = self._first_key(res, "path", "Key", "key")
        if isinstance(path, str) and path:
            return self._relative_key(bucket, path)
        return norm_key

    def public_url(self, *, bucket: str, key: str) -> str:
        b = self._bucket(bucket)
        norm_key = self._relative_key(bucket, key)
        res = b.get_public_url(norm_key)
        url = None
        if isinstance(res, str):
            url = res
        elif isinstance(res, dict):
            url = self._first_key(res, "publicURL", "publicUrl", "public_url")
            data = res.get("data") if "data" in res else None
            if url is None and isinstance(data, dict):
                url = self._first_key(data, "publicURL", "publicUrl", "public_url")
        if not url:
            raise RuntimeError("failed_to_resolve_public_url")
        return self._normalize_public_url_host(str(url))

    # --- Local helpers ---------------------------------------------------------

    def _normalize_public_url_host(self, url: str) -> str:
        """Rewrite public URLs to the browser-facing Supabase host.

        Why:
            Server-side clients often talk to an internal gateway (e.g. the
            Kong container) whose host is not reachable from browsers. When
            SUPABASE_PUBLIC_URL is set, scheme and host:port are taken from it;
            path and query are preserved.
        """
        public_base = (os.getenv("SUPABASE_PUBLIC_URL") or "").strip()
        if not public_base:
            return url
        src = _urlparse(url)
        dst = _urlparse(public_base)
        if not src.scheme or not src.netloc or not dst.scheme or not dst.netloc:
            return url
        if (src.scheme, src.netloc) == (dst.scheme, dst.netloc):
            return url
        path = src.path or "/"
        base_path = (dst.path or "").rstrip("/")
        if base_path and not path.startswith(base_path + "/"):
            path = base_path + path
        return _urlunparse((dst.scheme, dst.netloc, path, src.params, src.query, src.fragment))


__all__ = ["SupabaseAttachmentStorage"]
