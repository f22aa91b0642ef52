"""
Content hashing for attachment deduplication.

The content key is the SHA-256 hex digest of the file bytes. It depends on the
bytes only (never on name or type) and not on how the bytes are chunked.
"""
from __future__ import annotations

import re
from hashlib import sha256 as _sha256
from typing import BinaryIO, Iterable, Union

CHUNK_SIZE = 65536
CONTENT_KEY_RE = re.compile(r"[0-9a-f]{64}")

Content = Union[bytes, bytearray, memoryview, BinaryIO, Iterable[bytes]]


def compute_content_key(data: Content) -> str:
    """Return the SHA-256 hex digest of `data`.

    Accepts raw bytes, a binary file object (read in chunks from its current
    position, not closed) or an iterable of byte chunks.
    """
    h = _sha256()
    if isinstance(data, (bytes, bytearray, memoryview)):
        h.update(data)
    elif hasattr(data, "read"):
        for chunk in iter(lambda: data.read(CHUNK_SIZE), b""):  # type: ignore[union-attr]
            h.update(chunk)
    else:
        for chunk in data:
            if chunk:
                h.update(chunk)
    return h.hexdigest()


def is_content_key(value: str) -> bool:
    return bool(CONTENT_KEY_RE.fullmatch(value or ""))


__all__ = ["CHUNK_SIZE", "compute_content_key", "is_content_key"]
