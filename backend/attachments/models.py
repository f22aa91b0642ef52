"""Value types for attachment uploads."""
from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional


@dataclass(frozen=True)
class FilePayload:
    """File bytes plus the metadata captured when the file was received."""

    name: str
    declared_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_bytes(cls, name: str, declared_type: str, data: bytes) -> "FilePayload":
        return cls(name=name, declared_type=declared_type or "", data=bytes(data))

    @classmethod
    def from_path(
        cls, path: str | Path, declared_type: str | None = None, *, max_size_bytes: int | None = None
    ) -> "FilePayload":
        """Read a local file; the type is guessed from the extension when not given.

        With `max_size_bytes`, a larger file is read only up to one byte past
        the limit: enough for validation to reject it without loading it all.
        """
        p = Path(path)
        if declared_type is None:
            declared_type = mimetypes.guess_type(p.name)[0] or "application/octet-stream"
        if max_size_bytes is not None and p.stat().st_size > max_size_bytes:
            with p.open("rb") as fh:
                data = fh.read(max_size_bytes + 1)
        else:
            data = p.read_bytes()
        return cls(name=p.name, declared_type=declared_type, data=data)


@dataclass(frozen=True)
class ObjectLocator:
    """Deterministic location of a stored attachment."""

    folder: str
    object_name: str
    public_url: str = ""

    @property
    def key(self) -> str:
        return f"{self.folder}/{self.object_name}"


@dataclass(frozen=True)
class UploadResult:
    """Outcome of one upload.

    `is_duplicate` means the object already existed at the time of the check
    (or another writer won the race); both paths carry a usable URL.
    """

    url: str
    name: str
    type: str
    is_duplicate: bool
    locator: Optional[ObjectLocator] = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, object]:
        return {"url": self.url, "name": self.name, "type": self.type, "isDuplicate": self.is_duplicate}

    def as_message_attachment(self) -> Dict[str, str]:
        """Shape used for attachments on chat messages."""
        return {"name": self.name, "url": self.url, "type": self.type}


@dataclass(frozen=True)
class BatchSummary:
    total: int
    duplicates: int
    new_uploads: int

    def to_dict(self) -> Dict[str, int]:
        return {"total": self.total, "duplicates": self.duplicates, "newUploads": self.new_uploads}


@dataclass
class BatchUploadReport:
    """Successful results in input order plus the names of omitted files."""

    results: List[UploadResult]
    failed: List[str]
    summary: BatchSummary


__all__ = [
    "FilePayload",
    "ObjectLocator",
    "UploadResult",
    "BatchSummary",
    "BatchUploadReport",
]
