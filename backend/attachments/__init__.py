"""Chat attachment uploads with content-hash deduplication.

Re-export the caller-facing API for convenient imports in routes, tools and tests.
"""

from .batch import BatchUploader
from .errors import AttachmentError, BackendError, ValidationError
from .models import BatchSummary, BatchUploadReport, FilePayload, ObjectLocator, UploadResult
from .service import DedupUploadService, StorageTimeouts
from .validation import validate_file, validate_files, validate_image_file

__all__ = [
    "AttachmentError",
    "BackendError",
    "BatchSummary",
    "BatchUploadReport",
    "BatchUploader",
    "DedupUploadService",
    "FilePayload",
    "ObjectLocator",
    "StorageTimeouts",
    "UploadResult",
    "ValidationError",
    "validate_file",
    "validate_files",
    "validate_image_file",
]
