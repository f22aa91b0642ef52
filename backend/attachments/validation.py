"""
Upload validation for chat attachments.

Pure functions: no I/O, no side effects. The `check_*` helpers raise a
ValidationError subclass; the `validate_*` helpers report the same outcome as
result objects for callers that collect errors instead of raising.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .errors import FileTooLargeError, UnsupportedTypeError, ValidationError
from .models import FilePayload
from .policy import DEFAULT_POLICY, UploadPolicy, normalize_mime


@dataclass(frozen=True)
class FileValidationResult:
    valid: bool
    error: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class FilesValidationResult:
    valid_files: List[FilePayload] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def check_file(payload: FilePayload, policy: UploadPolicy = DEFAULT_POLICY) -> None:
    """Raise when `payload` violates the general attachment policy."""
    if payload.size > policy.max_size_bytes:
        raise FileTooLargeError(
            f"{payload.name} exceeds {policy.max_size_display} limit",
            file_name=payload.name,
            limit_display=policy.max_size_display,
        )
    if normalize_mime(payload.declared_type) not in policy.allowed_types:
        raise UnsupportedTypeError(
            f"{payload.name} must be {policy.allowed_types_display}",
            file_name=payload.name,
            allowed_types=tuple(sorted(policy.allowed_types)),
        )


def check_image_file(payload: FilePayload, policy: UploadPolicy = DEFAULT_POLICY) -> None:
    """Raise when a pasted image violates the image-only policy."""
    if payload.size > policy.max_size_bytes:
        raise FileTooLargeError(
            f"Image exceeds {policy.max_size_display} limit",
            file_name=payload.name,
            limit_display=policy.max_size_display,
        )
    if normalize_mime(payload.declared_type) not in policy.allowed_image_types:
        raise UnsupportedTypeError(
            f"Only {policy.allowed_image_types_display} images can be pasted",
            file_name=payload.name,
            allowed_types=tuple(sorted(policy.allowed_image_types)),
        )


def _as_result(check, payload: FilePayload, policy: UploadPolicy) -> FileValidationResult:
    try:
        check(payload, policy)
    except ValidationError as exc:
        return FileValidationResult(valid=False, error=exc.message, reason=exc.reason)
    return FileValidationResult(valid=True)


def validate_file(payload: FilePayload, policy: UploadPolicy = DEFAULT_POLICY) -> FileValidationResult:
    return _as_result(check_file, payload, policy)


def validate_image_file(payload: FilePayload, policy: UploadPolicy = DEFAULT_POLICY) -> FileValidationResult:
    return _as_result(check_image_file, payload, policy)


def validate_files(payloads: Iterable[FilePayload], policy: UploadPolicy = DEFAULT_POLICY) -> FilesValidationResult:
    """Partition `payloads` into valid files and one error message per rejected file.

    Does not stop at the first failure; both lists keep input order.
    """
    result = FilesValidationResult()
    for payload in payloads:
        outcome = validate_file(payload, policy)
        if outcome.valid:
            result.valid_files.append(payload)
        elif outcome.error:
            result.errors.append(outcome.error)
    return result


__all__ = [
    "FileValidationResult",
    "FilesValidationResult",
    "check_file",
    "check_image_file",
    "validate_file",
    "validate_image_file",
    "validate_files",
]
