"""
Error taxonomy for attachment uploads.

Intent:
    Separate input problems (recoverable by the caller, safe to show to users)
    from storage-boundary failures (logged with context, shown to users only as
    a generic "upload failed").

Design:
    - ValidationError: TooLarge / UnsupportedType, raised before any I/O.
    - BackendError: LookupFailed / WriteFailed / UrlResolutionFailed /
      AmbiguousWriteOutcome, raised by the upload service after mapping
      adapter exceptions.
"""

from __future__ import annotations


class AttachmentError(Exception):
    """Base class for attachment upload failures."""


# ------------------------------ Validation ----------------------------------


class ValidationError(AttachmentError):
    """Input rejected by the upload policy; `message` is user-presentable."""

    reason = "invalid"

    def __init__(self, message: str, *, file_name: str = ""):
        super().__init__(message)
        self.message = message
        self.file_name = file_name


class FileTooLargeError(ValidationError):
    """File exceeds the configured size limit."""

    reason = "too_large"

    def __init__(self, message: str, *, file_name: str = "", limit_display: str = ""):
        super().__init__(message, file_name=file_name)
        self.limit_display = limit_display


class UnsupportedTypeError(ValidationError):
    """Declared content type is not in the allowed set."""

    reason = "unsupported_type"

    def __init__(self, message: str, *, file_name: str = "", allowed_types: tuple[str, ...] = ()):
        super().__init__(message, file_name=file_name)
        self.allowed_types = allowed_types


# ------------------------------ Backend -------------------------------------


class BackendError(AttachmentError):
    """Failure at the storage boundary.

    Parameters:
        file_name: Original name of the file being uploaded.
        owner_scope: Resolved storage folder (owner id or "guest").
        detail: Backend diagnostic (exception text or reason code).
        timed_out: True when the stage hit its timeout.
    """

    stage = "storage"

    def __init__(
        self,
        detail: str,
        *,
        file_name: str = "",
        owner_scope: str = "",
        timed_out: bool = False,
    ):
        super().__init__(f"{self.stage}: {detail}")
        self.detail = detail
        self.file_name = file_name
        self.owner_scope = owner_scope
        self.timed_out = timed_out


class LookupFailedError(BackendError):
    """Existence check failed; prior state unknown, nothing was written."""

    stage = "lookup"


class WriteFailedError(BackendError):
    """The backend rejected or failed the write."""

    stage = "write"


class UrlResolutionFailedError(BackendError):
    """The stored object could not be turned into a public URL."""

    stage = "url"


class AmbiguousWriteOutcomeError(BackendError):
    """Write timed out; the object may or may not exist.

    Callers must re-check existence before retrying with the same key.
    """

    stage = "write"

    def __init__(self, detail: str = "write_timeout", **kwargs):
        kwargs.setdefault("timed_out", True)
        super().__init__(detail, **kwargs)


def user_message(exc: AttachmentError) -> str:
    """Return the message that may be shown to end users for `exc`."""
    if isinstance(exc, ValidationError):
        return exc.message
    return "upload_failed"


__all__ = [
    "AttachmentError",
    "ValidationError",
    "FileTooLargeError",
    "UnsupportedTypeError",
    "BackendError",
    "LookupFailedError",
    "WriteFailedError",
    "UrlResolutionFailedError",
    "AmbiguousWriteOutcomeError",
    "user_message",
]
