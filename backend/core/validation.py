from __future__ import annotations

import re
from pathlib import Path


class ProcurementError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str, *, error: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.error = error or message


class ValidationError(ProcurementError):
    """Raised when request data or an uploaded file fails validation."""

    status_code = 400


class NotFoundError(ProcurementError):
    """Raised when an execution or vendor does not exist."""

    status_code = 404


class ConflictError(ProcurementError):
    """Raised when a request clashes with the current execution state."""

    status_code = 409


ALLOWED_UPLOAD_PATTERN = re.compile(r"csv|excel|spreadsheetml|pdf")
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
MAX_UPLOAD_FILES = 10


def validate_upload(filename: str, content_type: str | None, size: int) -> None:
    if not ALLOWED_UPLOAD_PATTERN.search((content_type or "").lower()) and not ALLOWED_UPLOAD_PATTERN.search(
        Path(filename).suffix.lower()
    ):
        raise ValidationError("Only CSV, Excel, and PDF files are allowed!")
    if size > MAX_UPLOAD_BYTES:
        raise ValidationError(f"File too large: {filename} exceeds {MAX_UPLOAD_BYTES // (1024 * 1024)}MB")


def validate_csv_upload(filename: str | None, content_type: str | None) -> None:
    if "csv" in (content_type or "").lower():
        return
    if (filename or "").lower().endswith(".csv"):
        return
    raise ValidationError("Please upload a CSV file.")
