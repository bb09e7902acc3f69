from __future__ import annotations

import logging
import uuid
from pathlib import Path

from backend.core.settings import uploads_root
from backend.domain import StoredUpload

logger = logging.getLogger(__name__)


def ensure_uploads_root() -> Path:
    """Ensure the served uploads folder exists and return it."""

    root = uploads_root()
    root.mkdir(parents=True, exist_ok=True)
    return root


def generate_filename(original: str) -> str:
    safe = Path(original).name
    stem = Path(safe).stem or "file"
    return f"{stem}-{uuid.uuid4().hex}{Path(safe).suffix.lower()}"


def save_upload(original_name: str, content: bytes, content_type: str | None) -> StoredUpload:
    """Persist an uploaded document under a collision-resistant name."""

    root = ensure_uploads_root()
    filename = generate_filename(original_name)
    target = root / filename
    target.write_bytes(content)
    logger.info("Stored upload %s as %s (%d bytes)", original_name, filename, len(content))
    return StoredUpload(
        filename=filename,
        originalname=Path(original_name).name,
        mimetype=content_type or "application/octet-stream",
        size=len(content),
        path=str(target),
    )
