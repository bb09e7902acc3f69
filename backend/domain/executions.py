"""Domain entities for execution processing and uploads."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass


@dataclass(slots=True)
class ProcessingJob:
    """A background processing run bound to an execution."""

    execution_id: str
    task: asyncio.Task | None = None
    cancelled: bool = False


@dataclass(slots=True)
class StoredUpload:
    """Metadata for a document persisted under the uploads folder."""

    filename: str
    originalname: str
    mimetype: str
    size: int
    path: str
