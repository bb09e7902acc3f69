from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, File, HTTPException, UploadFile

from backend.core.importer import import_materials
from backend.core.uploads import save_upload
from backend.core.validation import MAX_UPLOAD_FILES, validate_upload

router = APIRouter(tags=["upload"])

UPLOAD_CHUNK_BYTES = 1024 * 1024


async def _read_within_limit(upload: UploadFile) -> bytes:
    """Read an upload in chunks, stopping as soon as it passes the size limit."""
    filename = upload.filename or ""
    validate_upload(filename, upload.content_type, 0)
    chunks: list[bytes] = []
    size = 0
    while True:
        chunk = await upload.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        size += len(chunk)
        validate_upload(filename, upload.content_type, size)
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/upload")
async def upload_files(files: list[UploadFile] | None = File(default=None)) -> dict:
    """Store one or more CSV, Excel or PDF documents under the uploads folder."""
    if not files:
        raise HTTPException(status_code=400, detail="No files were uploaded.")
    if len(files) > MAX_UPLOAD_FILES:
        raise HTTPException(status_code=400, detail=f"At most {MAX_UPLOAD_FILES} files can be uploaded at once.")

    received: list[tuple[UploadFile, bytes]] = []
    try:
        for upload in files:
            if not upload.filename:
                raise HTTPException(status_code=400, detail="Uploaded file must have a filename")
            received.append((upload, await _read_within_limit(upload)))
    finally:
        for upload in files:
            await upload.close()

    stored = [asdict(save_upload(upload.filename or "", content, upload.content_type)) for upload, content in received]
    return {"success": True, "message": "Files uploaded successfully", "files": stored}


@router.post("/import-materials-csv")
async def import_materials_csv(file: UploadFile | None = File(default=None)) -> dict:
    if file is None:
        raise HTTPException(status_code=400, detail="No file was uploaded.")
    try:
        content = await file.read()
    finally:
        await file.close()

    result = import_materials(content, file.filename, file.content_type)
    return {
        "success": True,
        "message": "CSV imported successfully",
        "materials": [material.to_json() for material in result.materials],
        "certification": result.certification,
    }
