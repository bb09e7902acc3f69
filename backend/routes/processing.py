from __future__ import annotations

from fastapi import APIRouter

from backend.workers.processing import get_processing_worker

router = APIRouter(prefix="/process-materials", tags=["processing"])


@router.post("/{execution_id}")
async def start_processing(execution_id: str) -> dict:
    """Kick off the background outreach run and return without waiting for it."""
    execution = await get_processing_worker().start(execution_id)
    return {"success": True, "message": "Processing started", "execution": execution.to_json()}


@router.get("/{execution_id}/status")
async def get_processing_status(execution_id: str) -> dict:
    execution = get_processing_worker().status(execution_id)
    data = execution.to_json()
    return {"success": True, "processingStatus": data["processingStatus"], "status": data["status"]}


@router.post("/{execution_id}/cancel")
async def cancel_processing(execution_id: str) -> dict:
    execution = get_processing_worker().cancel(execution_id)
    return {"success": True, "message": "Processing cancelled", "execution": execution.to_json()}
