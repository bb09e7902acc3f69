from __future__ import annotations

import asyncio

from fastapi import APIRouter

from backend.application import get_execution_service
from backend.core import settings
from backend.core.schema import ExecutionCreate, ExecutionStatus, ExecutionUpdate, VendorStatusUpdate

router = APIRouter(prefix="/executions", tags=["executions"])


@router.get("")
async def list_executions() -> dict:
    service = get_execution_service()
    items = service.list_executions()
    return {"success": True, "executions": [item.to_json() for item in items]}


@router.get("/status/{status}")
async def list_executions_by_status(status: ExecutionStatus) -> dict:
    service = get_execution_service()
    items = service.list_executions(status)
    return {"success": True, "executions": [item.to_json() for item in items]}


@router.get("/{execution_id}")
async def get_execution(execution_id: str) -> dict:
    execution = get_execution_service().get_execution(execution_id)
    return {"success": True, "execution": execution.to_json()}


@router.post("", status_code=201)
async def create_execution(payload: ExecutionCreate) -> dict:
    execution = get_execution_service().create_execution(payload)
    return {
        "success": True,
        "message": "Execution created successfully",
        "execution": execution.to_json(),
    }


@router.put("/{execution_id}")
async def update_execution(execution_id: str, payload: ExecutionUpdate) -> dict:
    execution = get_execution_service().update_execution(execution_id, payload)
    return {
        "success": True,
        "message": "Execution updated successfully",
        "execution": execution.to_json(),
    }


@router.delete("/{execution_id}")
async def delete_execution(execution_id: str) -> dict:
    get_execution_service().delete_execution(execution_id)
    return {"success": True, "message": "Execution deleted successfully"}


@router.post("/{execution_id}/research")
async def trigger_research(execution_id: str) -> dict:
    """Attach mock vendors and mark the execution as contacted."""
    execution = get_execution_service().trigger_research(execution_id)
    delay = settings.research_delay()
    if delay:
        await asyncio.sleep(delay)
    return {
        "success": True,
        "message": "Research triggered successfully",
        "execution": execution.to_json(),
    }


@router.put("/{execution_id}/vendors/{vendor_index}")
async def update_vendor_status(execution_id: str, vendor_index: int, payload: VendorStatusUpdate) -> dict:
    execution = get_execution_service().update_vendor_status(
        execution_id,
        vendor_index,
        payload.status,
        notes=payload.notes,
    )
    return {
        "success": True,
        "message": "Vendor status updated successfully",
        "execution": execution.to_json(),
    }
