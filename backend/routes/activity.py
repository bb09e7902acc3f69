from __future__ import annotations

from fastapi import APIRouter

from backend.application import get_execution_service

router = APIRouter(tags=["activity"])


@router.get("/recent-activity")
async def list_recent_activity() -> dict:
    activities = get_execution_service().list_activity()
    return {"success": True, "activities": [entry.to_json() for entry in activities]}
