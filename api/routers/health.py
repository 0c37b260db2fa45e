"""
Health Router - Health checks and system status endpoints
"""

from fastapi import APIRouter, Depends
from typing import Dict, Any

from api.dependencies import get_app_state, AppState

router = APIRouter()


@router.get("/ready")
async def health_check_ready(state: AppState = Depends(get_app_state)) -> Dict[str, Any]:
    """
    Kubernetes readiness probe.

    Returns ready=True once the catalog, room store and coordinator are wired.
    """
    return {
        "ready": state.is_ready(),
        "details": state.get_status()
    }


@router.get("/rooms")
async def get_room_stats(state: AppState = Depends(get_app_state)) -> Dict[str, Any]:
    """Active room count and codes currently indexed."""
    if state.store is None:
        return {"active_rooms": 0, "codes": []}
    codes = state.store.codes()
    return {"active_rooms": len(codes), "codes": sorted(codes)}
