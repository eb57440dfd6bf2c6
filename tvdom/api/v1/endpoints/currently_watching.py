"""
Currently-watching presence API endpoints.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from tvdom.core.security import ensure_acting_user
from tvdom.dependencies import get_current_user, get_currently_watching_service
from tvdom.schemas.common import SuccessResponse
from tvdom.schemas.library import CurrentlyWatchingCreate, CurrentlyWatchingResponse
from tvdom.schemas.users import UserSummary
from tvdom.services.currently_watching_service import CurrentlyWatchingService

router = APIRouter(prefix="/currently-watching", tags=["Currently Watching"])


def _to_response(row, user) -> CurrentlyWatchingResponse:
    response = CurrentlyWatchingResponse.model_validate(row)
    if user is not None:
        response.user = UserSummary.model_validate(user)
    return response


@router.get("", summary="Who is watching what")
async def list_currently_watching(
    user_id: Optional[int] = Query(None),
    following: bool = Query(False),
    service: CurrentlyWatchingService = Depends(get_currently_watching_service),
) -> Dict[str, Any]:
    """Stale rows (no activity for 6 hours) are purged before reading."""
    rows = await service.list_presence(user_id, following)
    return {"currently_watching": [_to_response(r["row"], r["user"]) for r in rows]}


@router.post("", summary="Start or refresh watching")
async def update_currently_watching(
    payload: CurrentlyWatchingCreate,
    current_user: dict = Depends(get_current_user),
    service: CurrentlyWatchingService = Depends(get_currently_watching_service),
) -> Dict[str, Any]:
    ensure_acting_user(current_user, payload.user_id)
    row = await service.update_presence(payload.user_id, payload.model_dump(exclude={"user_id"}))
    return {"success": True, "item": CurrentlyWatchingResponse.model_validate(row)}


@router.delete("", response_model=SuccessResponse, summary="Stop watching")
async def stop_watching(
    user_id: int = Query(...),
    media_id: str = Query(..., min_length=1),
    current_user: dict = Depends(get_current_user),
    service: CurrentlyWatchingService = Depends(get_currently_watching_service),
) -> SuccessResponse:
    ensure_acting_user(current_user, user_id)
    await service.stop_watching(user_id, media_id)
    return SuccessResponse()
