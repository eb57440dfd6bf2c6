"""
Watchlist API endpoints.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, status

from tvdom.core.security import ensure_acting_user
from tvdom.dependencies import get_current_user, get_library_service
from tvdom.schemas.common import APIError, SuccessResponse
from tvdom.schemas.library import WatchlistCreate, WatchlistResponse
from tvdom.services.library_service import LibraryService

router = APIRouter(
    prefix="/watchlist",
    tags=["Watchlist"],
    responses={
        404: {"model": APIError, "description": "Not found"},
        409: {"model": APIError, "description": "Already in watchlist"},
    },
)


@router.get("", summary="List a user's watchlist")
async def list_watchlist(
    user_id: int = Query(...), library: LibraryService = Depends(get_library_service)
) -> Dict[str, Any]:
    items = await library.list_watchlist(user_id)
    return {"watchlist": [WatchlistResponse.model_validate(item) for item in items]}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Add to watchlist")
async def add_to_watchlist(
    payload: WatchlistCreate,
    current_user: dict = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> Dict[str, Any]:
    ensure_acting_user(current_user, payload.user_id)
    item = await library.add_to_watchlist(payload.user_id, payload.model_dump(exclude={"user_id"}))
    return {"success": True, "item": WatchlistResponse.model_validate(item)}


@router.delete("", response_model=SuccessResponse, summary="Remove from watchlist")
async def remove_from_watchlist(
    user_id: int = Query(...),
    media_id: str = Query(..., min_length=1),
    current_user: dict = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> SuccessResponse:
    ensure_acting_user(current_user, user_id)
    await library.remove_from_watchlist(user_id, media_id)
    return SuccessResponse()
