"""
Watched history API endpoints.

Marking an already watched item again counts a rewatch.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from tvdom.core.security import ensure_acting_user
from tvdom.dependencies import get_current_user, get_library_service
from tvdom.schemas.common import APIError, SuccessResponse
from tvdom.schemas.library import WatchedCreate, WatchedMutationResponse, WatchedResponse
from tvdom.services.library_service import LibraryService

router = APIRouter(
    prefix="/watched",
    tags=["Watched"],
    responses={404: {"model": APIError, "description": "Not found"}},
)


@router.get("", summary="List a user's watched items")
async def list_watched(
    user_id: int = Query(...), library: LibraryService = Depends(get_library_service)
) -> Dict[str, Any]:
    items = await library.list_watched(user_id)
    return {"watched": [WatchedResponse.model_validate(item) for item in items]}


@router.post("", response_model=WatchedMutationResponse, summary="Mark as watched")
async def mark_as_watched(
    payload: WatchedCreate,
    current_user: dict = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> WatchedMutationResponse:
    """
    First watch creates the item, bumps watched_count and removes the
    media from the watchlist; later watches bump rewatch_count only.
    """
    ensure_acting_user(current_user, payload.user_id)
    result = await library.mark_as_watched(payload.user_id, payload.model_dump(exclude={"user_id"}))
    return WatchedMutationResponse(
        item=WatchedResponse.model_validate(result["item"]),
        is_rewatch=result["is_rewatch"],
        removed_from_watchlist=result["removed_from_watchlist"],
    )


@router.delete("", response_model=SuccessResponse, summary="Remove from watched")
async def remove_from_watched(
    user_id: int = Query(...),
    media_id: str = Query(..., min_length=1),
    current_user: dict = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> SuccessResponse:
    ensure_acting_user(current_user, user_id)
    await library.remove_from_watched(user_id, media_id)
    return SuccessResponse()
