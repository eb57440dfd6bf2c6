"""
Favorite people API endpoints.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, status

from tvdom.core.security import ensure_acting_user
from tvdom.dependencies import get_current_user, get_library_service
from tvdom.schemas.common import APIError, SuccessResponse
from tvdom.schemas.library import PersonFavoriteCreate, PersonFavoriteResponse
from tvdom.services.library_service import LibraryService

router = APIRouter(
    prefix="/person-favorites",
    tags=["Person Favorites"],
    responses={
        404: {"model": APIError, "description": "Not found"},
        409: {"model": APIError, "description": "Already a favorite"},
    },
)


@router.get("", summary="List a user's favorite people")
async def list_person_favorites(
    user_id: int = Query(...), library: LibraryService = Depends(get_library_service)
) -> Dict[str, Any]:
    favorites = await library.list_person_favorites(user_id)
    return {"favorites": [PersonFavoriteResponse.model_validate(f) for f in favorites]}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Add a favorite person")
async def add_person_favorite(
    payload: PersonFavoriteCreate,
    current_user: dict = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> Dict[str, Any]:
    ensure_acting_user(current_user, payload.user_id)
    favorite = await library.add_person_favorite(
        payload.user_id, payload.model_dump(exclude={"user_id"})
    )
    return {"success": True, "favorite": PersonFavoriteResponse.model_validate(favorite)}


@router.delete("", response_model=SuccessResponse, summary="Remove a favorite person")
async def remove_person_favorite(
    user_id: int = Query(...),
    person_id: str = Query(..., min_length=1),
    current_user: dict = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> SuccessResponse:
    ensure_acting_user(current_user, user_id)
    await library.remove_person_favorite(user_id, person_id)
    return SuccessResponse()
