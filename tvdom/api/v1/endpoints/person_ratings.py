"""
Person rating API endpoints.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from tvdom.core.security import ensure_acting_user
from tvdom.dependencies import get_current_user, get_person_rating_service
from tvdom.schemas.common import APIError, SuccessResponse
from tvdom.schemas.library import PersonRatingCreate, PersonRatingResponse
from tvdom.services.rating_service import PersonRatingService

router = APIRouter(
    prefix="/person-ratings",
    tags=["Person Ratings"],
    responses={404: {"model": APIError, "description": "Not found"}},
)


@router.get("", summary="List a user's person ratings")
async def list_person_ratings(
    user_id: int = Query(...),
    person_id: Optional[str] = Query(None),
    service: PersonRatingService = Depends(get_person_rating_service),
) -> Dict[str, Any]:
    ratings = await service.list_ratings(user_id, person_id)
    return {"ratings": [PersonRatingResponse.model_validate(r) for r in ratings]}


@router.post("", summary="Rate a person")
async def rate_person(
    payload: PersonRatingCreate,
    current_user: dict = Depends(get_current_user),
    service: PersonRatingService = Depends(get_person_rating_service),
) -> Dict[str, Any]:
    ensure_acting_user(current_user, payload.user_id)
    result = await service.rate_person(
        payload.user_id, payload.person_id, payload.model_dump(exclude={"user_id", "person_id"})
    )
    return {
        "success": True,
        "rating": PersonRatingResponse.model_validate(result["rating"]),
        "created": result["created"],
    }


@router.delete("", response_model=SuccessResponse, summary="Delete a person rating")
async def delete_person_rating(
    user_id: int = Query(...),
    person_id: str = Query(..., min_length=1),
    current_user: dict = Depends(get_current_user),
    service: PersonRatingService = Depends(get_person_rating_service),
) -> SuccessResponse:
    ensure_acting_user(current_user, user_id)
    await service.delete_rating(user_id, person_id)
    return SuccessResponse()
