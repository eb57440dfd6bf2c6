"""
Rating API endpoints.

POST upserts: re-rating the same media overwrites the existing rating.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from tvdom.core.security import ensure_acting_user
from tvdom.dependencies import get_current_user, get_rating_service
from tvdom.schemas.common import APIError
from tvdom.schemas.library import RatingCreate, RatingMutationResponse, RatingResponse
from tvdom.services.rating_service import RatingService

router = APIRouter(
    prefix="/ratings",
    tags=["Ratings"],
    responses={404: {"model": APIError, "description": "Not found"}},
)


@router.get("", summary="List a user's ratings")
async def list_ratings(
    user_id: int = Query(...), rating_service: RatingService = Depends(get_rating_service)
) -> Dict[str, Any]:
    ratings = await rating_service.list_ratings(user_id)
    return {"ratings": [RatingResponse.model_validate(r) for r in ratings]}


@router.post("", response_model=RatingMutationResponse, summary="Rate a movie or show")
async def rate_media(
    payload: RatingCreate,
    current_user: dict = Depends(get_current_user),
    rating_service: RatingService = Depends(get_rating_service),
) -> RatingMutationResponse:
    ensure_acting_user(current_user, payload.user_id)
    result = await rating_service.rate_media(
        payload.user_id,
        payload.media_id,
        payload.model_dump(exclude={"user_id", "media_id"}),
    )
    return RatingMutationResponse(
        rating=RatingResponse.model_validate(result["rating"]),
        created=result["created"],
        average_rating=result["average_rating"],
        total_ratings=result["total_ratings"],
    )


@router.delete("", summary="Delete a rating")
async def delete_rating(
    user_id: int = Query(...),
    media_id: str = Query(..., min_length=1),
    current_user: dict = Depends(get_current_user),
    rating_service: RatingService = Depends(get_rating_service),
) -> Dict[str, Any]:
    ensure_acting_user(current_user, user_id)
    result = await rating_service.delete_rating(user_id, media_id)
    return {"success": True, "average_rating": result["average_rating"]}
