"""
Follow API endpoints.

This provides:
1. Following / followers listings with the other user embedded
2. Follow status for one ordered pair
3. Follow and unfollow (edge, counters and notification in one transaction)
"""

from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends, Query, status

from tvdom.core.security import ensure_acting_user
from tvdom.dependencies import get_current_user, get_follow_service
from tvdom.schemas.common import APIError, SuccessResponse
from tvdom.schemas.social import FollowCreate, FollowResponse, FollowStatusResponse
from tvdom.schemas.users import UserSummary
from tvdom.services.follow_service import FollowService

router = APIRouter(
    prefix="/follows",
    tags=["Follows"],
    responses={
        404: {"model": APIError, "description": "User or follow not found"},
        409: {"model": APIError, "description": "Already following"},
    },
)


@router.get("", summary="List following or followers")
async def list_follows(
    user_id: int = Query(...),
    type: Literal["following", "followers"] = Query("following"),
    follow_service: FollowService = Depends(get_follow_service),
) -> Dict[str, Any]:
    if type == "followers":
        rows = await follow_service.list_followers(user_id)
    else:
        rows = await follow_service.list_following(user_id)

    follows = [
        FollowResponse(
            id=follow.id,
            follower_id=follow.follower_id,
            following_id=follow.following_id,
            created_at=follow.created_at,
            user=UserSummary.model_validate(other),
        )
        for follow, other in rows
    ]
    return {"follows": follows}


@router.get("/status", response_model=FollowStatusResponse, summary="Check a follow edge")
async def follow_status(
    follower_id: int = Query(...),
    following_id: int = Query(...),
    follow_service: FollowService = Depends(get_follow_service),
) -> FollowStatusResponse:
    return FollowStatusResponse(
        is_following=await follow_service.is_following(follower_id, following_id)
    )


@router.post("", status_code=status.HTTP_201_CREATED, summary="Follow a user")
async def follow_user(
    payload: FollowCreate,
    current_user: dict = Depends(get_current_user),
    follow_service: FollowService = Depends(get_follow_service),
) -> Dict[str, Any]:
    ensure_acting_user(current_user, payload.follower_id)
    follow = await follow_service.follow_user(payload.follower_id, payload.following_id)
    return {"success": True, "follow": FollowResponse.model_validate(follow)}


@router.delete("", response_model=SuccessResponse, summary="Unfollow a user")
async def unfollow_user(
    follower_id: int = Query(...),
    following_id: int = Query(...),
    current_user: dict = Depends(get_current_user),
    follow_service: FollowService = Depends(get_follow_service),
) -> SuccessResponse:
    ensure_acting_user(current_user, follower_id)
    await follow_service.unfollow_user(follower_id, following_id)
    return SuccessResponse()
