"""
User API endpoints.

This provides:
1. Public profile reads (served through the Redis cache)
2. Profile updates and account deletion by the owner
3. Avatar / banner upload to S3
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, File, Path, UploadFile

from tvdom.core.security import ensure_acting_user
from tvdom.dependencies import get_current_user, get_user_service
from tvdom.schemas.common import APIError, SuccessResponse
from tvdom.schemas.users import ImageUploadResponse, UserResponse, UserUpdateRequest
from tvdom.services.user_service import UserService

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={404: {"model": APIError, "description": "User not found"}},
)


@router.get("/{user_id}", summary="Get a user profile")
async def get_user(
    user_id: int, user_service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    """Profile with the denormalized counters, including average_rating."""
    return {"user": await user_service.get_profile(user_id)}


@router.put("/{user_id}", summary="Update own profile")
async def update_user(
    user_id: int,
    changes: UserUpdateRequest,
    current_user: dict = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    ensure_acting_user(current_user, user_id)
    user = await user_service.update_profile(user_id, changes.model_dump(exclude_unset=True))
    return {"success": True, "user": UserResponse.model_validate(user)}


@router.delete("/{user_id}", response_model=SuccessResponse, summary="Delete own account")
async def delete_user(
    user_id: int,
    current_user: dict = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> SuccessResponse:
    """
    Delete the account and every record it owns.

    Follow counters of users on the other side of its follow edges are
    decremented in the same transaction.
    """
    ensure_acting_user(current_user, user_id)
    await user_service.delete_user(user_id)
    return SuccessResponse()


@router.post(
    "/{user_id}/images/{kind}",
    response_model=ImageUploadResponse,
    summary="Upload avatar or banner",
)
async def upload_image(
    user_id: int,
    kind: str = Path(..., pattern="^(avatar|banner)$"),
    file: UploadFile = File(...),
    current_user: dict = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> ImageUploadResponse:
    """Store the image in S3; only the returned URL is saved on the user."""
    ensure_acting_user(current_user, user_id)
    content = await file.read()
    user = await user_service.upload_image(user_id, kind, content, file.content_type)
    url = user.avatar_url if kind == "avatar" else user.banner_url
    return ImageUploadResponse(url=url, user=UserResponse.model_validate(user))
