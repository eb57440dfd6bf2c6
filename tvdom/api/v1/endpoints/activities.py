"""
Activity feed API endpoints.
"""

from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends, Query

from tvdom.dependencies import PaginationParams, get_activity_service, get_pagination_params
from tvdom.schemas.social import ActivityResponse
from tvdom.services.activity_service import ActivityService

router = APIRouter(prefix="/activities", tags=["Activities"])


@router.get("", summary="Recent ratings and follows")
async def list_activities(
    user_id: int = Query(...),
    type: Literal["following", "all"] = Query("following"),
    pagination: PaginationParams = Depends(get_pagination_params),
    activity_service: ActivityService = Depends(get_activity_service),
) -> Dict[str, Any]:
    """
    **Feeds:**
    - following: people user_id follows, last 7 days
    - all: everyone, last 24 hours
    """
    activities = await activity_service.get_feed(
        user_id, type, limit=pagination.limit, offset=pagination.offset
    )
    return {"activities": [ActivityResponse(**a) for a in activities]}
