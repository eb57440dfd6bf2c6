"""
API v1 router - Combines all API endpoints.
"""

from fastapi import APIRouter

from tvdom.api.v1.endpoints import (
    activities,
    auth,
    currently_watching,
    follows,
    notifications,
    person_favorites,
    person_ratings,
    ratings,
    users,
    watched,
    watchlist,
)

# Create the main API router for version 1
api_router = APIRouter(prefix="/v1")

# Include all endpoint routers
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(ratings.router)
api_router.include_router(watchlist.router)
api_router.include_router(watched.router)
api_router.include_router(person_ratings.router)
api_router.include_router(person_favorites.router)
api_router.include_router(follows.router)
api_router.include_router(notifications.router)
api_router.include_router(activities.router)
api_router.include_router(currently_watching.router)

# API metadata for documentation
tags_metadata = [
    {"name": "Authentication", "description": "Registration and login"},
    {"name": "Users", "description": "Profiles, counters and account deletion"},
    {"name": "Ratings", "description": "Movie and TV ratings"},
    {"name": "Watchlist", "description": "Media a user plans to watch"},
    {"name": "Watched", "description": "Watch history with rewatch counts"},
    {"name": "Person Ratings", "description": "Ratings for actors and crew"},
    {"name": "Person Favorites", "description": "Favorite actors and crew"},
    {"name": "Follows", "description": "The follow graph"},
    {"name": "Notifications", "description": "Personal and broadcast notifications"},
    {"name": "Activities", "description": "Social activity feed"},
    {"name": "Currently Watching", "description": "Live watching presence"},
]
