"""
Authentication API endpoints.

This provides:
1. User registration
2. Login with email and password
3. Session check for stored tokens

Register and login return {user, session}; the client persists the session marker
and sends its access_token back as a bearer token or tvdom_session cookie.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from tvdom.dependencies import get_auth_service, get_current_user, get_user_service
from tvdom.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from tvdom.schemas.common import APIError
from tvdom.schemas.users import UserResponse
from tvdom.services.auth_service import AuthService
from tvdom.services.user_service import UserService

# Create router with tags for API documentation
router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"model": APIError, "description": "Validation error"},
        401: {"model": APIError, "description": "Authentication failed"},
    },
)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    responses={409: {"model": APIError, "description": "Email or username already exists"}},
)
async def register(
    user_data: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Register a new user account.

    **Business Rules:**
    - Email and username must be unique
    - Password must be at least 8 characters and match confirm_password
    - Returns a session for immediate login
    """
    result = await auth_service.register_user(
        username=user_data.username,
        email=user_data.email,
        display_name=user_data.display_name,
        password=user_data.password,
    )
    return AuthResponse(**result)


@router.post("/login", response_model=AuthResponse, summary="Authenticate user")
async def login(
    credentials: LoginRequest, auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """Authenticate with email and password and issue a session."""
    result = await auth_service.authenticate_user(
        email=credentials.email, password=credentials.password
    )
    return AuthResponse(**result)


@router.get("/me", summary="Current session user")
async def current_session_user(
    current_user: dict = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    """
    Resolve the user behind the bearer token or session cookie.

    Clients call this on startup to check that a stored session is still
    accepted before trusting the stored profile.
    """
    user = await user_service.get_user(current_user["user_id"])
    return {"user": UserResponse.model_validate(user)}
