"""
Authentication Service - Business logic for user authentication.

This provides:
1. User registration workflow
2. Login with email and password
3. Session payload ({user, session}) for the client to persist
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.core.exceptions import AuthenticationError
from tvdom.core.security import create_user_token_data, security_manager
from tvdom.models.user import User
from tvdom.schemas.users import UserResponse
from tvdom.services.base import BaseService
from tvdom.services.user_service import UserService


class AuthService(BaseService):
    """
    Authentication service handling all auth-related business logic.

    Both register and login return the same shape so the client treats
    them identically.
    """

    def __init__(self, db: AsyncSession, **kwargs):
        super().__init__(db, **kwargs)
        self.user_service = UserService(db, **kwargs)

    async def register_user(
        self, username: str, email: str, display_name: str, password: str
    ) -> Dict[str, Any]:
        """
        Register a new user and log them in.

        Raises:
            ValidationError: If the password is too short
            ConflictError: If email or username already exists
        """
        self._log_operation("register_user", email=email, username=username)

        try:
            user = await self._execute_in_transaction(
                self.user_service.create_user, username, email, display_name, password
            )
        except Exception as error:
            await self._handle_service_error(error, "register user")

        self.logger.info(f"User registered successfully: {user.id}")
        return self._session_payload(user)

    async def authenticate_user(self, email: str, password: str) -> Dict[str, Any]:
        """
        Authenticate user and issue a session.

        Raises:
            AuthenticationError: If credentials are invalid
        """
        self._log_operation("authenticate_user", email=email)

        try:
            user = await self._execute_in_transaction(
                self.user_service.authenticate_user, email, password
            )
        except Exception as error:
            await self._handle_service_error(error, "authenticate user")

        if not user:
            self.logger.warning(f"Failed login attempt for {email}")
            raise AuthenticationError("Invalid email or password")

        self.logger.info(f"User logged in: {user.id}")
        return self._session_payload(user)

    def _session_payload(self, user: User) -> Dict[str, Any]:
        token = security_manager.create_access_token(
            create_user_token_data(user.id, user.email, user.is_active)
        )
        return {
            "user": UserResponse.model_validate(user),
            "session": {
                "user_id": user.id,
                "access_token": token,
                "token_type": "bearer",
                "expires_at": security_manager.token_expiry(token),
            },
        }
