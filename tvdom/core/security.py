"""
Security utilities for authentication and authorization.

This provides:
1. JWT session token creation and validation
2. Password hashing and verification
3. Security dependencies for FastAPI (bearer header or session cookie)
4. Acting-user checks for write endpoints
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from tvdom.config import settings
from tvdom.core.exceptions import AuthenticationError, AuthorizationError

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer scheme; missing header falls back to the session cookie
security = HTTPBearer(auto_error=False)

# Cookie the client mirrors its session token into
SESSION_COOKIE_NAME = "tvdom_session"


class SecurityManager:
    """
    Centralized security management for the application.

    - bcrypt password hashing
    - JWT token issue and validation
    """

    def __init__(self):
        self.secret_key = settings.secret_key
        self.algorithm = settings.algorithm
        self.access_token_expire_minutes = settings.access_token_expire_minutes

    def create_password_hash(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    def create_access_token(
        self, data: Dict[str, Any], expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a JWT access token.

        Args:
            data: Data to encode in the token (user_id, email)
            expires_delta: Optional custom expiration time

        Returns:
            Encoded JWT token string
        """
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.access_token_expire_minutes))

        to_encode.update({"exp": expire, "iat": now, "type": "access_token"})

        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def token_expiry(self, token: str) -> Optional[datetime]:
        """Expiry of an already issued token."""
        exp = self.decode_token(token).get("exp")
        if exp is None:
            return None
        return datetime.fromtimestamp(exp, tz=timezone.utc)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate a JWT token.

        Raises:
            AuthenticationError: If token is invalid or expired
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise AuthenticationError(f"Could not validate token: {str(e)}")

    def extract_user_from_token(self, token: str) -> Dict[str, Any]:
        """
        Extract user information from a JWT token.

        Raises:
            AuthenticationError: If token is invalid or doesn't contain user info
        """
        payload = self.decode_token(token)

        user_id = payload.get("user_id")
        email = payload.get("email")

        if not user_id or not email:
            raise AuthenticationError("Token does not contain valid user information")

        return {
            "user_id": int(user_id),
            "email": email,
            "is_active": payload.get("is_active", True),
        }


# Global security manager instance
security_manager = SecurityManager()


def create_user_token_data(user_id: int, email: str, is_active: bool = True) -> Dict[str, Any]:
    return {"user_id": user_id, "email": email, "is_active": is_active}


async def get_current_user_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict[str, Any]:
    """
    FastAPI dependency to extract current user from the session token.

    The token is read from the Authorization header, or from the
    tvdom_session cookie when no header is sent.

    Raises:
        AuthenticationError: If no valid token is present
    """
    token = credentials.credentials if credentials else request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        raise AuthenticationError("Authentication required")

    user_info = security_manager.extract_user_from_token(token)
    if not user_info.get("is_active"):
        raise AuthenticationError("User account is inactive")

    return user_info


def ensure_acting_user(current_user: Dict[str, Any], user_id: Any) -> None:
    """
    Check that the authenticated user is the one the request acts for.

    Raises:
        AuthorizationError: If the ids differ
    """
    if str(current_user["user_id"]) != str(user_id):
        raise AuthorizationError("Cannot act on behalf of another user")
