"""
HTTP client for the TVDom Resource API.

This provides:
1. One coroutine per Resource API endpoint, returning decoded JSON
2. Mapping of error responses back to the shared exception classes
3. Bearer token and session cookie handling

Transport failures and timeouts surface as UnavailableError so callers
can tell "the server said no" apart from "the server could not be reached".
"""

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from tvdom.config import settings
from tvdom.core.exceptions import UnavailableError, exception_for_status
from tvdom.core.security import SESSION_COOKIE_NAME

logger = logging.getLogger(__name__)

USER_COOKIE_NAME = "tvdom_user"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.text or response.reason_phrase or f"HTTP {response.status_code}"


class ResourceAPIClient:
    """
    Async client for /api/v1.

    Usage:
        async with ResourceAPIClient("https://tvdom.example/api/v1") as api:
            payload = await api.login("user@example.com", "secret123")
            api.set_token(payload["session"]["access_token"])
            ratings = await api.list_ratings(payload["user"]["id"])

    Tests pass `transport=httpx.ASGITransport(app=app)` or an
    `httpx.MockTransport` to run without a network.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url or settings.client_api_base_url
        self.timeout = timeout if timeout is not None else settings.client_request_timeout
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )
        self._token: Optional[str] = None

    async def __aenter__(self) -> "ResourceAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # Session credentials

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token
        self._client.headers["Authorization"] = f"Bearer {token}"

    def clear_token(self) -> None:
        self._token = None
        self._client.headers.pop("Authorization", None)

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    def set_session_cookies(self, user: Dict[str, Any], access_token: str) -> None:
        """Mirror the stored user and session token into the cookie jar."""
        user_cookie = quote(json.dumps(user, separators=(",", ":"), default=str))
        self._client.cookies.set(USER_COOKIE_NAME, user_cookie)
        self._client.cookies.set(SESSION_COOKIE_NAME, access_token)

    def clear_cookies(self) -> None:
        self._client.cookies.delete(USER_COOKIE_NAME)
        self._client.cookies.delete(SESSION_COOKIE_NAME)

    # Request plumbing

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if params:
            params = {key: value for key, value in params.items() if value is not None}

        try:
            response = await self._client.request(
                method, path, params=params, json=json_body, files=files
            )
        except httpx.TimeoutException as exc:
            logger.warning(f"{method} {path} timed out after {self.timeout}s")
            raise UnavailableError(f"Request timed out: {method} {path}") from exc
        except httpx.TransportError as exc:
            logger.warning(f"{method} {path} failed: {exc}")
            raise UnavailableError(f"Could not reach server: {exc}") from exc

        if response.is_error:
            raise exception_for_status(response.status_code, _error_message(response))

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise UnavailableError(f"Invalid response from {method} {path}") from exc

    # Auth

    async def register(
        self,
        username: str,
        email: str,
        display_name: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {
            "username": username,
            "email": email,
            "display_name": display_name,
            "password": password,
            "confirm_password": confirm_password,
        }
        return await self._request("POST", "/auth/register", json_body=body)

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self._request(
            "POST", "/auth/login", json_body={"email": email, "password": password}
        )

    async def get_session_user(self) -> Dict[str, Any]:
        payload = await self._request("GET", "/auth/me")
        return payload["user"]

    # Users

    async def get_user(self, user_id: int) -> Dict[str, Any]:
        payload = await self._request("GET", f"/users/{user_id}")
        return payload["user"]

    async def update_user(self, user_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        payload = await self._request("PUT", f"/users/{user_id}", json_body=changes)
        return payload["user"]

    async def delete_user(self, user_id: int) -> None:
        await self._request("DELETE", f"/users/{user_id}")

    async def upload_image(
        self,
        user_id: int,
        kind: str,
        content: bytes,
        content_type: str,
        filename: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Upload an avatar or banner. Returns {"url", "user"}."""
        files = {"file": (filename or f"{kind}", content, content_type)}
        return await self._request("POST", f"/users/{user_id}/images/{kind}", files=files)

    # Ratings

    async def list_ratings(self, user_id: int) -> List[Dict[str, Any]]:
        payload = await self._request("GET", "/ratings", params={"user_id": user_id})
        return payload["ratings"]

    async def rate_media(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/ratings", json_body=body)

    async def delete_rating(self, user_id: int, media_id: str) -> Dict[str, Any]:
        return await self._request(
            "DELETE", "/ratings", params={"user_id": user_id, "media_id": media_id}
        )

    # Watchlist and watched

    async def list_watchlist(self, user_id: int) -> List[Dict[str, Any]]:
        payload = await self._request("GET", "/watchlist", params={"user_id": user_id})
        return payload["watchlist"]

    async def add_to_watchlist(self, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = await self._request("POST", "/watchlist", json_body=body)
        return payload["item"]

    async def remove_from_watchlist(self, user_id: int, media_id: str) -> None:
        await self._request(
            "DELETE", "/watchlist", params={"user_id": user_id, "media_id": media_id}
        )

    async def list_watched(self, user_id: int) -> List[Dict[str, Any]]:
        payload = await self._request("GET", "/watched", params={"user_id": user_id})
        return payload["watched"]

    async def mark_as_watched(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Returns {"item", "is_rewatch", "removed_from_watchlist"}."""
        return await self._request("POST", "/watched", json_body=body)

    async def remove_from_watched(self, user_id: int, media_id: str) -> None:
        await self._request(
            "DELETE", "/watched", params={"user_id": user_id, "media_id": media_id}
        )

    # People

    async def list_person_ratings(
        self, user_id: int, person_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        payload = await self._request(
            "GET", "/person-ratings", params={"user_id": user_id, "person_id": person_id}
        )
        return payload["ratings"]

    async def rate_person(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/person-ratings", json_body=body)

    async def delete_person_rating(self, user_id: int, person_id: str) -> None:
        await self._request(
            "DELETE", "/person-ratings", params={"user_id": user_id, "person_id": person_id}
        )

    async def list_person_favorites(self, user_id: int) -> List[Dict[str, Any]]:
        payload = await self._request("GET", "/person-favorites", params={"user_id": user_id})
        return payload["favorites"]

    async def add_person_favorite(self, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = await self._request("POST", "/person-favorites", json_body=body)
        return payload["favorite"]

    async def remove_person_favorite(self, user_id: int, person_id: str) -> None:
        await self._request(
            "DELETE", "/person-favorites", params={"user_id": user_id, "person_id": person_id}
        )

    # Follows

    async def list_follows(self, user_id: int, type: str = "following") -> List[Dict[str, Any]]:
        payload = await self._request(
            "GET", "/follows", params={"user_id": user_id, "type": type}
        )
        return payload["follows"]

    async def follow_status(self, follower_id: int, following_id: int) -> bool:
        payload = await self._request(
            "GET",
            "/follows/status",
            params={"follower_id": follower_id, "following_id": following_id},
        )
        return bool(payload["is_following"])

    async def follow(self, follower_id: int, following_id: int) -> Dict[str, Any]:
        payload = await self._request(
            "POST",
            "/follows",
            json_body={"follower_id": follower_id, "following_id": following_id},
        )
        return payload["follow"]

    async def unfollow(self, follower_id: int, following_id: int) -> None:
        await self._request(
            "DELETE",
            "/follows",
            params={"follower_id": follower_id, "following_id": following_id},
        )

    # Notifications

    async def list_notifications(
        self, user_id: int, limit: int = 50, offset: int = 0, unread_only: bool = False
    ) -> List[Dict[str, Any]]:
        params = {"user_id": user_id, "limit": limit, "offset": offset}
        if unread_only:
            params["unread_only"] = "true"
        payload = await self._request("GET", "/notifications", params=params)
        return payload["notifications"]

    async def create_notification(self, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = await self._request("POST", "/notifications", json_body=body)
        return payload["notification"]

    async def mark_notifications_read(self, user_id: int, notification_ids: List[int]) -> int:
        payload = await self._request(
            "PATCH",
            "/notifications",
            json_body={
                "action": "markRead",
                "user_id": user_id,
                "notification_ids": list(notification_ids),
            },
        )
        return payload.get("modified_count", 0)

    async def mark_all_notifications_read(self, user_id: int) -> int:
        payload = await self._request(
            "PATCH", "/notifications", json_body={"action": "markAllRead", "user_id": user_id}
        )
        return payload.get("modified_count", 0)

    async def delete_notification(self, notification_id: int, user_id: int) -> None:
        await self._request(
            "DELETE",
            "/notifications",
            params={"notification_id": notification_id, "user_id": user_id},
        )

    # Activity feed and presence

    async def list_activities(
        self, user_id: int, feed_type: str = "following", limit: int = 20, offset: int = 0
    ) -> List[Dict[str, Any]]:
        payload = await self._request(
            "GET",
            "/activities",
            params={"user_id": user_id, "type": feed_type, "limit": limit, "offset": offset},
        )
        return payload["activities"]

    async def list_currently_watching(
        self, user_id: Optional[int] = None, following: bool = False
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"user_id": user_id}
        if following:
            params["following"] = "true"
        payload = await self._request("GET", "/currently-watching", params=params)
        return payload["currently_watching"]

    async def update_currently_watching(self, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = await self._request("POST", "/currently-watching", json_body=body)
        return payload["item"]

    async def stop_watching(self, user_id: int, media_id: str) -> None:
        await self._request(
            "DELETE", "/currently-watching", params={"user_id": user_id, "media_id": media_id}
        )
