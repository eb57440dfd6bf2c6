"""
Per-session wiring of the API client and the client stores.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import httpx

from tvdom.client.api_client import ResourceAPIClient
from tvdom.client.notification_store import NotificationStore
from tvdom.client.session_storage import FileSessionStorage, MemorySessionStorage, SessionStorage
from tvdom.client.state import UserState
from tvdom.client.user_store import UserStore
from tvdom.config import settings

logger = logging.getLogger(__name__)


class ClientSession:
    """
    One client session: an API client, a UserStore and a NotificationStore.

    Nothing is shared between sessions, so two sessions (or two tests)
    never see each other's state. Notification polling follows the login
    state: it starts when a user logs in and stops on logout.

    Usage:
        async with ClientSession.with_file_storage() as session:
            if not session.users.is_authenticated:
                await session.users.login("user@example.com", "secret123")
            print(session.notifications.unread_count)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        storage: Optional[SessionStorage] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        poll_notifications: bool = True,
    ):
        self.api = ResourceAPIClient(base_url, timeout=timeout, transport=transport)
        self.storage = storage or MemorySessionStorage()
        self.notifications = NotificationStore(self.api)
        self.users = UserStore(self.api, self.storage, notifications=self.notifications)
        self.poll_notifications = poll_notifications
        self._unsubscribe = self.users.subscribe(self._on_user_state)

    @classmethod
    def with_file_storage(
        cls, path: Optional[Union[str, Path]] = None, **kwargs
    ) -> "ClientSession":
        """Session whose login survives restarts, stored in a JSON file."""
        storage = FileSessionStorage(path or settings.client_session_file)
        return cls(storage=storage, **kwargs)

    def _on_user_state(self, state: UserState) -> None:
        if not self.poll_notifications or not state.is_authenticated:
            return
        if not self.notifications.is_polling:
            self.notifications.start_polling()

    async def start(self) -> bool:
        """Restore a stored login, if any. Returns True when logged in."""
        return await self.users.rehydrate()

    async def close(self) -> None:
        """Stop background work and close connections; the stored login is kept."""
        self._unsubscribe()
        self.notifications.stop_polling()
        await self.api.aclose()

    async def __aenter__(self) -> "ClientSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
