"""
Client-side state synchronization for the TVDom Resource API.
"""

from tvdom.client.api_client import ResourceAPIClient
from tvdom.client.notification_store import NotificationStore
from tvdom.client.session import ClientSession
from tvdom.client.session_storage import (
    SESSION_STORAGE_KEY,
    USER_STORAGE_KEY,
    FileSessionStorage,
    MemorySessionStorage,
    SessionStorage,
)
from tvdom.client.state import AuthStatus, MediaRef, NotificationState, PersonRef, UserState
from tvdom.client.user_store import UserStore

__all__ = [
    "AuthStatus",
    "ClientSession",
    "FileSessionStorage",
    "MediaRef",
    "MemorySessionStorage",
    "NotificationState",
    "NotificationStore",
    "PersonRef",
    "ResourceAPIClient",
    "SESSION_STORAGE_KEY",
    "SessionStorage",
    "USER_STORAGE_KEY",
    "UserState",
    "UserStore",
]
