"""
Notification store: polled notifications, unread count and activity feed.

This provides:
1. A background polling task (every 30 seconds by default)
2. A minimum interval between fetches so manual refreshes don't pile up
3. Read/delete/create operations that keep unread_count in step with the list

Background fetches log and swallow failures; user-initiated mutations
raise to the caller.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional, Tuple, Union

from pydantic import ValidationError as SchemaValidationError

from tvdom.client import state as reducers
from tvdom.client.api_client import ResourceAPIClient
from tvdom.client.observable import Observable
from tvdom.client.state import NotificationState
from tvdom.config import settings
from tvdom.core.exceptions import AppException, AuthenticationError, ValidationError
from tvdom.models.enums import MediaType, NotificationType
from tvdom.models.social import BROADCAST_AUDIENCE
from tvdom.schemas.social import ActivityResponse, NotificationResponse

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 100
MAX_MESSAGE_LENGTH = 500


class NotificationStore(Observable[NotificationState]):
    """
    Mirrors the current user's notifications and following activity feed.

    Usage:
        store = NotificationStore(api)
        store.set_user(user.id)
        store.start_polling()
        ...
        store.reset()  # on logout
    """

    def __init__(
        self,
        api: ResourceAPIClient,
        *,
        poll_interval: Optional[float] = None,
        min_fetch_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(NotificationState())
        self.api = api
        self.poll_interval = poll_interval if poll_interval is not None else settings.notification_poll_interval
        self.min_fetch_interval = (
            min_fetch_interval
            if min_fetch_interval is not None
            else settings.notification_min_fetch_interval
        )
        self._clock = clock
        self.user_id: Optional[int] = None
        self._poll_task: Optional[asyncio.Task] = None
        # Bumped on reset so late responses for a previous user are dropped
        self._epoch = 0

    @property
    def notifications(self) -> Tuple[NotificationResponse, ...]:
        return self._state.notifications

    @property
    def activities(self) -> Tuple[ActivityResponse, ...]:
        return self._state.activities

    @property
    def unread_count(self) -> int:
        return self._state.unread_count

    @property
    def is_loading(self) -> bool:
        return self._state.loading

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def _require_user(self) -> int:
        if self.user_id is None:
            raise AuthenticationError("Not logged in")
        return self.user_id

    # Lifecycle

    def set_user(self, user_id: int) -> None:
        """Bind the store to a user, clearing anything held for another one."""
        if self.user_id is not None and self.user_id != user_id:
            self.reset()
        self.user_id = user_id

    def reset(self) -> None:
        """Stop polling and drop all state. Never touches the network."""
        self.stop_polling()
        self._epoch += 1
        self.user_id = None
        self._set_state(reducers.notifications_cleared(self._state))

    def start_polling(self) -> None:
        """Start the polling task on the running event loop."""
        self._require_user()
        if self.is_polling:
            return
        self._poll_task = asyncio.get_running_loop().create_task(self._poll())
        logger.debug(f"Notification polling started (every {self.poll_interval}s)")

    def stop_polling(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
            logger.debug("Notification polling stopped")

    async def _poll(self) -> None:
        first = True
        while True:
            try:
                await self.refresh(force=first, show_loading=first)
            except Exception:
                # Keep polling; the next tick retries
                logger.exception("Notification poll failed")
            first = False
            await asyncio.sleep(self.poll_interval)

    async def refresh(self, force: bool = False, show_loading: bool = False) -> None:
        """Fetch notifications and the following activity feed."""
        await self.fetch_notifications(force=force, show_loading=show_loading)
        await self.fetch_recent_activities()

    # Background reads

    async def fetch_notifications(self, force: bool = False, show_loading: bool = False) -> bool:
        """
        Reload notifications and recompute the unread count.

        Skipped when the last fetch started less than min_fetch_interval
        ago, unless forced. Returns True when new data was applied.
        """
        if self.user_id is None:
            return False

        now = self._clock()
        last = self._state.last_fetched_at
        if not force and last is not None and now - last < self.min_fetch_interval:
            logger.debug("Skipping notification fetch; fetched recently")
            return False

        user_id = self.user_id
        epoch = self._epoch
        self._set_state(reducers.notification_fetch_started(self._state, now))
        if show_loading:
            self._set_state(reducers.notification_loading_changed(self._state, True))

        try:
            items = await self.api.list_notifications(user_id)
            notifications = [NotificationResponse.model_validate(item) for item in items]
        except (AppException, SchemaValidationError) as e:
            logger.warning(f"Failed to fetch notifications for user {user_id}: {e}")
            return False
        finally:
            if show_loading and epoch == self._epoch:
                self._set_state(reducers.notification_loading_changed(self._state, False))

        if epoch != self._epoch:
            return False
        self._set_state(reducers.notifications_loaded(self._state, notifications, now))
        return True

    async def fetch_recent_activities(self, limit: int = 20) -> bool:
        if self.user_id is None:
            return False

        user_id = self.user_id
        epoch = self._epoch
        try:
            items = await self.api.list_activities(user_id, feed_type="following", limit=limit)
            activities = [ActivityResponse.model_validate(item) for item in items]
        except (AppException, SchemaValidationError) as e:
            logger.warning(f"Failed to fetch activities for user {user_id}: {e}")
            return False

        if epoch != self._epoch:
            return False
        self._set_state(reducers.activities_loaded(self._state, activities))
        return True

    # Mutations

    async def mark_as_read(self, notification_ids: Union[int, Iterable[int]]) -> None:
        user_id = self._require_user()
        ids = [notification_ids] if isinstance(notification_ids, int) else list(notification_ids)
        if not ids:
            return
        epoch = self._epoch
        await self.api.mark_notifications_read(user_id, ids)
        if epoch == self._epoch:
            self._set_state(reducers.notifications_marked_read(self._state, ids))

    async def mark_all_as_read(self) -> None:
        user_id = self._require_user()
        epoch = self._epoch
        await self.api.mark_all_notifications_read(user_id)
        if epoch == self._epoch:
            self._set_state(reducers.all_notifications_marked_read(self._state))

    async def delete_notification(self, notification_id: int) -> None:
        user_id = self._require_user()
        epoch = self._epoch
        await self.api.delete_notification(notification_id, user_id)
        if epoch == self._epoch:
            self._set_state(reducers.notification_removed(self._state, notification_id))

    async def create_notification(
        self,
        user_id: Union[int, str],
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        read: bool = False,
    ) -> NotificationResponse:
        """
        Create a notification for one user, or for everyone with user_id "all".

        The new notification is added to the local list only when the
        current user is in its audience.
        """
        self._require_user()
        data = {key: value for key, value in (data or {}).items() if value is not None}
        if not title or len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"Title must be 1-{MAX_TITLE_LENGTH} characters")
        if not message or len(message) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"Message must be 1-{MAX_MESSAGE_LENGTH} characters")
        if len(data) > settings.max_notification_data_keys:
            raise ValidationError(
                f"Notification data may hold at most {settings.max_notification_data_keys} keys"
            )

        epoch = self._epoch
        payload = await self.api.create_notification(
            {
                "user_id": user_id,
                "type": NotificationType(type).value,
                "title": title,
                "message": message,
                "data": data,
                "read": read,
            }
        )
        notification = NotificationResponse.model_validate(payload)

        audience = {BROADCAST_AUDIENCE, str(self.user_id)}
        if epoch == self._epoch and notification.user_id in audience:
            self._set_state(reducers.notification_added(self._state, notification))
        return notification

    # Helpers for the common notification kinds

    async def notify_follow(
        self,
        followed_user_id: int,
        follower_id: int,
        follower_name: str,
        follower_avatar: Optional[str] = None,
    ) -> NotificationResponse:
        return await self.create_notification(
            followed_user_id,
            NotificationType.FOLLOW,
            "New Follower",
            f"{follower_name} started following you",
            data={
                "actor_id": follower_id,
                "actor_name": follower_name,
                "actor_avatar": follower_avatar,
            },
        )

    async def notify_rating(
        self,
        user_id: int,
        actor_name: str,
        media_title: str,
        media_type: MediaType,
        rating: int,
        actor_avatar: Optional[str] = None,
        media_id: Optional[str] = None,
    ) -> NotificationResponse:
        return await self.create_notification(
            user_id,
            NotificationType.RATING,
            "New Rating",
            f"{actor_name} rated {media_title} {rating}/10",
            data={
                "actor_name": actor_name,
                "actor_avatar": actor_avatar,
                "media_id": media_id,
                "media_title": media_title,
                "media_type": MediaType(media_type).value,
                "rating": rating,
            },
        )

    async def notify_system_update(self, title: str, message: str) -> NotificationResponse:
        return await self.create_notification(
            BROADCAST_AUDIENCE, NotificationType.SYSTEM, title, message
        )

    async def notify_api_change(self, title: str, message: str) -> NotificationResponse:
        return await self.create_notification(
            BROADCAST_AUDIENCE, NotificationType.API_CHANGE, title, message
        )
