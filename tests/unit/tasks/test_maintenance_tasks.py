"""
Unit tests for the Celery maintenance tasks.
"""

from datetime import timedelta

import pytest

from tvdom.database import utcnow
from tvdom.models.enums import MediaType, NotificationType
from tvdom.models.library import CurrentlyWatching
from tvdom.models.social import Notification
from tvdom.tasks import maintenance_tasks
from tvdom.tasks.celery_app import celery_app


@pytest.mark.unit
class TestPurges:
    @pytest.mark.asyncio
    async def test_purge_notifications_keeps_recent(self, session_factory, make_user):
        alice = await make_user("alice")
        now = utcnow()
        async with session_factory() as session:
            for title, age in (("old", 120), ("older", 91), ("fresh", 3)):
                session.add(
                    Notification(
                        user_id=alice.id,
                        type=NotificationType.SYSTEM,
                        title=title,
                        message="...",
                        data={},
                        created_at=now - timedelta(days=age),
                    )
                )
            await session.commit()

        assert await maintenance_tasks._purge_notifications(session_factory) == 2
        assert await maintenance_tasks._purge_notifications(session_factory) == 0

    @pytest.mark.asyncio
    async def test_purge_presence(self, session_factory, make_user):
        alice = await make_user("alice")
        now = utcnow()
        async with session_factory() as session:
            for media_id, idle_hours in (("1", 7), ("2", 1)):
                session.add(
                    CurrentlyWatching(
                        user_id=alice.id,
                        media_id=media_id,
                        media_type=MediaType.TV,
                        media_title=f"Show {media_id}",
                        last_active_at=now - timedelta(hours=idle_hours),
                    )
                )
            await session.commit()

        assert await maintenance_tasks._purge_presence(session_factory) == 1


@pytest.mark.unit
class TestTaskWrappers:
    def test_notification_task_reports_count(self, monkeypatch):
        async def fake_purge():
            return 4

        monkeypatch.setattr(maintenance_tasks, "_purge_notifications", fake_purge)

        result = maintenance_tasks.purge_expired_notifications()

        assert result["deleted_notifications"] == 4
        assert result["status"] == "completed"

    def test_presence_task_propagates_errors(self, monkeypatch):
        async def failing_purge():
            raise RuntimeError("database down")

        monkeypatch.setattr(maintenance_tasks, "_purge_presence", failing_purge)

        with pytest.raises(RuntimeError):
            maintenance_tasks.purge_stale_currently_watching()

    def test_beat_schedule(self):
        schedule = celery_app.conf.beat_schedule

        assert schedule["purge-expired-notifications"]["schedule"] == 86400.0
        assert schedule["purge-stale-currently-watching"]["schedule"] == 3600.0
