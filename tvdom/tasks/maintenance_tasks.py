"""
Background maintenance tasks.

This provides:
1. Deletion of notifications past the 90 day retention window
2. Deletion of currently-watching rows idle for 6 hours
"""

import asyncio
import logging
import time
from typing import Any, Dict

from tvdom.database import AsyncSessionLocal
from tvdom.services.currently_watching_service import CurrentlyWatchingService
from tvdom.services.notification_service import NotificationService
from tvdom.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


async def _purge_notifications(session_factory=AsyncSessionLocal) -> int:
    async with session_factory() as session:
        return await NotificationService(session).purge_expired()


async def _purge_presence(session_factory=AsyncSessionLocal) -> int:
    async with session_factory() as session:
        return await CurrentlyWatchingService(session).purge_stale()


@celery_app.task(name="purge_expired_notifications")
def purge_expired_notifications() -> Dict[str, Any]:
    """
    Delete notifications older than the retention window.

    Returns:
        Dict containing cleanup results
    """
    logger.info("Starting purge of expired notifications")

    try:
        deleted = asyncio.run(_purge_notifications())
    except Exception as exc:
        logger.error(f"Error purging notifications: {exc}")
        raise

    logger.info(f"Purged {deleted} expired notifications")
    return {"deleted_notifications": deleted, "status": "completed", "timestamp": time.time()}


@celery_app.task(name="purge_stale_currently_watching")
def purge_stale_currently_watching() -> Dict[str, Any]:
    """Delete presence rows with no activity inside the staleness window."""
    logger.info("Starting purge of stale currently-watching rows")

    try:
        deleted = asyncio.run(_purge_presence())
    except Exception as exc:
        logger.error(f"Error purging currently-watching rows: {exc}")
        raise

    return {"deleted_rows": deleted, "status": "completed", "timestamp": time.time()}
