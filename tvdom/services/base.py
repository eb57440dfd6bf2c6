"""
Base Service - Common service functionality and patterns.

This provides:
1. Common service initialization patterns
2. Error handling utilities
3. Logging helpers
4. Transaction management
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.core.cache import CacheInvalidator, cache_invalidator
from tvdom.core.exceptions import AppException, ConflictError, ServiceError

logger = logging.getLogger(__name__)


class BaseService:
    """
    Base service class providing common functionality.

    Services own the transaction: repositories only flush, and every
    mutation is committed or rolled back as a whole here.
    """

    def __init__(self, db: AsyncSession, invalidator: Optional[CacheInvalidator] = None):
        """
        Initialize service with database session.

        Args:
            db: Async database session
            invalidator: Cache invalidator for profile caches
        """
        self.db = db
        self.invalidator = invalidator or cache_invalidator
        self.logger = logger

    async def _handle_service_error(self, error: Exception, operation: str) -> None:
        """
        Centralized error handling for services.

        Rolls back, re-raises application errors as-is, maps unique
        constraint violations to ConflictError and wraps everything else.
        """
        self.logger.error(f"Service error in {operation}: {str(error)}")

        try:
            await self.db.rollback()
        except Exception as rollback_error:
            self.logger.error(f"Failed to rollback transaction: {rollback_error}")

        if isinstance(error, AppException):
            raise error
        if isinstance(error, IntegrityError):
            raise ConflictError(f"Failed to {operation}: record already exists") from error
        raise ServiceError(f"Failed to {operation}: {str(error)}") from error

    def _log_operation(self, operation: str, **kwargs) -> None:
        context = " ".join([f"{k}={v}" for k, v in kwargs.items()])
        self.logger.info(f"Service operation: {operation} {context}")

    async def _execute_in_transaction(self, operation_func, *args, **kwargs):
        """
        Execute operation in a database transaction.

        Returns:
            Result of the operation
        """
        try:
            result = await operation_func(*args, **kwargs)
            await self.db.commit()
            return result
        except Exception as error:
            await self.db.rollback()
            raise error

    async def _invalidate_users(self, *user_ids: int) -> None:
        """Drop cached profiles after a committed counter change."""
        await self.invalidator.invalidate_users(*user_ids)
