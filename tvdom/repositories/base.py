"""
Base Repository - Generic repository with common CRUD operations.

This provides:
1. Generic CRUD operations for all models
2. Type safety with generics
3. Consistent interface across all repositories
4. Async database operations

Repositories flush but never commit: the calling service owns the
transaction, so a multi-table mutation is committed or rolled back as one.
"""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.database import Base

# Generic type for any database model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository providing common CRUD operations.

    - All specific repositories inherit from this
    - Provides type-safe operations
    - Consistent interface across the application
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model type and database session.

        Args:
            model: The SQLAlchemy model class (User, Rating, etc.)
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, obj_data: Dict[str, Any]) -> ModelType:
        """
        Create a new record.

        Args:
            obj_data: Dictionary of field values

        Returns:
            Created model instance (flushed, id assigned)
        """
        db_obj = self.model(**obj_data)
        self.db.add(db_obj)
        await self.db.flush()
        await self.db.refresh(db_obj)
        return db_obj

    async def get(self, id: int) -> Optional[ModelType]:
        """
        Get a single record by ID.

        Args:
            id: Primary key value

        Returns:
            Model instance or None if not found
        """
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def update(self, id: int, obj_data: Dict[str, Any]) -> Optional[ModelType]:
        """
        Update a record by ID.

        Args:
            id: Primary key value
            obj_data: Dictionary of fields to update

        Returns:
            Updated model instance or None if not found
        """
        db_obj = await self.get(id)
        if not db_obj:
            return None

        for field, value in obj_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        await self.db.flush()
        await self.db.refresh(db_obj)
        return db_obj

    async def delete(self, id: int) -> bool:
        """
        Delete a record by ID.

        Returns:
            True if deleted, False if not found
        """
        result = await self.db.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount > 0

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """
        Count records with optional filters.

        Args:
            filters: Dictionary of field:value filters

        Returns:
            Number of matching records
        """
        query = select(func.count(self.model.id))

        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field):
                    query = query.where(getattr(self.model, field) == value)

        result = await self.db.execute(query)
        return result.scalar() or 0

    async def exists(self, id: int) -> bool:
        result = await self.db.execute(select(self.model.id).where(self.model.id == id))
        return result.first() is not None


class UserItemRepository(BaseRepository[ModelType]):
    """
    Repository for per-user collections keyed on one subject column.

    Subclasses set `subject_field` ("media_id" or "person_id") and
    `order_field` (newest first).
    """

    subject_field: str = "media_id"
    order_field: str = "created_at"

    def _subject_column(self):
        return getattr(self.model, self.subject_field)

    async def list_for_user(
        self, user_id: int, subject_id: Optional[str] = None
    ) -> List[ModelType]:
        query = select(self.model).where(self.model.user_id == user_id)
        if subject_id is not None:
            query = query.where(self._subject_column() == subject_id)
        query = query.order_by(getattr(self.model, self.order_field).desc(), self.model.id.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_for_user(self, user_id: int, subject_id: str) -> Optional[ModelType]:
        result = await self.db.execute(
            select(self.model)
            .where(self.model.user_id == user_id, self._subject_column() == subject_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def delete_for_user(self, user_id: int, subject_id: str) -> Optional[ModelType]:
        """
        Delete the row for (user, subject).

        Returns:
            The deleted row, or None if nothing matched
        """
        db_obj = await self.get_for_user(user_id, subject_id)
        if db_obj is None:
            return None
        await self.db.delete(db_obj)
        await self.db.flush()
        return db_obj

    async def delete_all_for_user(self, user_id: int) -> int:
        result = await self.db.execute(
            delete(self.model).where(self.model.user_id == user_id)
        )
        return result.rowcount
