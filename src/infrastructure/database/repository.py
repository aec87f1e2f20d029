"""Generic async repository for SQLAlchemy models.

Domain repositories subclass ``BaseRepository`` and add their own queries.
Repositories only flush; committing is left to the session owner (the
request dependency or the dispatcher's outcome transaction).
"""

from collections.abc import Sequence

from loguru import logger
from sqlalchemy import ColumnElement, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.base import BaseModel

DEFAULT_PAGINATION_LIMIT = 100


class BaseRepository[T: BaseModel]:
    """Base repository class providing common CRUD operations.

    Args:
        session: The async SQLAlchemy session to use for operations.
        model_class: The SQLAlchemy model class this repository manages.

    Example:
        class ClaimRepository(BaseRepository[BenefitClaim]):
            def __init__(self, session: AsyncSession) -> None:
                super().__init__(session, BenefitClaim)
    """

    def __init__(self, session: AsyncSession, model_class: type[T]) -> None:
        self.session = session
        self.model_class = model_class

    async def get_by_id(self, entity_id: int, *, for_update: bool = False) -> T | None:
        """Retrieve a model instance by its ID.

        Args:
            entity_id: The primary key ID of the model to retrieve.
            for_update: Lock the row (``SELECT ... FOR UPDATE``) until the
                surrounding transaction ends.

        Returns:
            T | None: The model instance if found, None otherwise.
        """
        logger.debug(
            "Fetching {} by ID: {} (for_update={})",
            self.model_class.__name__,
            entity_id,
            for_update,
        )

        stmt = select(self.model_class).where(self.model_class.id == entity_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_all(
        self,
        *conditions: ColumnElement[bool],
        skip: int = 0,
        limit: int = DEFAULT_PAGINATION_LIMIT,
    ) -> Sequence[T]:
        """Retrieve instances matching all conditions, ordered by ID.

        Args:
            *conditions: SQLAlchemy boolean expressions to filter by.
            skip: Number of records to skip (for pagination).
            limit: Maximum number of records to return.
        """
        stmt = (
            select(self.model_class)
            .where(*conditions)
            .order_by(self.model_class.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        instances = result.scalars().all()

        logger.debug(
            "Retrieved {} {} instances", len(instances), self.model_class.__name__
        )
        return instances

    async def create(self, obj: T) -> T:
        """Add a new instance and flush it to obtain server-generated values."""
        self.session.add(obj)
        await self.session.flush()
        await self.session.refresh(obj)

        logger.info(
            "Created {} instance with ID: {}", self.model_class.__name__, obj.id
        )
        return obj

    async def save(self, obj: T) -> T:
        """Flush pending changes of a loaded instance and reload it.

        The reload picks up ``updated_at`` and other server-side values, which
        would otherwise be expired and unreadable outside a greenlet.
        """
        await self.session.flush()
        await self.session.refresh(obj)
        return obj

    async def delete(self, obj: T) -> None:
        """Delete an instance, letting ORM and database cascades apply."""
        await self.session.delete(obj)
        await self.session.flush()

        logger.info(
            "Deleted {} instance with ID: {}", self.model_class.__name__, obj.id
        )

    async def count(self, *conditions: ColumnElement[bool]) -> int:
        """Count instances matching all conditions."""
        stmt = select(func.count()).select_from(self.model_class).where(*conditions)
        result = await self.session.execute(stmt)
        return result.scalar() or 0
