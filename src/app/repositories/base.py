"""Base repositories with generic query and CRUD operations."""
from typing import Any, Generic, Type, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import BaseModel

T = TypeVar("T", bound=BaseModel)


class ReadRepository(Generic[T]):
    """Generic repository providing read operations for any model."""

    def __init__(self, db: AsyncSession, model: Type[T]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: UUID) -> T | None:
        """Get a single record by ID."""
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return int(result.scalar_one())

    async def paginate(self, query: Select, skip: int, limit: int) -> tuple[list[Any], int]:
        """Run ``query`` for one page and return it with the unpaged total."""
        total_result = await self.db.execute(
            select(func.count()).select_from(query.order_by(None).subquery())
        )
        result = await self.db.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all()), int(total_result.scalar_one())


class BaseRepository(ReadRepository[T]):
    """Generic repository adding write operations."""

    async def create(self, obj: T) -> T:
        """Create a new record and commit."""
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def save(self, obj: T) -> T:
        """Stage changes to a record inside the caller's transaction (no commit)."""
        self.db.add(obj)
        await self.db.flush()
        return obj

    async def update(self, id: UUID, data: dict) -> T | None:
        """Update a record by ID with provided data."""
        obj = await self.get_by_id(id)
        if not obj:
            return None

        for key, value in data.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def delete(self, id: UUID) -> bool:
        """Delete a record by ID."""
        obj = await self.get_by_id(id)
        if not obj:
            return False

        await self.db.delete(obj)
        await self.db.commit()
        return True
