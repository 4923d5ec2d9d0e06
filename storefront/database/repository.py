"""
Entity Repository

Generic create/find/update/delete over one mapped model.

Each call runs in its own short session and commits before returning, so
records handed back are detached snapshots and a failed write never leaves
a half-open transaction behind for the next call.
"""

import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Generic, List, Optional, Type, TypeVar

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.database.connection import session_scope
from storefront.database.models import Base
from storefront.errors import ConflictError, PersistenceError

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

# Integrity violations during these are reported as conflicts (400)
CONFLICT_OPERATIONS = frozenset({"create", "update_by_id"})


class Repository(Generic[ModelT]):
    """
    Persistence operations for a single entity kind.

    Predicates are SQLAlchemy column expressions, e.g.
    ``await products.find_one(Product.slug == "clear-case")``.
    """

    def __init__(self, model: Type[ModelT], session_factory: async_sessionmaker[AsyncSession]):
        self.model = model
        self._session_factory = session_factory

    @property
    def name(self) -> str:
        return self.model.__tablename__

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with session_scope(self._session_factory) as db:
                yield db
        except IntegrityError as e:
            if operation not in CONFLICT_OPERATIONS:
                logger.error("Integrity violation", table=self.name, operation=operation, error=str(e.orig))
                raise PersistenceError(f"{self.name}: {operation} blocked by a reference constraint") from e
            logger.warning("Integrity violation", table=self.name, operation=operation, error=str(e.orig))
            raise ConflictError(f"{self.name}: unique or reference constraint violated") from e
        except SQLAlchemyError as e:
            logger.error("Persistence failure", table=self.name, operation=operation, error=str(e))
            raise PersistenceError(f"{self.name}: {operation} failed: {e}") from e

    async def create(self, fields: Dict[str, Any]) -> ModelT:
        """Insert a new record and return it"""
        record = self.model(**fields)
        async with self._session("create") as db:
            db.add(record)
            await db.flush()
            await db.refresh(record)
        logger.debug("Record created", table=self.name, id=str(record.id))
        return record

    async def find_by_id(self, record_id: uuid.UUID) -> Optional[ModelT]:
        async with self._session("find_by_id") as db:
            return await db.get(self.model, record_id)

    async def find_one(self, *conditions) -> Optional[ModelT]:
        async with self._session("find_one") as db:
            result = await db.execute(select(self.model).where(*conditions).limit(1))
            return result.scalars().first()

    async def find(self, *conditions, limit: Optional[int] = None) -> List[ModelT]:
        """Records matching all conditions, newest first"""
        query = select(self.model).where(*conditions).order_by(self.model.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        async with self._session("find") as db:
            result = await db.execute(query)
            return list(result.scalars().all())

    async def count(self, *conditions) -> int:
        async with self._session("count") as db:
            result = await db.execute(select(func.count()).select_from(self.model).where(*conditions))
            return result.scalar() or 0

    async def update_by_id(self, record_id: uuid.UUID, changes: Dict[str, Any]) -> Optional[ModelT]:
        """
        Apply ``changes`` to the record and return the updated record.

        Returns None when the record no longer exists.
        """
        async with self._session("update_by_id") as db:
            record = await db.get(self.model, record_id)
            if record is None:
                return None
            for key, value in changes.items():
                setattr(record, key, value)
            await db.flush()
            await db.refresh(record)
        return record

    async def delete_by_id(self, record_id: uuid.UUID) -> bool:
        """Delete a record; returns False when there was nothing to delete"""
        async with self._session("delete_by_id") as db:
            result = await db.execute(delete(self.model).where(self.model.id == record_id))
            deleted = result.rowcount > 0
        logger.debug("Record deleted", table=self.name, id=str(record_id), deleted=deleted)
        return deleted

    async def delete_many(self, *conditions) -> int:
        """Delete every record matching the conditions and return the count"""
        async with self._session("delete_many") as db:
            result = await db.execute(delete(self.model).where(*conditions))
            return result.rowcount or 0
