"""
Base repository with generic CRUD operations.

Every store call runs under a bounded timeout. SQLAlchemy failures are
surfaced as StoreError and timeouts as StoreTimeoutError; the session is
rolled back first so it stays usable for the audit write that follows.
"""
import asyncio
import logging
from typing import TypeVar, Generic, Type, Optional, List, Awaitable
from datetime import datetime

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from rap_dashboard.config import settings
from rap_dashboard.core.exceptions import StoreError, StoreTimeoutError

ModelType = TypeVar("ModelType", bound=SQLModel)
T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository with CRUD operations.
    Inherit and specify the model class.
    """

    def __init__(
        self,
        model: Type[ModelType],
        session: AsyncSession,
        timeout: Optional[float] = None
    ):
        self.model = model
        self.session = session
        self.timeout = timeout if timeout is not None else settings.STORE_TIMEOUT_SECONDS

    @property
    def table(self) -> str:
        return self.model.__tablename__

    async def _run(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await a store operation with the timeout and error mapping applied."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            await self._rollback()
            raise StoreTimeoutError(operation, self.timeout)
        except SQLAlchemyError as e:
            await self._rollback()
            raise StoreError(operation, str(e)) from e

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed on %s", self.table)

    async def create(self, obj_in: dict) -> ModelType:
        """Create a new record."""
        async def _create():
            db_obj = self.model(**obj_in)
            self.session.add(db_obj)
            await self.session.commit()
            await self.session.refresh(db_obj)
            return db_obj

        return await self._run(f"Insert into {self.table}", _create())

    async def bulk_create(self, objs_in: List[dict]) -> List[ModelType]:
        """Insert a batch in one transaction. Either every row commits or none does."""
        async def _bulk_create():
            db_objs = [self.model(**data) for data in objs_in]
            self.session.add_all(db_objs)
            await self.session.commit()
            return db_objs

        if not objs_in:
            return []
        return await self._run(f"Bulk insert into {self.table}", _bulk_create())

    async def list(
        self,
        filters: Optional[dict] = None,
        since: Optional[datetime] = None,
        since_field: str = "created_at",
        order_by: str = "created_at",
        order_desc: bool = True,
        limit: Optional[int] = None
    ) -> List[ModelType]:
        """List records with optional equality filters and a lower time bound."""
        async def _list():
            query = select(self.model)

            if filters:
                for field, value in filters.items():
                    if hasattr(self.model, field) and value is not None:
                        query = query.where(getattr(self.model, field) == value)

            if since is not None:
                query = query.where(getattr(self.model, since_field) >= since)

            if hasattr(self.model, order_by):
                order_column = getattr(self.model, order_by)
                query = query.order_by(order_column.desc() if order_desc else order_column)

            if limit:
                query = query.limit(limit)

            result = await self.session.exec(query)
            return result.all()

        return await self._run(f"Read from {self.table}", _list())

