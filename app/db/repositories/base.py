"""Base repository with generic CRUD operations and cursor pagination."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, literal, tuple_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cursor import Cursor, decode_cursor, encode_cursor
from app.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)

logger = logging.getLogger(__name__)


@dataclass
class Page(Generic[ModelT]):
    """One page of a cursor-paginated list."""

    items: list[ModelT] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False


class BaseRepository(Generic[ModelT]):
    """Base repository with generic CRUD operations."""

    def __init__(self, session: AsyncSession, model: type[ModelT]):
        self.session = session
        self.model = model

    async def get(self, id: int) -> ModelT | None:
        """Get a single record by ID."""
        return await self.session.get(self.model, id)

    async def create(self, **kwargs) -> ModelT:
        """Create a new record."""
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.commit()
        await self.session.refresh(instance)
        return instance

    async def update(self, instance: ModelT, **kwargs) -> ModelT:
        """Update an existing record."""
        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        await self.session.commit()
        await self.session.refresh(instance)
        return instance

    async def paginate(
        self,
        stmt: Select,
        *,
        sort_column: Any,
        sort_value: Callable[[ModelT], datetime | None],
        cursor: str | None,
        limit: int,
        descending: bool = True,
    ) -> Page[ModelT]:
        """Fetch one page of ``stmt`` ordered by ``(sort_column, id)``.

        ``stmt`` must already carry the company scope and any filters.
        ``sort_value`` reads the sort key back from a loaded row so the next
        cursor can be built from the last item of the page.
        """
        position = decode_cursor(cursor)
        if position is not None:
            condition = self._cursor_condition(position, sort_column, descending)
            if condition is not None:
                stmt = stmt.where(condition)

        id_column = self.model.id
        if descending:
            stmt = stmt.order_by(sort_column.desc(), id_column.desc())
        else:
            stmt = stmt.order_by(sort_column.asc(), id_column.asc())

        result = await self.session.execute(stmt.limit(limit + 1))
        rows = list(result.scalars().all())

        has_more = len(rows) > limit
        items = rows[:limit]
        next_cursor = None
        if has_more and items:
            last = items[-1]
            next_cursor = encode_cursor(sort_value(last), last.id)

        return Page(items=items, next_cursor=next_cursor, has_more=has_more)

    def _cursor_condition(self, position: Cursor, sort_column: Any, descending: bool):
        """Row-value comparison placing a row strictly after the cursor."""
        id_column = self.model.id

        if position.sort_value is None:
            return id_column < position.id if descending else id_column > position.id

        try:
            boundary = datetime.fromisoformat(position.sort_value)
        except ValueError:
            logger.debug(f"Ignoring cursor with invalid sort value: {position.sort_value!r}")
            return None

        key = tuple_(sort_column, id_column)
        bound = tuple_(literal(boundary, sort_column.type), literal(position.id, id_column.type))
        return key < bound if descending else key > bound
