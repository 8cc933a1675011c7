"""Repository base classes.

``SoftDeleteRepository`` is the single place that applies the
``deleted_at IS NULL`` rule, so every read that goes through a repository
(lookup by id, filtered lists, counts) treats a soft-deleted row as absent.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.core.errors import NotFoundError, ValidationFailedError
from hirehub.infrastructure.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)

MAX_PAGE_SIZE = 100
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(slots=True)
class Page(Generic[ModelT]):
    items: list[ModelT]
    count: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.count / self.limit) if self.limit else 0


def normalize_sort_field(field: str) -> str:
    """Accept ``createdAt`` as well as ``created_at``."""
    return _CAMEL_BOUNDARY.sub("_", field).lower()


class Repository(Generic[ModelT]):
    """Generic read/write helper around one mapped model."""

    model: ClassVar[type[Base]]
    label: ClassVar[str] = "Record"
    sortable: ClassVar[frozenset[str]] = frozenset({"created_at"})
    default_sort: ClassVar[str] = "-created_at"

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def select(self) -> Select[Any]:
        return select(self.model)

    async def get(self, entity_id: str, *, refresh: bool = False) -> ModelT | None:
        stmt = self.select().where(self.model.id == entity_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_raise(self, entity_id: str, *, refresh: bool = False) -> ModelT:
        entity = await self.get(entity_id, refresh=refresh)
        if entity is None:
            raise NotFoundError(f"{self.label} not found")
        return entity

    async def add(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        await self.session.flush()
        return entity

    def order_by(self, stmt: Select[Any], sort: str | None) -> Select[Any]:
        sort = sort or self.default_sort
        descending = sort.startswith("-")
        field = normalize_sort_field(sort.lstrip("-+"))
        if field not in self.sortable:
            raise ValidationFailedError(
                [{"field": "sort", "message": f"Cannot sort by '{field}'"}]
            )
        column = getattr(self.model, field)
        return stmt.order_by(column.desc() if descending else column.asc())

    async def paginate(
        self,
        stmt: Select[Any],
        *,
        page: int = 1,
        limit: int = 20,
        sort: str | None = None,
    ) -> Page[ModelT]:
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)

        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        count = int(await self.session.scalar(count_stmt) or 0)

        stmt = self.order_by(stmt, sort).offset((page - 1) * limit).limit(limit)
        items: Sequence[ModelT] = (await self.session.execute(stmt)).scalars().all()
        return Page(items=list(items), count=count, page=page, limit=limit)


class SoftDeleteRepository(Repository[ModelT]):
    """Repository whose reads never return soft-deleted rows."""

    def select(self) -> Select[Any]:
        return select(self.model).where(self.model.deleted_at.is_(None))

    async def soft_delete(self, entity: ModelT) -> ModelT:
        entity.mark_deleted()
        await self.session.flush()
        return entity
