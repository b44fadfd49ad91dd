# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Async execution of specifications on SQLAlchemy 2.0 sessions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

import structlog
from sqlalchemy import Select, func, select
from sqlalchemy.exc import MultipleResultsFound
from sqlalchemy.ext.asyncio import AsyncSession

from flyspec.data.sqlalchemy.builder import Spec
from flyspec.data.sqlalchemy.specification import Root, Specification
from flyspec.kernel.exceptions import NonUniqueResultException

T = TypeVar("T")

logger = structlog.get_logger("flyspec.data")


class SpecificationExecutor(Generic[T]):
    """Runs specifications against one entity type.

    The counterpart of Spring Data's ``JpaSpecificationExecutor``.
    Accepts either a built :class:`Specification` or a :class:`Spec`
    builder.

    Usage::

        executor = SpecificationExecutor(User, session)
        admins = await executor.find_all(Spec.of(User).eq("role", "admin"), order_by=["-created_at"])
    """

    def __init__(self, model: type[T], session: AsyncSession | None = None) -> None:
        self._model = model
        self._session = session

    def _require_session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("No AsyncSession configured for SpecificationExecutor")
        return self._session

    def _statement(
        self,
        spec: Specification[T] | Spec[T] | None,
        order_by: Sequence[str] = (),
    ) -> Select[Any]:
        """Build ``select(model)`` filtered by *spec* and sorted by *order_by*.

        Sort paths are resolved through the same root as the
        specification, so they reuse its joins.
        """
        if isinstance(spec, Spec):
            spec = spec.build()
        stmt = select(self._model)
        root = Root(self._model)
        clause = spec.to_clause(root, stmt) if spec is not None else None

        orderings = []
        for entry in order_by:
            descending = entry.startswith("-")
            column = root.get(entry[1:] if descending else entry)
            orderings.append(column.desc() if descending else column.asc())

        stmt = root.apply(stmt)
        if clause is not None:
            stmt = stmt.where(clause)
        if orderings:
            stmt = stmt.order_by(*orderings)
        return stmt

    async def find_all(
        self,
        spec: Specification[T] | Spec[T] | None = None,
        order_by: Sequence[str] = (),
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[T]:
        """Find all entities matching *spec*.

        Args:
            spec: Filter to apply; ``None`` matches everything.
            order_by: Attribute paths to sort by; prefix with ``-`` for descending.
            limit: Maximum number of rows.
            offset: Number of rows to skip.
        """
        session = self._require_session()
        stmt = self._statement(spec, order_by)
        if offset is not None:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        logger.debug("find_all", entity=self._model.__name__, limit=limit, offset=offset)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def find_one(self, spec: Specification[T] | Spec[T]) -> T | None:
        """Find the single entity matching *spec*, or ``None``.

        Raises:
            NonUniqueResultException: more than one entity matches.
        """
        session = self._require_session()
        logger.debug("find_one", entity=self._model.__name__)
        result = await session.execute(self._statement(spec))
        try:
            return result.scalars().one_or_none()
        except MultipleResultsFound as exc:
            raise NonUniqueResultException(
                f"Specification matched more than one {self._model.__name__}",
                code="DATA_NON_UNIQUE_RESULT",
                context={"entity": self._model.__name__},
            ) from exc

    async def count(self, spec: Specification[T] | Spec[T] | None = None) -> int:
        """Count entities matching *spec*."""
        session = self._require_session()
        filtered = self._statement(spec)
        logger.debug("count", entity=self._model.__name__)
        result = await session.execute(select(func.count()).select_from(filtered.subquery()))
        return result.scalar_one()

    async def exists(self, spec: Specification[T] | Spec[T]) -> bool:
        """Whether any entity matches *spec*."""
        session = self._require_session()
        stmt = self._statement(spec).limit(1)
        logger.debug("exists", entity=self._model.__name__)
        result = await session.execute(stmt)
        return result.scalars().first() is not None
