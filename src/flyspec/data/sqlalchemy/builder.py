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
"""Fluent builders that compose a :class:`Specification` step by step.

Every predicate method is guarded: a ``None`` value (a blank string for
the pattern predicates, an empty collection for ``in_``/``not_in``)
leaves the specification unchanged, so optional search parameters can
be passed straight through.  Anything else is handed to the matching
SQLAlchemy operator as-is.

Example::

    spec = (
        Spec.of(User)
        .eq("status", form.status)            # skipped when None
        .like("name", form.query)             # skipped when blank
        .between("created_at", form.since, form.until)
        .left_join("orders", lambda j: j.gte("total", form.min_total))
        .build()
    )
    users = await executor.find_all(spec)
"""

from __future__ import annotations

import dataclasses
import datetime
import enum
import numbers
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Collection, Mapping
from typing import Any, Generic, Self, TypeVar

import structlog
from sqlalchemy import ColumnElement, Select, false, func, select, true

from flyspec.config.properties.spec import SpecProperties
from flyspec.data.sqlalchemy.specification import JoinType, Root, Specification
from flyspec.kernel.exceptions import NotComparableException

T = TypeVar("T")

logger = structlog.get_logger("flyspec.data")

_ORDERABLE_TYPES = (
    numbers.Number,
    str,
    bytes,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    enum.Enum,
)


def _require_orderable(expression: Any, field: str) -> None:
    try:
        python_type = expression.type.python_type
    except (AttributeError, NotImplementedError):
        return
    if not issubclass(python_type, _ORDERABLE_TYPES):
        raise NotComparableException(
            f"Field '{field}' is not comparable: {python_type.__name__}",
            code="SPEC_NOT_COMPARABLE",
            context={"path": field, "python_type": python_type.__name__},
        )


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class _PredicateBuilder(ABC, Generic[T]):
    """Value predicates shared by :class:`Spec` and :class:`SpecJoin`.

    Subclasses decide where a field name is resolved from via
    :meth:`_path`.
    """

    def __init__(self, properties: SpecProperties | None = None) -> None:
        self._properties = properties or SpecProperties()
        self._spec: Specification[T] = Specification.all()

    @abstractmethod
    def _path(self, root: Root[T], field: str) -> Any: ...

    def _add(self, field: str, make: Callable[[Any], ColumnElement[bool]]) -> Self:
        def predicate(root: Root[T], query: Select[Any]) -> ColumnElement[bool]:
            return make(self._path(root, field))

        self._spec = self._spec & Specification(predicate)
        return self

    def _skip(self, operation: str, field: str) -> Self:
        logger.debug("predicate_skipped", operation=operation, field=field)
        return self

    # ------------------------------------------------------------------
    # Equality and null checks
    # ------------------------------------------------------------------

    def eq(self, field: str, value: Any) -> Self:
        if value is None:
            return self._skip("eq", field)
        return self._add(field, lambda path: path == value)

    def ne(self, field: str, value: Any) -> Self:
        if value is None:
            return self._skip("ne", field)
        return self._add(field, lambda path: path != value)

    def is_null(self, field: str) -> Self:
        return self._add(field, lambda path: path.is_(None))

    def is_not_null(self, field: str) -> Self:
        return self._add(field, lambda path: path.is_not(None))

    # ------------------------------------------------------------------
    # Pattern matching
    # ------------------------------------------------------------------

    def like(self, field: str, value: str | None) -> Self:
        """Match rows whose *field* contains *value*."""
        if _is_blank(value):
            return self._skip("like", field)
        return self._like(field, value, "%", "%")  # type: ignore[arg-type]

    def starts_with(self, field: str, value: str | None) -> Self:
        if _is_blank(value):
            return self._skip("starts_with", field)
        return self._like(field, value, "", "%")  # type: ignore[arg-type]

    def ends_with(self, field: str, value: str | None) -> Self:
        if _is_blank(value):
            return self._skip("ends_with", field)
        return self._like(field, value, "%", "")  # type: ignore[arg-type]

    def _like(self, field: str, value: str, prefix: str, suffix: str) -> Self:
        ignore_case = self._properties.ignore_case
        escape = "\\" if self._properties.escape_wildcards else None
        if ignore_case:
            value = value.lower()
        if escape:
            value = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"{prefix}{value}{suffix}"

        def make(path: Any) -> ColumnElement[bool]:
            expr = func.lower(path) if ignore_case else path
            return expr.like(pattern, escape=escape)

        return self._add(field, make)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def gt(self, field: str, value: Any) -> Self:
        if value is None:
            return self._skip("gt", field)
        return self._add(field, lambda path: path > value)

    def gte(self, field: str, value: Any) -> Self:
        if value is None:
            return self._skip("gte", field)
        return self._add(field, lambda path: path >= value)

    def lt(self, field: str, value: Any) -> Self:
        if value is None:
            return self._skip("lt", field)
        return self._add(field, lambda path: path < value)

    def lte(self, field: str, value: Any) -> Self:
        if value is None:
            return self._skip("lte", field)
        return self._add(field, lambda path: path <= value)

    def between(self, field: str, start: Any, end: Any) -> Self:
        """Inclusive range. Skipped unless both bounds are given.

        Raises :class:`NotComparableException` on evaluation when the
        attribute's Python type is known not to be orderable.
        """
        if start is None or end is None:
            return self._skip("between", field)

        def make(path: Any) -> ColumnElement[bool]:
            _require_orderable(path, field)
            return path.between(start, end)

        return self._add(field, make)

    # ------------------------------------------------------------------
    # Set membership
    # ------------------------------------------------------------------

    def in_(self, field: str, values: Collection[Any] | None) -> Self:
        if not values:
            return self._skip("in", field)
        items = list(values)
        return self._add(field, lambda path: path.in_(items))

    def not_in(self, field: str, values: Collection[Any] | None) -> Self:
        if not values:
            return self._skip("not_in", field)
        items = list(values)
        return self._add(field, lambda path: path.not_in(items))

    # ------------------------------------------------------------------
    # Booleans
    # ------------------------------------------------------------------

    def is_true(self, field: str) -> Self:
        return self._add(field, lambda path: path == true())

    def is_false(self, field: str) -> Self:
        return self._add(field, lambda path: path == false())

    def build(self) -> Specification[T]:
        """Return the composed specification."""
        return self._spec


class SpecJoin(_PredicateBuilder[T]):
    """Predicates scoped to a joined relationship.

    Field names are resolved against the joined entity. The join is
    registered on first use and shared by every predicate in the block.
    """

    def __init__(
        self,
        join_field: str,
        join_type: JoinType = JoinType.INNER,
        properties: SpecProperties | None = None,
    ) -> None:
        super().__init__(properties)
        self.join_field = join_field
        self.join_type = join_type

    def _path(self, root: Root[T], field: str) -> Any:
        if self._properties.distinct_joins:
            root.distinct = True
        return root.get(field, join=self.join_field, join_type=self.join_type)


class Spec(_PredicateBuilder[T]):
    """Fluent builder for a :class:`Specification` over one entity.

    Usage::

        spec = Spec.of(User).eq("role", "admin").is_true("active").build()
    """

    def __init__(self, entity: type[T], properties: SpecProperties | None = None) -> None:
        super().__init__(properties)
        self.entity = entity

    @classmethod
    def of(cls, entity: type[T], properties: SpecProperties | None = None) -> Spec[T]:
        """Start an unconstrained specification for *entity*."""
        return cls(entity, properties)

    @classmethod
    def from_dict(
        cls,
        entity: type[T],
        filters: Mapping[str, Any],
        properties: SpecProperties | None = None,
    ) -> Spec[T]:
        """Equality on every non-``None`` entry of *filters* (keys may be dotted paths)."""
        spec = cls(entity, properties)
        for field, value in filters.items():
            spec.eq(field, value)
        return spec

    @classmethod
    def from_example(
        cls,
        entity: type[T],
        example: Any,
        properties: SpecProperties | None = None,
    ) -> Spec[T]:
        """Query by Example: equality on every non-``None`` attribute of *example*.

        Supports dataclasses and any object with ``__dict__``; private
        attributes (leading underscore) are ignored.
        """
        if dataclasses.is_dataclass(example) and not isinstance(example, type):
            fields = {f.name: getattr(example, f.name) for f in dataclasses.fields(example)}
        else:
            fields = vars(example)
        return cls.from_dict(
            entity,
            {name: value for name, value in fields.items() if not name.startswith("_")},
            properties,
        )

    def _path(self, root: Root[T], field: str) -> Any:
        return root.get(field)

    # ------------------------------------------------------------------
    # Logic operators
    # ------------------------------------------------------------------

    @staticmethod
    def _unwrap(other: Specification[T] | Spec[T]) -> Specification[T]:
        return other.build() if isinstance(other, Spec) else other

    def and_(self, other: Specification[T] | Spec[T] | None) -> Self:
        if other is not None:
            self._spec = self._spec & self._unwrap(other)
        return self

    def or_(self, other: Specification[T] | Spec[T] | None) -> Self:
        """OR everything accumulated so far with *other*."""
        if other is not None:
            self._spec = self._spec | self._unwrap(other)
        return self

    def not_(self, other: Specification[T] | Spec[T] | None) -> Self:
        """AND the negation of *other*."""
        if other is not None:
            self._spec = self._spec & ~self._unwrap(other)
        return self

    def distinct(self) -> Self:
        """Select distinct rows (useful with to-many joins)."""

        def predicate(root: Root[T], query: Select[Any]) -> None:
            root.distinct = True

        self._spec = self._spec & Specification(predicate)
        return self

    # ------------------------------------------------------------------
    # Joins
    # ------------------------------------------------------------------

    def join(
        self,
        join_field: str,
        consumer: Callable[[SpecJoin[T]], Any] | None,
        join_type: JoinType = JoinType.INNER,
    ) -> Self:
        """Add predicates on the relationship *join_field* via *consumer*."""
        if consumer is None:
            return self
        join_builder: SpecJoin[T] = SpecJoin(join_field, join_type, self._properties)
        consumer(join_builder)
        self._spec = self._spec & join_builder.build()
        return self

    def left_join(self, join_field: str, consumer: Callable[[SpecJoin[T]], Any] | None) -> Self:
        return self.join(join_field, consumer, JoinType.LEFT)

    def right_join(self, join_field: str, consumer: Callable[[SpecJoin[T]], Any] | None) -> Self:
        return self.join(join_field, consumer, JoinType.RIGHT)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def to_select(self) -> Select[Any]:
        """``select(entity)`` with this specification applied."""
        return self._spec.to_predicate(self.entity, select(self.entity))
