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
"""Composable query predicates for type-safe dynamic queries.

Inspired by Spring Data's ``Specification`` pattern, this module lets
callers build arbitrarily complex SQLAlchemy WHERE clauses by composing
small, reusable predicate objects with ``&`` (AND), ``|`` (OR), and
``~`` (NOT).

A predicate receives a :class:`Root` and the ``Select`` being filtered,
and returns a SQL boolean expression, or ``None`` when it imposes no
constraint.  The root resolves dotted attribute paths and records the
joins they need; joins are added to the statement once, after every
predicate has been evaluated.

Example::

    active = Specification(lambda root, q: root.get("active") == True)
    admin  = Specification(lambda root, q: root.get("role") == "admin")
    in_eu  = Specification(lambda root, q: root.get("address.country").in_(["DE", "FR"]))

    stmt = (active & (admin | in_eu)).to_predicate(User, select(User))
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

import structlog
from sqlalchemy import ColumnElement, Select, and_, inspect, not_, or_
from sqlalchemy.orm import RelationshipProperty, aliased
from sqlalchemy.orm import join as orm_join

from flyspec.data.specification import Specification as SpecificationBase
from flyspec.kernel.exceptions import InvalidPathException, UnsupportedJoinException

T = TypeVar("T")

logger = structlog.get_logger("flyspec.data")

Predicate = Callable[["Root[Any]", Select[Any]], ColumnElement[bool] | None]


class JoinType(StrEnum):
    """How a joined relationship is attached to the query."""

    INNER = "inner"
    LEFT = "left"
    RIGHT = "right"


def _split_path(field: Any) -> list[str]:
    if not isinstance(field, str) or not field.strip():
        raise InvalidPathException(
            "Field name cannot be null or blank",
            code="SPEC_INVALID_PATH",
            context={"path": field},
        )
    parts = field.split(".")
    if any(not part.strip() for part in parts):
        raise InvalidPathException(
            f"Field path '{field}' contains an empty segment",
            code="SPEC_INVALID_PATH",
            context={"path": field},
        )
    return parts


def _entity_name(owner: Any) -> str:
    mapper = getattr(inspect(owner, raiseerr=False), "mapper", None)
    if mapper is not None:
        return mapper.class_.__name__
    return getattr(owner, "__name__", type(owner).__name__)


def _attribute(owner: Any, name: str, path: str) -> Any:
    attr = None if name.startswith("_") else getattr(owner, name, None)
    if attr is None or not (isinstance(attr, ColumnElement) or hasattr(attr, "__clause_element__")):
        raise InvalidPathException(
            f"'{name}' is not a mapped attribute of {_entity_name(owner)} (path '{path}')",
            code="SPEC_INVALID_PATH",
            context={"path": path, "attribute": name},
        )
    return attr


def _is_relationship(attr: Any) -> bool:
    return isinstance(getattr(attr, "property", None), RelationshipProperty)


@dataclass(frozen=True)
class RootJoin:
    """A relationship joined into the query under an aliased target.

    Attributes:
        path: Dotted relationship path from the root entity (``"orders.items"``).
        join_type: Inner, left or right join.
        parent: Entity class or alias the relationship is declared on.
        attribute: The relationship attribute bound to *parent*.
        alias: Aliased target entity that predicates resolve against.
    """

    path: str
    join_type: JoinType
    parent: Any
    attribute: Any
    alias: Any

    def attach(self, from_: Any) -> Any:
        """Extend the FROM chain *from_* with this join."""
        target = self.attribute.of_type(self.alias)
        if self.join_type is JoinType.RIGHT:
            # No RIGHT OUTER JOIN in SQLAlchemy: left-join the chain from the target side instead.
            onclause = orm_join(self.parent, self.alias, target).onclause
            return orm_join(self.alias, from_, onclause, isouter=True)
        return orm_join(from_, self.alias, target, isouter=self.join_type is JoinType.LEFT)


class Root(Generic[T]):
    """Evaluation context for one specification query.

    Resolves attribute paths against the root entity and memoizes joins
    by ``(path, join_type)`` so the same relationship is joined at most
    once per join type, however many predicates refer to it.
    """

    def __init__(self, entity: type[T]) -> None:
        self.entity = entity
        self.distinct = False
        self._joins: dict[tuple[str, JoinType], RootJoin] = {}

    @property
    def joins(self) -> tuple[RootJoin, ...]:
        """Registered joins, in the order they were created."""
        return tuple(self._joins.values())

    def get(self, field: str, join: str | None = None, join_type: JoinType = JoinType.INNER) -> Any:
        """Resolve *field* to a column expression.

        A dotted path walks nested attributes; relationship segments are
        joined implicitly, reusing an existing join for the same path.
        When *join* is given, resolution starts at that explicit join.
        """
        parts = _split_path(field)
        if join is None:
            current: Any = self.entity
            prefix = ""
        else:
            current = self.join(join, join_type)
            prefix = join

        for part in parts[:-1]:
            attr = _attribute(current, part, field)
            prefix = f"{prefix}.{part}" if prefix else part
            if _is_relationship(attr):
                current = self._implicit_join(prefix, current, attr)
            else:
                current = attr
        return _attribute(current, parts[-1], field)

    def join(self, path: str, join_type: JoinType = JoinType.INNER) -> Any:
        """Join the relationship at *path* and return its aliased target."""
        current: Any = self.entity
        prefix = ""
        for part in _split_path(path):
            prefix = f"{prefix}.{part}" if prefix else part
            existing = self._joins.get((prefix, join_type))
            if existing is not None:
                current = existing.alias
                continue
            attr = _attribute(current, part, path)
            if not _is_relationship(attr):
                raise InvalidPathException(
                    f"'{prefix}' is not a relationship of {_entity_name(self.entity)}",
                    code="SPEC_NOT_A_RELATIONSHIP",
                    context={"path": path, "attribute": part},
                )
            current = self._register(prefix, current, attr, join_type)
        return current

    def apply(self, query: Select[Any]) -> Select[Any]:
        """Add every registered join (and DISTINCT, if requested) to *query*.

        Joins are chained onto a single FROM element starting at the root
        entity, in creation order.
        """
        if self._joins:
            from_: Any = self.entity
            for join in self._joins.values():
                from_ = join.attach(from_)
            query = query.select_from(from_)
        if self.distinct:
            query = query.distinct()
        return query

    def _implicit_join(self, path: str, parent: Any, attr: Any) -> Any:
        for (joined_path, _), join in self._joins.items():
            if joined_path == path:
                return join.alias
        return self._register(path, parent, attr, JoinType.INNER)

    def _register(self, path: str, parent: Any, attr: Any, join_type: JoinType) -> Any:
        prop = attr.property
        if join_type is JoinType.RIGHT and prop.secondary is not None:
            raise UnsupportedJoinException(
                f"Right join across association table is not supported for '{path}'",
                code="SPEC_UNSUPPORTED_JOIN",
                context={"path": path, "join_type": str(join_type)},
            )
        alias = aliased(prop.mapper.class_)
        self._joins[(path, join_type)] = RootJoin(
            path=path, join_type=join_type, parent=parent, attribute=attr, alias=alias
        )
        logger.debug("join_created", entity=_entity_name(self.entity), path=path, join_type=str(join_type))
        return alias


def _combine(
    op: Callable[..., ColumnElement[bool]],
    left: ColumnElement[bool] | None,
    right: ColumnElement[bool] | None,
) -> ColumnElement[bool] | None:
    if left is None:
        return right
    if right is None:
        return left
    return op(left, right)


class Specification(SpecificationBase[T, Select[Any]]):
    """Composable query predicate for type-safe dynamic queries.

    A *Specification* wraps a callable that receives a :class:`Root`
    and the SQLAlchemy ``Select`` being filtered, and returns the
    boolean clause to apply (``None`` for no constraint).

    Specifications can be combined using the standard Python operators:

    * ``spec_a & spec_b`` — both predicates must match (AND).
    * ``spec_a | spec_b`` — either predicate may match (OR).
    * ``~spec_a`` — negated predicate (NOT).

    An unconstrained side is dropped from AND and OR, and negating an
    unconstrained spec leaves it unconstrained.
    """

    def __init__(self, predicate: Predicate) -> None:
        self._predicate = predicate

    @staticmethod
    def all() -> Specification[Any]:
        """A specification that imposes no constraint."""
        return Specification(lambda root, q: None)

    def to_clause(self, root: Root[T], query: Select[Any]) -> ColumnElement[bool] | None:
        """Evaluate this specification's predicate against *root*."""
        return self._predicate(root, query)

    def to_predicate(self, root: type[T], query: Select[Any]) -> Select[Any]:
        """Apply this specification's joins and WHERE clause to *query*."""
        context = Root(root)
        clause = self.to_clause(context, query)
        query = context.apply(query)
        if clause is not None:
            query = query.where(clause)
        logger.debug(
            "specification_applied",
            entity=_entity_name(root),
            joins=len(context.joins),
            constrained=clause is not None,
        )
        return query

    # ------------------------------------------------------------------
    # Combinators
    # ------------------------------------------------------------------

    def __and__(self, other: Specification[T]) -> Specification[T]:  # type: ignore[override]
        """Combine with AND: both specs must match."""
        left, right = self._predicate, other._predicate
        return Specification(lambda root, q: _combine(and_, left(root, q), right(root, q)))

    def __or__(self, other: Specification[T]) -> Specification[T]:  # type: ignore[override]
        """Combine with OR: either spec may match.

        Both sides are evaluated against the same root, so joins either
        side needs are kept on the final statement.
        """
        left, right = self._predicate, other._predicate
        return Specification(lambda root, q: _combine(or_, left(root, q), right(root, q)))

    def __invert__(self) -> Specification[T]:
        """Negate this specification: NOT."""
        pred = self._predicate

        def not_predicate(root: Root[T], query: Select[Any]) -> ColumnElement[bool] | None:
            clause = pred(root, query)
            return None if clause is None else not_(clause)

        return Specification(not_predicate)
