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
"""Tests for Specification and Root — composable predicates and join memo."""

from __future__ import annotations

import pytest
from sqlalchemy import ForeignKey, String, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from flyspec.data.specification import Specification as SpecificationPort
from flyspec.data.sqlalchemy.specification import JoinType, Root, Specification
from flyspec.kernel.exceptions import InvalidPathException

# ---------------------------------------------------------------------------
# Test entities
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "spec_users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    role: Mapped[str] = mapped_column(String(50), default="user")
    active: Mapped[bool] = mapped_column(default=True)

    addresses: Mapped[list[Address]] = relationship(back_populates="user")


class Address(Base):
    __tablename__ = "spec_addresses"

    id: Mapped[int] = mapped_column(primary_key=True)
    city: Mapped[str] = mapped_column(String(100))
    user_id: Mapped[int] = mapped_column(ForeignKey("spec_users.id"))

    user: Mapped[User] = relationship(back_populates="addresses")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seeded_session(session: AsyncSession) -> AsyncSession:
    """Seed the database with a known set of users."""
    session.add_all(
        [
            User(name="Alice", role="admin", active=True, addresses=[Address(city="Lisbon")]),
            User(name="Bob", role="user", active=True, addresses=[Address(city="Porto")]),
            User(name="Charlie", role="admin", active=False),
            User(name="Diana", role="user", active=False, addresses=[Address(city="Lisbon")]),
        ]
    )
    await session.flush()
    return session


# ---------------------------------------------------------------------------
# Helper — execute a spec and return matching user names (sorted)
# ---------------------------------------------------------------------------


async def _names(session: AsyncSession, spec: Specification[User]) -> list[str]:
    stmt = spec.to_predicate(User, select(User))
    result = await session.execute(stmt)
    return sorted(u.name for u in result.scalars().all())


def _admin() -> Specification[User]:
    return Specification(lambda root, q: root.get("role") == "admin")


def _active() -> Specification[User]:
    return Specification(lambda root, q: root.get("active") == True)  # noqa: E712


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestSpecificationPort:
    def test_implements_port(self):
        assert isinstance(_admin(), SpecificationPort)


class TestSpecificationSingle:
    async def test_filter_by_role(self, seeded_session: AsyncSession):
        assert await _names(seeded_session, _admin()) == ["Alice", "Charlie"]

    async def test_filter_through_relationship(self, seeded_session: AsyncSession):
        in_lisbon: Specification[User] = Specification(lambda root, q: root.get("addresses.city") == "Lisbon")
        assert await _names(seeded_session, in_lisbon) == ["Alice", "Diana"]

    def test_unconstrained_returns_query_unchanged(self):
        stmt = select(User)
        assert Specification.all().to_predicate(User, stmt).whereclause is None


class TestSpecificationCombinators:
    async def test_and(self, seeded_session: AsyncSession):
        assert await _names(seeded_session, _admin() & _active()) == ["Alice"]

    async def test_or(self, seeded_session: AsyncSession):
        assert await _names(seeded_session, _admin() | _active()) == ["Alice", "Bob", "Charlie"]

    async def test_not(self, seeded_session: AsyncSession):
        assert await _names(seeded_session, ~_active()) == ["Charlie", "Diana"]

    async def test_complex_composition(self, seeded_session: AsyncSession):
        diana: Specification[User] = Specification(lambda root, q: root.get("name") == "Diana")
        assert await _names(seeded_session, (_admin() & _active()) | diana) == ["Alice", "Diana"]

    async def test_not_keeps_joins(self, seeded_session: AsyncSession):
        in_porto: Specification[User] = Specification(lambda root, q: root.get("addresses.city") == "Porto")
        # inner join drops Charlie (no address); Bob is negated away
        assert await _names(seeded_session, ~in_porto) == ["Alice", "Diana"]

    def test_unconstrained_side_is_dropped(self):
        for spec in (Specification.all() & _admin(), _admin() | Specification.all()):
            stmt = spec.to_predicate(User, select(User))
            assert "spec_users.role" in str(stmt.whereclause)

    def test_negated_unconstrained_stays_unconstrained(self):
        stmt = (~Specification.all()).to_predicate(User, select(User))
        assert stmt.whereclause is None


class TestRoot:
    def test_get_plain_field(self):
        root = Root(User)
        assert root.get("name") is User.name
        assert root.joins == ()

    def test_get_dotted_field_registers_inner_join(self):
        root = Root(User)
        root.get("addresses.city")
        (join,) = root.joins
        assert join.path == "addresses"
        assert join.join_type is JoinType.INNER

    def test_join_is_memoized(self):
        root = Root(User)
        assert root.join("addresses") is root.join("addresses")
        assert len(root.joins) == 1

    def test_join_types_are_memoized_separately(self):
        root = Root(User)
        inner = root.join("addresses")
        left = root.join("addresses", JoinType.LEFT)
        assert inner is not left
        assert len(root.joins) == 2

    def test_implicit_path_reuses_explicit_join(self):
        root = Root(User)
        root.join("addresses", JoinType.LEFT)
        root.get("addresses.city")
        assert [j.join_type for j in root.joins] == [JoinType.LEFT]

    def test_get_relative_to_join(self):
        root = Root(User)
        alias = root.join("addresses", JoinType.LEFT)
        expr = root.get("city", join="addresses", join_type=JoinType.LEFT)
        assert str(expr).endswith(".city")
        assert root.join("addresses", JoinType.LEFT) is alias
        assert len(root.joins) == 1

    def test_nested_path(self):
        root = Root(Address)
        root.get("user.addresses.city")
        assert [j.path for j in root.joins] == ["user", "user.addresses"]

    def test_apply_adds_joins_and_distinct(self):
        root = Root(User)
        root.join("addresses", JoinType.LEFT)
        root.distinct = True
        sql = str(root.apply(select(User)))
        assert "LEFT OUTER JOIN spec_addresses" in sql
        assert sql.startswith("SELECT DISTINCT")

    @pytest.mark.parametrize("field", [None, "", "   ", ".city", "addresses.", "_sa_class_manager", "missing"])
    def test_invalid_paths(self, field):
        with pytest.raises(InvalidPathException):
            Root(User).get(field)

    def test_join_requires_relationship(self):
        with pytest.raises(InvalidPathException, match="not a relationship"):
            Root(User).join("name")
