from __future__ import annotations

import os
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from wineclub.core.security import create_access_token  # noqa: E402
from wineclub.db.session import get_audit_sessionmaker, get_db  # noqa: E402

# Ensure Base + models are registered before create_all
from wineclub.db.base import Base  # noqa: E402
import wineclub.models  # noqa: E402,F401
from wineclub.models.business import Business  # noqa: E402
from wineclub.models.business_user import BusinessUser  # noqa: E402
from wineclub.models.member import Member  # noqa: E402
from wineclub.models.membership_plan import MembershipPlan  # noqa: E402
from wineclub.models.price import Price  # noqa: E402
from wineclub.models.subscription import Subscription  # noqa: E402
from wineclub.models.user import User  # noqa: E402


# ---------------------------------------------------------
# Database: one throwaway SQLite file per test
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        future=True,
        echo=False,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture()
def sessionmaker(engine):
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )


@pytest.fixture()
def broken_sessionmaker(tmp_path):
    """
    Session factory whose database cannot be opened: stands in for an
    unavailable audit sink.
    """
    missing = tmp_path / "missing-dir" / "audit.db"
    broken_engine = create_async_engine(f"sqlite+aiosqlite:///{missing}", poolclass=NullPool)
    return async_sessionmaker(broken_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db(sessionmaker):
    """
    Session for test setup & assertions ONLY.
    """
    async with sessionmaker() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------
# FastAPI app + dependency override
# ---------------------------------------------------------
@pytest.fixture()
def app(sessionmaker):
    from wineclub.main import app as fastapi_app

    async def _override_get_db():
        async with sessionmaker() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    fastapi_app.dependency_overrides[get_audit_sessionmaker] = lambda: sessionmaker
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}


@pytest.fixture()
def headers_for():
    return auth_headers


# ---------------------------------------------------------
# Factories
# ---------------------------------------------------------
class Factory:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def user(self, email: str | None = None, name: str | None = None) -> User:
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        user = User(email=email.lower().strip(), name=name, is_active=True)
        self.db.add(user)
        await self.db.flush()
        return user

    async def business(self, name: str | None = None) -> Business:
        suffix = uuid.uuid4().hex[:8]
        business = Business(name=name or f"Cellar {suffix}", slug=f"cellar-{suffix}", is_active=True)
        self.db.add(business)
        await self.db.flush()
        return business

    async def link(self, business: Business, user: User, role: str) -> BusinessUser:
        link = BusinessUser(business_id=business.id, user_id=user.id, role=role)
        self.db.add(link)
        await self.db.flush()
        return link

    async def team_member(self, business: Business, role: str, email: str | None = None) -> User:
        user = await self.user(email)
        await self.link(business, user, role)
        return user

    async def plan(self, business: Business, name: str = "Reds Quarterly") -> MembershipPlan:
        plan = MembershipPlan(business_id=business.id, name=name, status="ACTIVE")
        self.db.add(plan)
        await self.db.flush()
        return plan

    async def price(self, plan: MembershipPlan, unit_amount: int = 4500) -> Price:
        price = Price(membership_plan_id=plan.id, unit_amount=unit_amount, currency="usd", interval="MONTH")
        self.db.add(price)
        await self.db.flush()
        return price

    async def member(self, business: Business, email: str | None = None) -> Member:
        member = Member(
            business_id=business.id,
            email=email or f"member-{uuid.uuid4().hex[:8]}@example.com",
        )
        self.db.add(member)
        await self.db.flush()
        return member

    async def subscription(self, member: Member, plan: MembershipPlan, status: str = "ACTIVE") -> Subscription:
        sub = Subscription(member_id=member.id, membership_plan_id=plan.id, status=status)
        self.db.add(sub)
        await self.db.flush()
        return sub


@pytest.fixture()
def factory(db) -> Factory:
    return Factory(db)
