import os
from datetime import date, datetime, timedelta

# must be set before gympulse.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CLASS_FEE", "500.00")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import gympulse.models  # noqa: F401
from gympulse.crud.classesCrud import create_class
from gympulse.crud.membersCrud import create_member_with_user
from gympulse.crud.membershipsCrud import seed_default_plans, get_membership_plans
from gympulse.crud.trainersCrud import create_trainer_with_user
from gympulse.db.postgresql import Base

PASSWORD = "Secret123"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def plans(db):
    await seed_default_plans(db)
    return {p.plan_name: p for p in await get_membership_plans(db)}


@pytest.fixture
def make_member(db, plans):
    counter = {"n": 0}

    async def _make(first_name="Alice", last_name="Walker", **kwargs):
        counter["n"] += 1
        n = counter["n"]
        params = dict(
            username=f"member{n}",
            password=PASSWORD,
            email=f"member{n}@example.com",
            first_name=first_name,
            last_name=last_name,
            membership_plan_id=plans["Monthly"].id,
        )
        params.update(kwargs)
        return await create_member_with_user(db, **params)

    return _make


@pytest.fixture
def make_trainer(db):
    counter = {"n": 0}

    async def _make(first_name="Tom", last_name="Hardy", specialization="Yoga", hourly_rate=800, **kwargs):
        counter["n"] += 1
        n = counter["n"]
        params = dict(
            username=f"trainer{n}",
            password=PASSWORD,
            email=f"trainer{n}@example.com",
            first_name=first_name,
            last_name=last_name,
            specialization=specialization,
            hourly_rate=hourly_rate,
        )
        params.update(kwargs)
        return await create_trainer_with_user(db, **params)

    return _make


@pytest.fixture
def make_class(db):
    async def _make(trainer_id, start=None, minutes=60, capacity=10, class_name="Morning Yoga", **kwargs):
        start = start or (datetime.now() + timedelta(days=1)).replace(second=0, microsecond=0)
        return await create_class(
            db,
            class_name=class_name,
            trainer_id=trainer_id,
            start_time=start,
            end_time=start + timedelta(minutes=minutes),
            max_capacity=capacity,
            **kwargs,
        )

    return _make


@pytest.fixture
def today():
    return date.today()
