from typing import AsyncIterator, Optional

from sqlalchemy import MetaData, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from gympulse.core.config import get_settings
from gympulse.core.logging_config import get_logger

logger = get_logger("db")

settings = get_settings()

_engine_kwargs = {"echo": settings.sql_echo}
if not settings.is_sqlite:
    _engine_kwargs.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )

engine = create_async_engine(settings.database_url, **_engine_kwargs)

SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


class Base(DeclarativeBase):
    metadata = MetaData(schema=settings.db_schema)


def fk(target: str) -> str:
    """Schema-qualify a ForeignKey target such as "users.id"."""
    return f"{settings.db_schema}.{target}" if settings.db_schema else target


async def get_db() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session


async def init_models(bind: Optional[AsyncEngine] = None, session_factory=None) -> None:
    """Create missing tables and seed the admin account and default plans."""
    import gympulse.models  # noqa: F401  registers every mapper on Base.metadata
    from gympulse.crud.membershipsCrud import seed_default_plans
    from gympulse.crud.usersCrud import create_user
    from gympulse.models import User

    bind = bind or engine
    session_factory = session_factory or SessionLocal

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as db:
        await seed_default_plans(db)
        has_users = (await db.execute(select(User.id).limit(1))).first()
        if not has_users:
            await create_user(
                db,
                username=settings.default_admin_username,
                password=settings.default_admin_password,
                email=f"{settings.default_admin_username}@gympulse.local",
                first_name="System",
                last_name="Admin",
                role="ADMIN",
            )
            logger.info("Seeded default admin account '%s'", settings.default_admin_username)
