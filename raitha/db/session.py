"""Database engine and session factory.

Services receive the session factory as a handle and open one short-lived
session per operation.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from raitha.config import settings
from raitha.db.base import Base


def create_engine(url: str | None = None, **kwargs) -> AsyncEngine:
    """Create an async engine for the configured database."""
    kwargs.setdefault("echo", settings.DEBUG)
    kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(url or settings.DATABASE_URL, **kwargs)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Loaded rows stay usable after commit and outside the session
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine()
async_session_maker = create_session_factory(engine)


async def init_db(bind: AsyncEngine | None = None, create_tables: bool = False) -> None:
    """Register the models and optionally create missing tables.

    Alembic owns the schema of deployed databases; ``create_tables`` is for
    local single-node runs and tests.
    """
    from raitha.models import (  # noqa: F401
        Conversation,
        Message,
        Notification,
        Profile,
    )

    if create_tables:
        async with (bind or engine).begin() as conn:
            await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    await engine.dispose()
