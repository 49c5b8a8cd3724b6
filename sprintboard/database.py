from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from .config import settings
from .models.base import Base
from .utils.logging import get_logger

# Import all models so they're registered on Base.metadata
from .models import sprint, story, backlog, user, notification, activity_log, id_sequence  # noqa: F401

logger = get_logger(__name__)

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
)

# Create session factory
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Create every sprint, story and backlog table that does not exist yet"""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database ready: {', '.join(t.name for t in Base.metadata.sorted_tables)}")


async def dispose_engine(bind: AsyncEngine = engine) -> None:
    await bind.dispose()


# Dependency to get database session
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        try:
            yield session
        except Exception:
            # A request that failed mid-flush must not leave the connection in a pending transaction
            await session.rollback()
            raise
        finally:
            await session.close()
