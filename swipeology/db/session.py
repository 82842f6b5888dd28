from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
import logging

from swipeology.config import settings


logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """Convert postgres:// and postgresql:// to postgresql+asyncpg://."""
    if url.startswith("postgresql+") or url.startswith("sqlite"):
        return url
    return url.replace("postgresql://", "postgresql+asyncpg://").replace(
        "postgres://", "postgresql+asyncpg://"
    )


def build_engine(url: str, echo: bool = False):
    """Create an async engine; pooling options only apply to PostgreSQL."""
    url = normalize_database_url(url)
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def build_session_maker(bind) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Create async engine
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Session factory
async_session_maker = build_session_maker(engine)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


async def init_db():
    """Initialize database connection."""
    async with engine.begin() as conn:
        # Create all tables (use Alembic migrations in production)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")


async def close_db():
    """Close database connection."""
    await engine.dispose()
    logger.info("Database connection closed")

