"""
Audit database.

Order and tracking data live in the commerce API; this database only holds
the operator audit trail, so the engine keeps default pooling.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from admin_console.app.core.config import settings


def engine_options(database_url: str) -> dict:
    """SQLite (local runs) shares one connection; server databases are pinged before use."""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {"pool_pre_ping": True}


engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    **engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    """FastAPI dependency yielding an audit database session."""
    async with AsyncSessionLocal() as session:
        yield session
