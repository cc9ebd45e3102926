import logging

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy import text
from .config import settings

logger = logging.getLogger(__name__)

# Create Async Engine
engine = create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO, future=True)

async_session = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def init_db(bind=None):
    """Create all tables. Drops the public schema first when RECREATE_TABLES is set."""
    bind = bind or engine
    async with bind.begin() as conn:
        if settings.RECREATE_TABLES and conn.dialect.name == "postgresql":
            logger.warning("RECREATE_TABLES is set, dropping public schema")
            await conn.execute(text("DROP SCHEMA public CASCADE"))
            await conn.execute(text("CREATE SCHEMA public"))
            await conn.execute(text("GRANT ALL ON SCHEMA public TO public"))
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncSession:
    async with async_session() as session:
        yield session
