import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.modules.drafting.services.records.models import Base

logger = logging.getLogger(__name__)


def create_session_factory(database_url: str) -> async_sessionmaker[AsyncSession]:
    engine = create_async_engine(database_url, echo=False, future=True)
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_database(session_factory: async_sessionmaker[AsyncSession]) -> bool:
    """Create the record tables if they don't exist."""
    try:
        async with session_factory() as session:
            conn = await session.connection()
            await conn.run_sync(Base.metadata.create_all)
            await session.commit()
        logger.info("Drafting record tables ready")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialize drafting records database: {e}")
        return False
