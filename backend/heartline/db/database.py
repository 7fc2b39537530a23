from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import select
from typing import AsyncGenerator
import logging

from heartline.core.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(settings.database_url, echo=settings.db_echo)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

class Base(DeclarativeBase):
    pass

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session

async def seed_communities(session: AsyncSession, names):
    """Create any missing default communities. Returns the number created."""
    from heartline.db.models.community import Community

    result = await session.execute(select(Community.name))
    existing = set(result.scalars().all())

    created = 0
    for name in names:
        if name in existing:
            continue
        session.add(Community(name=name, description=f"People who love {name.lower()}"))
        created += 1

    if created:
        await session.commit()
    return created

async def init_db():
    """
    Create tables on startup and seed the default communities.
    """
    # Register every model on Base.metadata
    from heartline.db.models import user, token, swipe, image, community, chat_data

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        created = await seed_communities(session, settings.default_communities)
        if created:
            logger.info("Seeded %d default communities", created)
