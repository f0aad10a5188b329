"""
learnhub/database.py
Database configuration for the progress layer
"""
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Import Base from orm.base to avoid circular imports
from learnhub.orm.base import Base
import learnhub.orm  # ensures all models are registered

from learnhub.config.settings import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is not set")


def create_engine_for_url(url: str, echo: bool = False):
    """
    Build an async engine with pool settings suited to the dialect.
    
    SQLite gets a busy timeout so concurrent progress writes wait
    instead of failing immediately.
    """
    if "sqlite" in url.lower():
        return create_async_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            connect_args={
                "timeout": 30.0,   # SQLite busy timeout in seconds
            }
        )
    
    # PostgreSQL: Use standard pool with larger size
    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=20,           # Base pool size
        max_overflow=30,        # Additional connections under load
        pool_timeout=30,        # Wait up to 30s for connection
        pool_recycle=3600,      # Recycle connections after 1 hour
    )


engine = create_engine_for_url(DATABASE_URL, echo=settings.DB_ECHO)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def init_db():
    """
    Create the tables this package reads and writes if they are missing.
    
    Does not touch the optional final-assessment tables; those belong to
    the migration system and are only ever probed.
    """
    logger.info("Initializing database...")
    logger.info(f"Database dialect: {engine.url.get_backend_name()}")
    
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✓ Database initialization complete")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise


async def close_db():
    """Close database connection"""
    await engine.dispose()
    logger.info("Database connection closed")
