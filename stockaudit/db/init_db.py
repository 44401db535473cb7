import logging
from stockaudit.core.config import settings
from stockaudit.core.database import engine
from stockaudit.models import *  # noqa: F401,F403 register every table on Base.metadata
from stockaudit.models.base import Base

logger = logging.getLogger(__name__)

async def create_tables(bind=None):
    """Create all database tables"""
    bind = bind or engine
    try:
        async with bind.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating tables: {str(e)}")
        raise

async def init_db():
    """Initialize the database"""
    logger.info(f"Initializing database for {settings.ENVIRONMENT} environment...")
    await create_tables()
    logger.info("Database initialized successfully")
