"""Initialize database tables and seed system roles and permissions."""
import asyncio
import logging

from core.config import settings
from core.database import close_db, get_cleanup_session, init_db
from core.logging_config import LogConfig, setup_logging, stop_queue_listener
from db.setup import setup_database_default_data

logger = logging.getLogger(__name__)


async def main() -> bool:
    """Create all tables, then seed default data."""
    try:
        await init_db()
        logger.info("Database tables created successfully")

        async with get_cleanup_session() as db:
            return await setup_database_default_data(db)
    finally:
        await close_db()


if __name__ == "__main__":
    setup_logging(LogConfig(**settings.logging.log_config))
    try:
        success = asyncio.run(main())
    finally:
        stop_queue_listener()
    raise SystemExit(0 if success else 1)
