"""
Create the Inkwell tables in the configured database.

    python -m inkwell
"""

import asyncio

from inkwell.config import get_settings
from inkwell.database import close_db, init_db
from inkwell.logging_config import configure_logging, get_logger

logger = get_logger(__name__)


async def main() -> None:
    settings = get_settings()
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Initializing %s v%s", settings.project_name, settings.version)
    try:
        await init_db()
        logger.info("Database initialized")
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
