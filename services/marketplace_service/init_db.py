"""Create the marketplace tables on the configured database.

Run with ``python -m services.marketplace_service.init_db``.
"""

import asyncio

from libs.common.logging import configure_logging, get_logger
from libs.db.base import Base
from libs.db.config import engine

# Registers every table on Base.metadata
from services.marketplace_service import models as _marketplace_models  # noqa: F401

logger = get_logger(__name__)


async def init_db(drop_existing: bool = False) -> None:
    async with engine.begin() as conn:
        if drop_existing:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Created %d marketplace tables", len(Base.metadata.tables))
    await engine.dispose()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(init_db())
