#!/usr/bin/env python3
"""
Database initialization script for a local SQLite deployment:
creates the tables and seeds the default catalog.
"""

import asyncio
import os
import sys
from pathlib import Path

# Make 'petshop' importable when run from anywhere
sys.path.insert(0, str(Path(__file__).parent))


async def init_database() -> bool:
    """Create tables, seed the catalog, and check the connection."""
    import sqlalchemy as sa
    from sqlalchemy.exc import SQLAlchemyError

    from petshop.core.logging import get_logger, setup_logging
    from petshop.db.base import init_db
    from petshop.db.session import AsyncSessionLocal, engine
    from petshop.services.catalog import Catalog

    setup_logging(debug=True)
    logger = get_logger("init_db")

    Path("data").mkdir(exist_ok=True)

    try:
        await init_db()
        logger.info("tables_created", url=str(engine.url))

        async with AsyncSessionLocal() as session:
            inserted = await Catalog().seed_defaults(session)
            result = await session.execute(sa.text("SELECT 1"))
            if result.scalar() != 1:
                logger.error("connection_check_failed")
                return False
        logger.info("database_ready", **inserted)
    except SQLAlchemyError as e:
        logger.error("database_init_failed", error=str(e), error_type=type(e).__name__)
        return False
    finally:
        await engine.dispose()

    return True


if __name__ == "__main__":
    os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./data/petshop.db")

    if not asyncio.run(init_database()):
        sys.exit(1)
