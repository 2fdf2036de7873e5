"""Check that the configured database is reachable and migrated."""

import asyncio
import logging
import os

from dotenv import load_dotenv
from sqlalchemy import inspect, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine

from src.core.database import resolve_async_database_url
from src.core.logging import configure_logging

load_dotenv()

logger = logging.getLogger("verify_env")

DB_LABELS = {
    "postgresql": "PostgreSQL",
    "mysql": "MySQL",
    "sqlite": "SQLite",
}

HEALTH_QUERIES = {
    "postgresql": "SELECT version();",
    "mysql": "SELECT VERSION();",
}


async def verify_database() -> bool:
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        logger.error("DATABASE_URL is not set")
        return False

    try:
        async_url = resolve_async_database_url(db_url)
        url = make_url(async_url)
    except Exception as exc:  # noqa: BLE001 - surface clear setup errors
        logger.error("Unsupported database configuration: %s", exc)
        return False

    backend = url.get_backend_name()
    label = DB_LABELS.get(backend, backend)
    logger.info("Checking %s connection at %s", label, url.render_as_string(hide_password=True))

    engine = create_async_engine(async_url, echo=False)
    try:
        async with engine.connect() as conn:
            version = (await conn.execute(text(HEALTH_QUERIES.get(backend, "SELECT 1")))).scalar()
            logger.info("%s reachable: %s", label, version)
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    except Exception as exc:  # noqa: BLE001 - surface connection failure
        logger.error("%s connection failed: %s", label, exc)
        return False
    finally:
        await engine.dispose()

    if "appointments" not in tables:
        logger.warning("Table 'appointments' is missing; run `alembic upgrade head`")
        return False
    return True


async def main() -> None:
    configure_logging()
    if await verify_database():
        logger.info("Environment looks good.")
    else:
        logger.warning("Environment has problems; check .env and the database container.")


if __name__ == "__main__":
    asyncio.run(main())
