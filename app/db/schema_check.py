"""
Create missing tables and indexes, then report the indexes on ``forms``.

Run after pointing DATABASE_URL at a fresh or existing database:
  python -m app.db.schema_check

The partial unique index uq_forms_owner_name_rank_live is what actually keeps a user
from holding two live forms with the same name and rank, so the script fails loudly
when it is missing (e.g. a table created by hand or by an older build).
"""
import asyncio
from typing import Any, Dict, List

from loguru import logger
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

# Import all models so Base.metadata knows every table
from app.auth.models import User  # noqa: F401
from app.core.models import Form  # noqa: F401
from app.core.models.form import LIVE_UNIQUE_INDEX
from app.db.session import Base, engine


def _forms_indexes(sync_conn) -> List[Dict[str, Any]]:
    return inspect(sync_conn).get_indexes("forms")


async def ensure_schema(db_engine: AsyncEngine = engine) -> List[Dict[str, Any]]:
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        indexes = await conn.run_sync(_forms_indexes)

    live_unique = [ix for ix in indexes if ix["name"] == LIVE_UNIQUE_INDEX]
    if not live_unique or not live_unique[0].get("unique"):
        raise RuntimeError(
            f"Index {LIVE_UNIQUE_INDEX} is missing or not unique on table forms; "
            "drop and recreate it as a partial unique index WHERE deleted_at IS NULL."
        )
    return indexes


async def main() -> None:
    try:
        indexes = await ensure_schema()
        for ix in indexes:
            logger.info("forms index {} on {} (unique={})", ix["name"], ix["column_names"], bool(ix.get("unique")))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
