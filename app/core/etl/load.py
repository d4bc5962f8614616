from typing import List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core import models, vector_store


# -----------------------------------------------------------------------------
# LOAD MODULE
# Purpose: replace the stored table descriptions with a freshly built set.
# This is a batch rebuild, not an incremental update: delete all, insert all.
# -----------------------------------------------------------------------------


def build_records(
    entries: Sequence[tuple],
) -> List[models.SchemaEmbedding]:
    """
    Build ORM rows from (table_name, description, embedding) tuples.

    Example:
        records = build_records([("orders", "Table: orders\n...", [0.1, ...])])
    """
    return [
        models.SchemaEmbedding(
            table_name=table_name,
            schema_description=description,
            embedding=list(embedding),
        )
        for table_name, description, embedding in entries
    ]


async def replace_schema_embeddings(
    session_factory: async_sessionmaker[AsyncSession],
    entries: Sequence[tuple],
) -> int:
    """
    Swap the whole operational_schema_embeddings table for `entries`.

    Runs in a single transaction, so readers see either the old set or the
    new one.

    Returns:
        Number of rows inserted.
    """
    records = build_records(entries)

    async with session_factory() as db:
        return await vector_store.replace_all_embeddings(db, records)
