from typing import List, Sequence

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import models, schemas


def build_similarity_query(
    query_embedding: Sequence[float], limit: int, min_similarity: float
) -> Select:
    """
    Rank stored table descriptions by cosine similarity to the query vector.

    similarity = 1 - cosine_distance. Ordering by ascending distance is the
    same as descending similarity and is the form the HNSW index
    (vector_cosine_ops) can serve.
    """
    distance = models.SchemaEmbedding.embedding.cosine_distance(query_embedding)
    similarity_score = (1 - distance).label("similarity_score")

    return (
        select(
            models.SchemaEmbedding.table_name,
            models.SchemaEmbedding.schema_description,
            similarity_score,
        )
        .where(1 - distance > min_similarity)
        .order_by(distance)
        .limit(limit)
    )


async def search_similar_tables(
    db: AsyncSession,
    query_embedding: Sequence[float],
    limit: int,
    min_similarity: float,
) -> List[schemas.TableMatch]:
    stmt = build_similarity_query(query_embedding, limit, min_similarity)
    result = await db.execute(stmt)

    return [
        schemas.TableMatch(
            table_name=row.table_name,
            schema_description=row.schema_description,
            similarity_score=float(row.similarity_score),
        )
        for row in result.all()
    ]


async def replace_all_embeddings(
    db: AsyncSession, records: List[models.SchemaEmbedding]
) -> int:
    """
    Delete every stored embedding and insert `records` in one transaction.
    The caller owns the session; this function commits or rolls back.
    """
    try:
        await db.execute(delete(models.SchemaEmbedding))
        db.add_all(records)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return len(records)
