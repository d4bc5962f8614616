import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core import vector_store
from app.core.embeddings import EmbeddingProvider
from app.core.schemas import SchemaSearchRequest, SchemaSearchResponse

logger = logging.getLogger(__name__)


class SchemaRetriever:
    """
    Natural-language table discovery.

    Embeds the request and lets pgvector do the filtering and ranking.
    Errors propagate: a search either returns everything or nothing.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        self.embedder = embedder
        self.session_factory = session_factory

    async def search(
        self, query: str, limit: int = 10, min_similarity: float = 0.3
    ) -> SchemaSearchResponse:
        # Range checks (limit 1..20, similarity 0..1) live on the request model
        request = SchemaSearchRequest(
            query=query, limit=limit, min_similarity=min_similarity
        )

        embedding = await self.embedder.embed(request.query)

        async with self.session_factory() as db:
            tables = await vector_store.search_similar_tables(
                db,
                embedding,
                limit=request.limit,
                min_similarity=request.min_similarity,
            )

        logger.info(
            f"Schema search matched {len(tables)} tables "
            f"(limit={request.limit}, min_similarity={request.min_similarity})"
        )
        return SchemaSearchResponse(tables=tables)
