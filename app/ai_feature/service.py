"""
Service container.

Builds the process-wide clients once at startup (warehouse handle,
vector store engine, embeddings client), wires them into the executor
and retriever, and closes them at shutdown.

Request flow:
1. search_schema: embed -> similarity query -> ranked tables
2. execute_query: guard -> row limit -> execute -> structured result
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.ai_feature.executor import QueryExecutor
from app.ai_feature.retriever import SchemaRetriever
from app.core.config import Settings
from app.core.database import create_engine, create_session_factory
from app.core.embeddings import EmbeddingProvider
from app.core.warehouse import WarehouseClient

logger = logging.getLogger(__name__)


@dataclass
class Services:
    warehouse: WarehouseClient
    embedder: EmbeddingProvider
    session_factory: async_sessionmaker[AsyncSession]
    engine: Optional[AsyncEngine] = None

    def __post_init__(self):
        self.executor = QueryExecutor(self.warehouse)
        self.retriever = SchemaRetriever(self.embedder, self.session_factory)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Services":
        # Nothing here touches the network; connections open on first use
        engine = create_engine(settings.DB_CONNECTION_STRING, echo=settings.SQL_ECHO)
        return cls(
            warehouse=WarehouseClient.from_settings(settings),
            embedder=EmbeddingProvider.from_settings(settings),
            session_factory=create_session_factory(engine),
            engine=engine,
        )

    async def close(self) -> None:
        await self.warehouse.close()
        await self.embedder.close()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("Services closed")


# FastAPI dependency: the container lives on app.state
def get_services(request: Request) -> Services:
    return request.app.state.services
