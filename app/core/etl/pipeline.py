import asyncio
import logging
import sys
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.embeddings import EmbeddingProvider
from app.core.etl import load, transform
from app.core.etl.extract import DatabricksMetadataExtractor, MetadataExtractor


# -----------------------------------------------------------------------------
# PIPELINE MODULE - Orchestration
# Purpose: rebuild the schema embeddings table from the live warehouse schema:
# extract metadata -> describe -> embed -> replace everything.
# Re-run whenever the warehouse schema changes.
# -----------------------------------------------------------------------------


class PipelineStatus(str, Enum):
    """Pipeline execution status."""

    COMPLETED = "completed"
    FAILED = "failed"


class PipelineStep(str, Enum):
    """Individual pipeline steps."""

    CONNECT = "connect"
    EXTRACT = "extract"
    EMBED = "embed"
    LOAD = "load"


logger = logging.getLogger(__name__)


class PipelineLogger:
    """Keeps structured step logs for one rebuild run and mirrors them to logging."""

    def __init__(self):
        self.start_time = datetime.now()
        self.logs: List[Dict[str, Any]] = []

    def log(self, step: PipelineStep, message: str, level: str = "info"):
        self.logs.append(
            {
                "timestamp": datetime.now().isoformat(),
                "step": step.value,
                "message": message,
                "level": level,
                "elapsed_seconds": (datetime.now() - self.start_time).total_seconds(),
            }
        )

        if level == "error":
            logger.error(f"{step.value}: {message}")
        elif level == "warning":
            logger.warning(f"{step.value}: {message}")
        else:
            logger.info(f"{step.value}: {message}")

    def get_logs(self) -> List[Dict[str, Any]]:
        return self.logs


async def run_embedding_rebuild(
    extractor: MetadataExtractor,
    embedder: EmbeddingProvider,
    session_factory: async_sessionmaker[AsyncSession],
) -> Dict[str, Any]:
    """
    Rebuild every stored table description and embedding.

    Nothing is written until all tables are described and embedded, so a
    failure part-way leaves the previous set in place.

    Args:
        extractor: Source of table metadata (e.g. DatabricksMetadataExtractor)
        embedder: Embedding provider used for every description
        session_factory: Vector store sessions

    Returns:
        {"status", "result" | "error", "logs"}
    """
    pipeline_logger = PipelineLogger()
    step = PipelineStep.CONNECT

    try:
        async with session_factory() as db:
            await db.execute(text("SELECT 1"))
        pipeline_logger.log(PipelineStep.CONNECT, "Connected to vector store")

        step = PipelineStep.EXTRACT
        table_names = await extractor.list_tables()
        pipeline_logger.log(
            PipelineStep.EXTRACT, f"Found {len(table_names)} tables to process"
        )

        entries = []
        for index, table_name in enumerate(table_names, start=1):
            step = PipelineStep.EXTRACT
            metadata = await extractor.extract_table_metadata(table_name)
            description = transform.format_table_description(metadata)

            step = PipelineStep.EMBED
            embedding = await embedder.embed(description)
            entries.append((table_name, description, embedding))

            pipeline_logger.log(
                PipelineStep.EMBED, f"[{index}/{len(table_names)}] {table_name} done"
            )

        step = PipelineStep.LOAD
        inserted = await load.replace_schema_embeddings(session_factory, entries)
        pipeline_logger.log(PipelineStep.LOAD, f"Inserted {inserted} embeddings")

        return {
            "status": PipelineStatus.COMPLETED,
            "result": {"tables": len(table_names), "inserted": inserted},
            "logs": pipeline_logger.get_logs(),
        }

    except Exception as e:
        pipeline_logger.log(step, f"Rebuild failed: {e}", "error")
        return {
            "status": PipelineStatus.FAILED,
            "error": str(e),
            "logs": pipeline_logger.get_logs(),
        }


async def rebuild_from_settings() -> Dict[str, Any]:
    """Wire real clients from the environment and run one rebuild."""
    from app.core.config import settings
    from app.core.database import create_engine, create_session_factory
    from app.core.warehouse import WarehouseClient

    warehouse = WarehouseClient.from_settings(settings)
    embedder = EmbeddingProvider.from_settings(settings)
    engine = create_engine(settings.DB_CONNECTION_STRING, echo=settings.SQL_ECHO)

    try:
        async with warehouse.session() as session:
            extractor = DatabricksMetadataExtractor(
                session, settings.DATABRICKS_CATALOG, settings.DATABRICKS_SCHEMA
            )
            return await run_embedding_rebuild(
                extractor, embedder, create_session_factory(engine)
            )
    finally:
        await warehouse.close()
        await embedder.close()
        await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)

    try:
        outcome = asyncio.run(rebuild_from_settings())
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)

    if outcome["status"] != PipelineStatus.COMPLETED:
        sys.exit(1)


if __name__ == "__main__":
    main()
