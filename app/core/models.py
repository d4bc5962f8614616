from pgvector.sqlalchemy import Vector
from sqlalchemy import BigInteger, Column, Index, Text

from app.core.database import Base

# text-embedding-3-small; the 0001 migration creates the column with this size
EMBEDDING_DIMENSIONS = 1536


# =========================
# Schema embedding (one row per warehouse table)
# =========================
class SchemaEmbedding(Base):
    """
    Searchable description of one warehouse table.

    Rows are owned by the offline rebuild job (app/core/etl) which deletes
    everything and re-inserts on each run. The request path only reads them.
    """

    __tablename__ = "operational_schema_embeddings"

    id = Column(BigInteger, primary_key=True, autoincrement=True)

    schema_description = Column(Text, nullable=False)
    table_name = Column(Text, nullable=False)
    embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=False)

    __table_args__ = (
        Index(
            "schema_embeddings_embedding_idx",
            embedding,
            postgresql_using="hnsw",
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ),
    )

    def __repr__(self) -> str:
        return f"<SchemaEmbedding(id={self.id}, table_name='{self.table_name}')>"
