"""create operational_schema_embeddings

Revision ID: 0001_schema_embeddings
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector

revision: str = "0001_schema_embeddings"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        "operational_schema_embeddings",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("schema_description", sa.Text(), nullable=False),
        sa.Column("table_name", sa.Text(), nullable=False),
        sa.Column("embedding", Vector(1536), nullable=False),
    )

    # HNSW index for cosine similarity search
    op.create_index(
        "schema_embeddings_embedding_idx",
        "operational_schema_embeddings",
        ["embedding"],
        postgresql_using="hnsw",
        postgresql_ops={"embedding": "vector_cosine_ops"},
    )


def downgrade() -> None:
    op.drop_index(
        "schema_embeddings_embedding_idx", table_name="operational_schema_embeddings"
    )
    op.drop_table("operational_schema_embeddings")
