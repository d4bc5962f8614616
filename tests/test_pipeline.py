from contextlib import asynccontextmanager

import pytest
from sqlalchemy.sql.dml import Delete

from app.core.etl import load
from app.core.etl.pipeline import PipelineStatus, run_embedding_rebuild
from app.core.schemas import ColumnInfo, TableMetadata

from conftest import FakeEmbedder


class FakeTable:
    """Minimal stand-in for the embeddings table behind an AsyncSession."""

    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.commits = 0
        self.rollbacks = 0
        self.fail_on_commit = False


class FakeDbSession:
    def __init__(self, table: FakeTable):
        self.table = table
        self.pending = []
        self.cleared = False

    async def execute(self, statement):
        if isinstance(statement, Delete):
            self.cleared = True

    def add_all(self, records):
        self.pending.extend(records)

    async def commit(self):
        if self.table.fail_on_commit:
            raise RuntimeError("connection lost")
        if self.cleared:
            self.table.rows = []
        self.table.rows.extend(self.pending)
        self.pending = []
        self.table.commits += 1

    async def rollback(self):
        self.pending = []
        self.cleared = False
        self.table.rollbacks += 1


class FakeDbFactory:
    def __init__(self, table: FakeTable):
        self.table = table

    @asynccontextmanager
    async def __call__(self):
        yield FakeDbSession(self.table)


class StaticExtractor:
    def __init__(self, tables, broken=()):
        self.tables = tables
        self.broken = broken

    async def list_tables(self):
        return sorted(self.tables)

    async def extract_table_metadata(self, table_name):
        if table_name in self.broken:
            raise RuntimeError(f"cannot describe {table_name}")
        return TableMetadata(
            table_name=table_name,
            columns=[ColumnInfo(column_name=c, data_type="string") for c in self.tables[table_name]],
        )


TABLES = {
    "orders": ["order_id", "customer_id"],
    "customers": ["customer_id", "name"],
    "projects": ["project_id"],
}


@pytest.mark.asyncio
async def test_rebuild_replaces_everything():
    table = FakeTable(rows=["stale row"])
    embedder = FakeEmbedder()

    outcome = await run_embedding_rebuild(StaticExtractor(TABLES), embedder, FakeDbFactory(table))

    assert outcome["status"] == PipelineStatus.COMPLETED
    assert outcome["result"] == {"tables": 3, "inserted": 3}
    assert [row.table_name for row in table.rows] == ["customers", "orders", "projects"]
    assert table.rows[1].schema_description == (
        "Table: orders\nColumns: order_id (string), customer_id (string)"
    )
    assert embedder.calls == [row.schema_description for row in table.rows]
    assert table.commits == 1


@pytest.mark.asyncio
async def test_rebuild_is_idempotent():
    table = FakeTable()
    factory = FakeDbFactory(table)

    await run_embedding_rebuild(StaticExtractor(TABLES), FakeEmbedder(), factory)
    first = [(row.table_name, row.schema_description) for row in table.rows]

    await run_embedding_rebuild(StaticExtractor(TABLES), FakeEmbedder(), factory)
    second = [(row.table_name, row.schema_description) for row in table.rows]

    assert first == second
    assert len(table.rows) == len(TABLES)


@pytest.mark.asyncio
async def test_failed_table_leaves_previous_rows():
    table = FakeTable(rows=["previous row"])
    embedder = FakeEmbedder()

    outcome = await run_embedding_rebuild(
        StaticExtractor(TABLES, broken=("orders",)), embedder, FakeDbFactory(table)
    )

    assert outcome["status"] == PipelineStatus.FAILED
    assert "cannot describe orders" in outcome["error"]
    assert outcome["logs"][-1]["level"] == "error"
    assert outcome["logs"][-1]["step"] == "extract"
    assert table.rows == ["previous row"]


@pytest.mark.asyncio
async def test_load_rolls_back_on_commit_failure():
    table = FakeTable(rows=["previous row"])
    table.fail_on_commit = True

    with pytest.raises(RuntimeError, match="connection lost"):
        await load.replace_schema_embeddings(
            FakeDbFactory(table), [("orders", "Table: orders", [0.0, 1.0])]
        )

    assert table.rollbacks == 1
    assert table.rows == ["previous row"]


def test_build_records():
    records = load.build_records([("orders", "Table: orders", (0.5, 0.25))])

    assert records[0].table_name == "orders"
    assert records[0].schema_description == "Table: orders"
    assert records[0].embedding == [0.5, 0.25]
