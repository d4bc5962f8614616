"""MCP server exposing warehouse schema search and read-only querying.

Provides two tools for AI agents: semantic discovery of tables in the
Databricks warehouse, and execution of read-only Spark SQL against it.

Mounted by app.main at /api (endpoint /api/mcp), or run standalone over
stdio: python -m app.mcp_server
"""

import asyncio
import json
import logging
from typing import Annotated, Optional, Sequence

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings
from mcp.types import ToolAnnotations
from pydantic import Field

from app.ai_feature.executor import MAX_ROWS, QUERY_TIMEOUT_MS
from app.ai_feature.service import Services

SERVER_NAME = "warehouse-analytics"

SEARCH_SCHEMA_DESCRIPTION = """
Search for relevant database tables in the operational Databricks data warehouse using semantic similarity.
Use this tool to discover which tables contain the data you need before writing queries.
Returns table schemas including column names, data types, primary/foreign keys, relationships between tables, and sample enum values for categorical columns.
Results are ranked by semantic relevance to your search query, with higher similarity scores indicating better matches.
""".strip()

EXECUTE_QUERY_DESCRIPTION = f"""
Executes read-only SQL queries against the Databricks data warehouse using Apache Spark SQL dialect.

Supported Spark SQL features:
- SELECT statements with complex expressions
- Common Table Expressions (CTEs) using WITH clause (including recursive CTEs)
- Window functions (ROW_NUMBER, RANK, LAG, LEAD, etc.)
- Aggregate functions and GROUP BY
- JOINs (INNER, LEFT, RIGHT, FULL, CROSS)
- Subqueries and derived tables
- UNION, INTERSECT, EXCEPT set operations
- EXPLAIN for query plans
- Table metadata commands (DESCRIBE, SHOW)

Write operations are blocked for safety (INSERT, UPDATE, DELETE, DROP, CREATE, ALTER, TRUNCATE, GRANT, REVOKE, MERGE, COPY, CALL).
Results are limited to {MAX_ROWS} rows and queries timeout after {QUERY_TIMEOUT_MS // 1000} seconds.
""".strip()

READ_ONLY = ToolAnnotations(readOnlyHint=True, openWorldHint=True)


def transport_security(allowed_hosts: Optional[Sequence[str]]) -> TransportSecuritySettings:
    """
    Host checks for the streamable HTTP endpoint.

    With no allowed hosts every Host header is accepted. Otherwise only the
    listed hosts (and browser origins on them) get through; the rest are
    answered with 421.
    """
    if not allowed_hosts:
        return TransportSecuritySettings(enable_dns_rebinding_protection=False)

    return TransportSecuritySettings(
        enable_dns_rebinding_protection=True,
        allowed_hosts=list(allowed_hosts),
        allowed_origins=[
            f"{scheme}://{host}" for host in allowed_hosts for scheme in ("http", "https")
        ],
    )


def create_mcp_server(
    services: Services, allowed_hosts: Optional[Sequence[str]] = None
) -> FastMCP:
    """Build a FastMCP server whose tools run on the given services."""
    mcp = FastMCP(
        SERVER_NAME,
        streamable_http_path="/mcp",
        transport_security=transport_security(allowed_hosts),
    )

    # Tool argument names are camelCase because they are the wire contract
    @mcp.tool(
        name="search_schema",
        title="Search Warehouse Schema",
        description=SEARCH_SCHEMA_DESCRIPTION,
        annotations=READ_ONLY,
    )
    async def search_schema(
        query: Annotated[
            str,
            Field(
                min_length=1,
                description=(
                    "Natural language description of the data you're looking for. "
                    "Examples: 'customer orders and purchases', "
                    "'user authentication and sessions', 'product inventory and pricing'"
                ),
            ),
        ],
        limit: Annotated[
            int,
            Field(
                ge=1,
                le=20,
                description="Maximum number of table schemas to return. Defaults to 10, maximum 20.",
            ),
        ] = 10,
        minSimilarity: Annotated[
            float,
            Field(
                ge=0,
                le=1,
                description=(
                    "Minimum similarity score threshold (0-1). Only tables with "
                    "similarity above this threshold will be returned. Defaults to 0.3."
                ),
            ),
        ] = 0.3,
    ) -> str:
        result = await services.retriever.search(
            query, limit=limit, min_similarity=minSimilarity
        )
        return json.dumps(result.model_dump(mode="json", by_alias=True), indent=2)

    @mcp.tool(
        name="execute_query",
        title="Execute Warehouse Query",
        description=EXECUTE_QUERY_DESCRIPTION,
        annotations=READ_ONLY,
    )
    async def execute_query(
        sqlQuery: Annotated[
            str,
            Field(
                min_length=1,
                description=(
                    "SQL query to execute against the Databricks data warehouse. "
                    "Must be a read-only SELECT query using Spark SQL syntax."
                ),
            ),
        ],
    ) -> str:
        result = await services.executor.execute(sqlQuery)
        return json.dumps(result.model_dump(mode="json", by_alias=True), indent=2)

    return mcp


async def serve_stdio() -> None:
    from app.core.config import settings

    services = Services.from_settings(settings)
    mcp = create_mcp_server(services)
    try:
        await mcp.run_stdio_async()
    finally:
        await services.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(serve_stdio())
