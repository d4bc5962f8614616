import logging
import re
import time

from app.ai_feature.guard import validate_read_only_query
from app.core.schemas import QueryFailure, QueryResult, QuerySuccess
from app.core.warehouse import WarehouseClient

logger = logging.getLogger(__name__)

MAX_ROWS = 1000
QUERY_TIMEOUT_MS = 30000

_LIMIT_CLAUSE = re.compile(r"\blimit\b")
_WHITESPACE = re.compile(r"\s+")


def has_limit_clause(sql_query: str) -> bool:
    normalized = _WHITESPACE.sub(" ", sql_query.lower())
    return bool(_LIMIT_CLAUSE.search(normalized))


def apply_row_limit(sql_query: str, max_rows: int = MAX_ROWS) -> str:
    """
    Append LIMIT <max_rows> unless the query already mentions LIMIT.

    Keyword check only: a LIMIT inside a subquery or string literal also
    counts as present.
    """
    if has_limit_clause(sql_query):
        return sql_query
    return f"{sql_query.strip()} LIMIT {max_rows}"


def describe_failure(error: Exception, timeout_ms: int = QUERY_TIMEOUT_MS) -> str:
    """Turn a warehouse exception into a message the agent can act on."""
    message = str(error) or "Unknown error occurred"
    lowered = message.lower()

    if "timeout" in lowered:
        return f"Query timeout after {timeout_ms / 1000:g}s: {message}"
    if "syntax" in lowered:
        return f"SQL syntax error (Spark SQL dialect): {message}"
    return message


class QueryExecutor:
    """
    Runs agent-supplied SQL against the warehouse.

    guard -> row limit -> open session -> execute/fetch -> close.
    Never raises: every outcome is a QuerySuccess or QueryFailure.
    """

    def __init__(
        self,
        warehouse: WarehouseClient,
        max_rows: int = MAX_ROWS,
        timeout_ms: int = QUERY_TIMEOUT_MS,
    ):
        self.warehouse = warehouse
        self.max_rows = max_rows
        self.timeout_ms = timeout_ms

    async def execute(self, sql_query: str) -> QueryResult:
        validation = validate_read_only_query(sql_query)

        if not validation.valid:
            logger.warning(f"Rejected query: {validation.reason}")
            return QueryFailure(error=validation.reason or "Query validation failed")

        statement = apply_row_limit(sql_query, self.max_rows)
        started = time.perf_counter()

        try:
            async with self.warehouse.session() as session:
                rows = await session.execute(
                    statement,
                    max_rows=self.max_rows,
                    timeout=self.timeout_ms / 1000,
                )
        except Exception as e:
            error = describe_failure(e, self.timeout_ms)
            logger.error(f"Query failed: {error}")
            return QueryFailure(error=error)

        rows = rows[: self.max_rows]
        logger.info(
            f"Query returned {len(rows)} rows in {time.perf_counter() - started:.2f}s"
        )
        return QuerySuccess(rows=rows, row_count=len(rows))
