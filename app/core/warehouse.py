"""
Thin async wrapper around the Databricks SQL connector.

The connector is blocking, so every network call is pushed to a worker
thread with asyncio.to_thread. One WarehouseClient lives for the whole
process; every caller opens its own WarehouseSession and closes it.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Set

from databricks import sql

from app.core.config import Settings

logger = logging.getLogger(__name__)

# The connector is chatty (LZ4 warnings, thrift retries); only errors are interesting
logging.getLogger("databricks.sql").setLevel(logging.ERROR)

# Connections left open by timed-out statements, closed once those finish
_pending_closes: Set[asyncio.Task] = set()


class WarehouseError(Exception):
    """Raised for any failure talking to the warehouse."""


def _row_to_dict(row: Any) -> Dict[str, Any]:
    if isinstance(row, dict):
        return row
    if hasattr(row, "asDict"):
        return row.asDict()
    return dict(row)


class WarehouseSession:
    """A single open connection, scoped to the configured catalog/schema."""

    def __init__(self, connection: Any):
        self._connection = connection
        self._closed = False
        self._running: Optional[asyncio.Future] = None

    def _run_statement(self, statement: str, max_rows: int) -> List[Dict[str, Any]]:
        cursor = self._connection.cursor(arraysize=max_rows)
        try:
            cursor.execute(statement)
            rows = cursor.fetchmany(max_rows)
            return [_row_to_dict(row) for row in rows]
        finally:
            cursor.close()

    async def execute(
        self, statement: str, max_rows: int, timeout: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        """
        Run one statement and fetch at most max_rows rows.

        The timeout bounds how long we wait. It does not cancel the
        statement: the worker thread keeps the connection until it
        finishes, and close() waits for it before closing the connection.
        """
        if self._closed:
            raise WarehouseError("Session is closed")

        self._running = asyncio.ensure_future(
            asyncio.to_thread(self._run_statement, statement, max_rows)
        )
        try:
            return await asyncio.wait_for(asyncio.shield(self._running), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise WarehouseError(
                f"Statement execution timeout after {timeout}s"
            ) from e
        except WarehouseError:
            raise
        except Exception as e:
            raise WarehouseError(str(e) or e.__class__.__name__) from e

    async def _close_connection(self) -> None:
        try:
            await asyncio.to_thread(self._connection.close)
        except Exception as e:
            # Closing is best effort; the statement result has already been returned
            logger.warning(f"Failed to close warehouse session: {e}")

    async def _close_after(self, running: asyncio.Future) -> None:
        try:
            await running
        except Exception as e:
            logger.warning(f"Abandoned warehouse statement failed: {e}")
        await self._close_connection()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self._running is not None and not self._running.done():
            # A timed-out statement still owns the connection
            task = asyncio.create_task(self._close_after(self._running))
            _pending_closes.add(task)
            task.add_done_callback(_pending_closes.discard)
            return

        await self._close_connection()


class WarehouseClient:
    """
    Process-wide handle to the Databricks SQL warehouse.

    Holds connection settings only; created once at startup, shared by all
    requests, closed at shutdown.
    """

    def __init__(
        self,
        host: str,
        http_path: str,
        access_token: str,
        catalog: str,
        schema: str,
        connect: Callable[..., Any] = sql.connect,
    ):
        self.host = host
        self.http_path = http_path
        self.catalog = catalog
        self.schema = schema
        self._access_token = access_token
        self._connect = connect
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "WarehouseClient":
        return cls(
            host=settings.DATABRICKS_HOST,
            http_path=settings.DATABRICKS_HTTP_PATH,
            access_token=settings.DATABRICKS_ACCESS_TOKEN,
            catalog=settings.DATABRICKS_CATALOG,
            schema=settings.DATABRICKS_SCHEMA,
        )

    async def open_session(self) -> WarehouseSession:
        if self._closed:
            raise WarehouseError("Warehouse client is closed")

        try:
            connection = await asyncio.to_thread(
                self._connect,
                server_hostname=self.host,
                http_path=self.http_path,
                access_token=self._access_token,
                catalog=self.catalog,
                schema=self.schema,
            )
        except Exception as e:
            raise WarehouseError(str(e) or e.__class__.__name__) from e

        return WarehouseSession(connection)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[WarehouseSession]:
        session = await self.open_session()
        try:
            yield session
        finally:
            await session.close()

    async def close(self) -> None:
        self._closed = True
        logger.info("Warehouse client closed")
