# app/core/etl/extract.py
"""
EXTRACT MODULE - Read table metadata from the warehouse

Purpose:
    1. List every table in the configured catalog/schema
    2. Read columns and their declared types
    3. Read primary keys and foreign keys (best effort)
    4. Sample low-cardinality text columns for enum-like values (best effort)

Data Flow:
    SHOW TABLES → DESCRIBE TABLE EXTENDED → SHOW TBLPROPERTIES → SELECT DISTINCT
                                       ↓
                                 TableMetadata

Other warehouse dialects plug in by implementing MetadataExtractor; the
parse_* helpers are plain functions over result rows so they can be
reused or swapped independently.
"""

import logging
import re
from typing import Any, Dict, List, Protocol

from app.core.schemas import ColumnInfo, EnumValue, ForeignKeyInfo, TableMetadata
from app.core.warehouse import WarehouseSession

logger = logging.getLogger(__name__)

METADATA_MAX_ROWS = 10000
ENUM_SAMPLE_SIZE = 20
ENUM_MIN_VALUES = 2
ENUM_MAX_VALUES = 10
TEXT_TYPES = ("string", "text", "varchar", "char")

DETAIL_SECTION_MARKER = "# Detailed Table Information"
FOREIGN_KEY_PATTERN = re.compile(r"(\w+)\s*->\s*(\w+)\.(\w+)")
PRIMARY_KEY_PROPERTIES = ("primaryKey", "primary_key")

Row = Dict[str, Any]


class MetadataExtractor(Protocol):
    """What the rebuild pipeline needs from a warehouse."""

    async def list_tables(self) -> List[str]: ...

    async def extract_table_metadata(self, table_name: str) -> TableMetadata: ...


# ============================================================================
# PARSERS (pure functions over result rows)
# ============================================================================


def parse_columns(description_rows: List[Row]) -> List[ColumnInfo]:
    """
    Read columns from DESCRIBE TABLE EXTENDED output.

    The column list ends at the first empty or "#" row (partition info and
    the detailed table section follow it).

    Example:
        [{"col_name": "id", "data_type": "bigint"}, {"col_name": "", ...}]
        → [ColumnInfo(column_name="id", data_type="bigint")]
    """
    columns: List[ColumnInfo] = []

    for row in description_rows:
        col_name = row.get("col_name")

        if not col_name or col_name.startswith("#"):
            break

        if col_name.strip() == "":
            continue

        columns.append(
            ColumnInfo(column_name=col_name, data_type=row.get("data_type") or "string")
        )

    return columns


def parse_primary_keys(property_rows: List[Row]) -> List[str]:
    """Read a comma-separated primary key list from SHOW TBLPROPERTIES output."""
    for row in property_rows:
        if row.get("key") in PRIMARY_KEY_PROPERTIES:
            value = row.get("value") or ""
            return [name.strip() for name in value.split(",") if name.strip()]
    return []


def parse_foreign_keys(description_rows: List[Row]) -> List[ForeignKeyInfo]:
    """
    Read foreign keys from the detailed section of DESCRIBE TABLE EXTENDED.

    Expects rows like {"col_name": "Foreign Key", "data_type": "customer_id -> customers.id"}.
    """
    foreign_keys: List[ForeignKeyInfo] = []
    in_detail_section = False

    for row in description_rows:
        col_name = row.get("col_name") or ""

        if col_name == DETAIL_SECTION_MARKER:
            in_detail_section = True
            continue

        if in_detail_section and "Foreign Key" in col_name:
            match = FOREIGN_KEY_PATTERN.search(row.get("data_type") or "")
            if match:
                foreign_keys.append(
                    ForeignKeyInfo(
                        column_name=match.group(1),
                        referenced_table=match.group(2),
                        referenced_column=match.group(3),
                    )
                )

    return foreign_keys


def pick_enum_values(values: List[Any]) -> List[str]:
    """
    Decide whether sampled distinct values look like an enum.

    Returns the sorted values when 2..10 non-null values were seen,
    otherwise an empty list.
    """
    distinct = sorted({str(value) for value in values if value is not None})

    if ENUM_MIN_VALUES <= len(distinct) <= ENUM_MAX_VALUES:
        return distinct
    return []


def is_text_column(column: ColumnInfo) -> bool:
    return column.data_type.lower() in TEXT_TYPES


def mark_key_columns(
    columns: List[ColumnInfo],
    primary_keys: List[str],
    foreign_keys: List[ForeignKeyInfo],
) -> List[ColumnInfo]:
    primary_key_set = set(primary_keys)
    foreign_key_set = {foreign_key.column_name for foreign_key in foreign_keys}

    return [
        column.model_copy(
            update={
                "is_primary_key": column.column_name in primary_key_set,
                "is_foreign_key": column.column_name in foreign_key_set,
            }
        )
        for column in columns
    ]


# ============================================================================
# DATABRICKS EXTRACTOR
# ============================================================================


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


class DatabricksMetadataExtractor:
    """MetadataExtractor backed by an open Databricks SQL session."""

    def __init__(self, session: WarehouseSession, catalog: str, schema: str):
        self.session = session
        self.catalog = catalog
        self.schema = schema

    def full_table_name(self, table_name: str) -> str:
        return ".".join(
            quote_identifier(part) for part in (self.catalog, self.schema, table_name)
        )

    async def _fetch(self, statement: str, max_rows: int = METADATA_MAX_ROWS) -> List[Row]:
        return await self.session.execute(statement, max_rows=max_rows)

    async def list_tables(self) -> List[str]:
        rows = await self._fetch(
            f"SHOW TABLES IN {quote_identifier(self.catalog)}.{quote_identifier(self.schema)}"
        )
        # Sorted so repeated rebuilds produce rows in the same order
        return sorted(row["tableName"] for row in rows)

    async def get_columns(self, table_name: str) -> List[ColumnInfo]:
        rows = await self._fetch(
            f"DESCRIBE TABLE EXTENDED {self.full_table_name(table_name)}"
        )
        return parse_columns(rows)

    async def get_primary_keys(self, table_name: str) -> List[str]:
        try:
            rows = await self._fetch(
                f"SHOW TBLPROPERTIES {self.full_table_name(table_name)}"
            )
        except Exception as e:
            logger.warning(f"No primary keys for {table_name}: {e}")
            return []
        return parse_primary_keys(rows)

    async def get_foreign_keys(self, table_name: str) -> List[ForeignKeyInfo]:
        try:
            rows = await self._fetch(
                f"DESCRIBE TABLE EXTENDED {self.full_table_name(table_name)}"
            )
        except Exception as e:
            logger.warning(f"No foreign keys for {table_name}: {e}")
            return []
        return parse_foreign_keys(rows)

    async def detect_enum_values(
        self, table_name: str, columns: List[ColumnInfo]
    ) -> List[EnumValue]:
        enum_values: List[EnumValue] = []

        for column in filter(is_text_column, columns):
            column_sql = quote_identifier(column.column_name)
            try:
                rows = await self._fetch(
                    f"SELECT DISTINCT {column_sql} AS value "
                    f"FROM {self.full_table_name(table_name)} "
                    f"WHERE {column_sql} IS NOT NULL "
                    f"LIMIT {ENUM_SAMPLE_SIZE}",
                    max_rows=ENUM_SAMPLE_SIZE,
                )
            except Exception as e:
                logger.warning(
                    f"Skipping sample values for {table_name}.{column.column_name}: {e}"
                )
                continue

            values = pick_enum_values([row.get("value") for row in rows])
            if values:
                enum_values.append(EnumValue(column_name=column.column_name, values=values))

        return enum_values

    async def extract_table_metadata(self, table_name: str) -> TableMetadata:
        # One session, one statement at a time
        columns = await self.get_columns(table_name)
        primary_keys = await self.get_primary_keys(table_name)
        foreign_keys = await self.get_foreign_keys(table_name)

        columns = mark_key_columns(columns, primary_keys, foreign_keys)
        enum_values = await self.detect_enum_values(table_name, columns)

        return TableMetadata(
            table_name=table_name,
            columns=columns,
            primary_keys=primary_keys,
            foreign_keys=foreign_keys,
            enum_values=enum_values,
        )
