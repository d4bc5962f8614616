# app/core/etl/transform.py
"""
TRANSFORM MODULE - Turn table metadata into a searchable description

Purpose:
    1. Render one human-readable text block per table
    2. Keep the output deterministic (same metadata → same string)

Data Flow:
    TableMetadata (from extract.py) → format_table_description() → description
                                                                        ↓
                                                              embedded in pipeline.py

Example output:
    Table: orders
    Columns: id (bigint, primary key), customer_id (bigint, foreign key), status (string)
    Foreign Keys: orders.customer_id → customers.id
    Primary Keys: id
    Sample Values: status can be 'cancelled', 'open', 'shipped'
"""

from typing import List

from app.core.schemas import ColumnInfo, TableMetadata


def quote_value(value: str) -> str:
    return f"'{value}'"


def format_column(column: ColumnInfo) -> str:
    constraints: List[str] = []

    if column.is_primary_key:
        constraints.append("primary key")
    if column.is_foreign_key:
        constraints.append("foreign key")
    if not column.is_nullable and not column.is_primary_key:
        constraints.append("not null")

    suffix = f", {', '.join(constraints)}" if constraints else ""
    return f"{column.column_name} ({column.data_type}{suffix})"


def format_table_description(metadata: TableMetadata) -> str:
    lines = [f"Table: {metadata.table_name}"]

    lines.append(
        f"Columns: {', '.join(format_column(column) for column in metadata.columns)}"
    )

    if metadata.foreign_keys:
        foreign_keys = ", ".join(
            f"{metadata.table_name}.{fk.column_name} → {fk.referenced_table}.{fk.referenced_column}"
            for fk in metadata.foreign_keys
        )
        lines.append(f"Foreign Keys: {foreign_keys}")

    if metadata.primary_keys:
        lines.append(f"Primary Keys: {', '.join(metadata.primary_keys)}")

    if metadata.enum_values:
        samples = "; ".join(
            f"{enum.column_name} can be {', '.join(quote_value(v) for v in enum.values)}"
            for enum in metadata.enum_values
        )
        lines.append(f"Sample Values: {samples}")

    return "\n".join(lines)
