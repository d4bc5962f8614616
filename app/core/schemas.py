from typing import Optional, List, Dict, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire models: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =========================
# QUERY GUARD / EXECUTOR
# =========================
class SqlQueryRequest(CamelModel):
    sql_query: str = Field(
        min_length=1,
        description=(
            "SQL query to execute against the Databricks data warehouse. "
            "Must be a read-only SELECT query using Spark SQL syntax."
        ),
    )


class ValidationResult(BaseModel):
    valid: bool
    reason: Optional[str] = None


class QuerySuccess(CamelModel):
    success: Literal[True] = True
    rows: List[Dict[str, Any]]
    row_count: int


class QueryFailure(CamelModel):
    success: Literal[False] = False
    error: str


QueryResult = Union[QuerySuccess, QueryFailure]


# =========================
# SCHEMA SEARCH
# =========================
class SchemaSearchRequest(CamelModel):
    query: str = Field(
        min_length=1,
        description=(
            "Natural language description of the data you're looking for. "
            "Examples: 'customer orders and purchases', "
            "'user authentication and sessions', 'product inventory and pricing'"
        ),
    )
    limit: int = Field(
        default=10,
        ge=1,
        le=20,
        description="Maximum number of table schemas to return. Defaults to 10, maximum 20.",
    )
    min_similarity: float = Field(
        default=0.3,
        ge=0,
        le=1,
        description=(
            "Minimum similarity score threshold (0-1). Only tables with similarity "
            "above this threshold will be returned. Defaults to 0.3."
        ),
    )


class TableMatch(CamelModel):
    table_name: str
    schema_description: str
    similarity_score: float


class SchemaSearchResponse(CamelModel):
    tables: List[TableMatch] = []


# =========================
# OFFLINE METADATA (ETL)
# =========================
class ColumnInfo(BaseModel):
    column_name: str
    data_type: str = "string"
    is_nullable: bool = True
    is_primary_key: bool = False
    is_foreign_key: bool = False


class ForeignKeyInfo(BaseModel):
    column_name: str
    referenced_table: str
    referenced_column: str


class EnumValue(BaseModel):
    column_name: str
    values: List[str]


class TableMetadata(BaseModel):
    table_name: str
    columns: List[ColumnInfo] = []
    primary_keys: List[str] = []
    foreign_keys: List[ForeignKeyInfo] = []
    enum_values: List[EnumValue] = []
