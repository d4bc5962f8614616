from app.core.etl.transform import format_column, format_table_description
from app.core.schemas import ColumnInfo, EnumValue, ForeignKeyInfo, TableMetadata


def make_orders_metadata():
    return TableMetadata(
        table_name="orders",
        columns=[
            ColumnInfo(column_name="order_id", data_type="bigint", is_primary_key=True),
            ColumnInfo(column_name="customer_id", data_type="bigint", is_foreign_key=True),
            ColumnInfo(column_name="status", data_type="string"),
        ],
        primary_keys=["order_id"],
        foreign_keys=[
            ForeignKeyInfo(
                column_name="customer_id",
                referenced_table="customers",
                referenced_column="customer_id",
            )
        ],
        enum_values=[EnumValue(column_name="status", values=["cancelled", "open"])],
    )


def test_full_description():
    assert format_table_description(make_orders_metadata()) == (
        "Table: orders\n"
        "Columns: order_id (bigint, primary key), customer_id (bigint, foreign key), status (string)\n"
        "Foreign Keys: orders.customer_id → customers.customer_id\n"
        "Primary Keys: order_id\n"
        "Sample Values: status can be 'cancelled', 'open'"
    )


def test_optional_sections_omitted():
    metadata = TableMetadata(
        table_name="events", columns=[ColumnInfo(column_name="ts", data_type="timestamp")]
    )
    assert format_table_description(metadata) == "Table: events\nColumns: ts (timestamp)"


def test_not_null_only_for_non_key_columns():
    assert format_column(ColumnInfo(column_name="a", data_type="int", is_nullable=False)) == "a (int, not null)"
    assert (
        format_column(ColumnInfo(column_name="a", data_type="int", is_nullable=False, is_primary_key=True))
        == "a (int, primary key)"
    )


def test_multiple_enum_columns_joined_with_semicolon():
    metadata = make_orders_metadata().model_copy(
        update={
            "enum_values": [
                EnumValue(column_name="status", values=["a", "b"]),
                EnumValue(column_name="channel", values=["web", "store"]),
            ]
        }
    )
    last_line = format_table_description(metadata).splitlines()[-1]
    assert last_line == "Sample Values: status can be 'a', 'b'; channel can be 'web', 'store'"


def test_description_is_deterministic():
    assert format_table_description(make_orders_metadata()) == format_table_description(
        make_orders_metadata()
    )
