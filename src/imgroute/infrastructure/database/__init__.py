"""Heterogeneous key-value table on SQLite via SQLAlchemy Core."""

from imgroute.infrastructure.database.engine import create_db_engine, init_database
from imgroute.infrastructure.database.errors import (
    ConditionalCheckFailedError,
    TableError,
    ThrottlingError,
    TransactionCanceledError,
)
from imgroute.infrastructure.database.schema import config_items, metadata
from imgroute.infrastructure.database.table import (
    Condition,
    ConfigTable,
    Delete,
    PageKey,
    Put,
    QueryPage,
    TableIndex,
)

__all__ = [
    "Condition",
    "ConditionalCheckFailedError",
    "ConfigTable",
    "Delete",
    "PageKey",
    "Put",
    "QueryPage",
    "TableError",
    "TableIndex",
    "ThrottlingError",
    "TransactionCanceledError",
    "config_items",
    "create_db_engine",
    "init_database",
    "metadata",
]
