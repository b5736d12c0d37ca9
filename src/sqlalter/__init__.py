"""
sqlalter: extended ALTER TABLE for SQLite.

sqlalter generates the SQL statements that rename, delete or modify columns
of a SQLite table by rebuilding it, alongside the natively supported
column additions and table renames.
"""

__version__ = "0.1.0"
__author__ = "sqlalter Contributors"

from .config import SqlAlterConfig
from .exceptions import (
    SqlAlterError,
    ConfigurationError,
    ValidationError,
    SchemaError,
    TableNotFoundError,
    ColumnNotFoundError,
    OriginalColumnNotFoundError,
    ColumnAlreadyExistsError,
)
from .schema import AlterOperations, AlterPlanner, ColumnSnapshot, gen_sql_alter_table

__all__ = [
    "__version__",
    "SqlAlterConfig",
    "SqlAlterError",
    "ConfigurationError",
    "ValidationError",
    "SchemaError",
    "TableNotFoundError",
    "ColumnNotFoundError",
    "OriginalColumnNotFoundError",
    "ColumnAlreadyExistsError",
    "AlterOperations",
    "AlterPlanner",
    "ColumnSnapshot",
    "gen_sql_alter_table",
]
