"""
Exception classes for sqlalter.
"""

from typing import Any, Dict, Optional


class SqlAlterError(Exception):
    """Base exception for all sqlalter errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            result += f" [{details_str}]"
        if self.cause:
            result += f" (caused by: {self.cause})"
        return result


class ConfigurationError(SqlAlterError):
    """Raised when there's an error in configuration."""

    pass


class ValidationError(SqlAlterError):
    """Raised when a snapshot or operation request is malformed."""

    pass


class SchemaError(SqlAlterError):
    """Raised when an alter plan cannot be built for a table."""

    pass


class TableNotFoundError(SchemaError):
    """Raised when the table snapshot has no columns."""

    def __init__(self, table_name: str) -> None:
        super().__init__(f"Can't alter table '{table_name}': table doesn't exist")
        self.table_name = table_name


class ColumnError(SchemaError):
    """Base for errors tied to a single column of a requested operation."""

    def __init__(
        self,
        message: str,
        table_name: str,
        column_name: str,
        operation: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.table_name = table_name
        self.column_name = column_name
        self.operation = operation


class ColumnNotFoundError(ColumnError):
    """Raised when an operation references a column missing from the working set."""

    def __init__(
        self,
        table_name: str,
        column_name: str,
        operation: str,
        message: Optional[str] = None,
    ) -> None:
        super().__init__(
            message
            or f"Can't {operation} column '{column_name}': column doesn't exist",
            table_name,
            column_name,
            operation,
            {"table": table_name},
        )


class OriginalColumnNotFoundError(ColumnNotFoundError):
    """Raised when a rename source is not a column of the original table."""

    def __init__(self, table_name: str, column_name: str, new_name: str) -> None:
        super().__init__(
            table_name,
            column_name,
            "rename",
            message=(
                f"Can't rename column '{column_name}' -> '{new_name}': "
                f"column '{column_name}' doesn't exist"
            ),
        )
        self.new_name = new_name


class ColumnAlreadyExistsError(ColumnError):
    """Raised when a rename target or added column collides with an existing column."""

    def __init__(
        self,
        table_name: str,
        column_name: str,
        operation: str,
        source_name: Optional[str] = None,
    ) -> None:
        if source_name is not None:
            message = (
                f"Can't {operation} column '{source_name}' -> '{column_name}': "
                f"column '{column_name}' already exists"
            )
        else:
            message = f"Can't {operation} column '{column_name}': column already exists"
        super().__init__(message, table_name, column_name, operation, {"table": table_name})
        self.source_name = source_name
