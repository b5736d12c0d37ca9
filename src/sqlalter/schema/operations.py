"""
Alter operation requests and emitted statements for sqlalter.

An operation request describes the structural changes wanted on one
table; the planner turns it into AlterStatement objects.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError


logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    """Types of emitted statements."""

    CREATE_TEMP_TABLE = "create_temp_table"
    COPY_ROWS = "copy_rows"
    DROP_TABLE = "drop_table"
    RENAME_TEMP_TABLE = "rename_temp_table"
    ADD_COLUMN = "add_column"
    RENAME_TABLE = "rename_table"


REBUILD_CHANGE_TYPES = frozenset(
    {
        ChangeType.CREATE_TEMP_TABLE,
        ChangeType.COPY_ROWS,
        ChangeType.DROP_TABLE,
        ChangeType.RENAME_TEMP_TABLE,
    }
)


@dataclass
class AlterStatement:
    """A single SQL statement produced by the planner."""

    change_type: ChangeType
    table: str
    sql: str
    description: str

    @property
    def is_rebuild_step(self) -> bool:
        """Check if this statement belongs to a table rebuild."""
        return self.change_type in REBUILD_CHANGE_TYPES

    def __str__(self) -> str:
        return self.sql


def _to_pairs(value: Any) -> Any:
    """Normalize a mapping or flat alternating list into a list of pairs."""
    if value is None:
        return []
    if isinstance(value, str):
        raise ValueError("expected a list of pairs, got a string")
    if isinstance(value, Mapping):
        return list(value.items())

    items = list(value)
    if items and all(isinstance(item, str) for item in items):
        if len(items) % 2:
            raise ValueError(
                f"flat pair list must have an even number of items, got {len(items)}"
            )
        return [(items[i], items[i + 1]) for i in range(0, len(items), 2)]
    return items


class AlterOperations(BaseModel):
    """Structural changes requested for one table."""

    model_config = ConfigDict(extra="forbid")

    rename_table: Optional[str] = Field(
        None, min_length=1, description="New table name"
    )
    add_columns: List[Tuple[str, str]] = Field(
        default_factory=list, description="Pairs of column name and definition"
    )
    delete_columns: List[str] = Field(
        default_factory=list, description="Column names to delete"
    )
    modify_columns: List[Tuple[str, str]] = Field(
        default_factory=list, description="Pairs of column name and new definition"
    )
    rename_columns: List[Tuple[str, str]] = Field(
        default_factory=list, description="Pairs of old and new column name"
    )

    @field_validator("add_columns", "modify_columns", "rename_columns", mode="before")
    @classmethod
    def normalize_pairs(cls, v: Any) -> Any:
        return _to_pairs(v)

    @field_validator("delete_columns", mode="before")
    @classmethod
    def normalize_names(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("add_columns", "modify_columns", "rename_columns")
    @classmethod
    def validate_pairs(cls, v: List[Tuple[str, str]]) -> List[Tuple[str, str]]:
        for first, second in v:
            if not first or not second:
                raise ValueError(f"empty value in pair ({first!r}, {second!r})")
        return v

    @field_validator("delete_columns")
    @classmethod
    def validate_names(cls, v: List[str]) -> List[str]:
        if any(not name for name in v):
            raise ValueError("column names must not be empty")
        return v

    @property
    def requires_rebuild(self) -> bool:
        """Check if these operations need the table to be rebuilt."""
        return bool(self.delete_columns or self.modify_columns or self.rename_columns)

    @property
    def is_empty(self) -> bool:
        return not (
            self.requires_rebuild or self.add_columns or self.rename_table is not None
        )

    @classmethod
    def coerce(cls, value: Any = None, **overrides: Any) -> "AlterOperations":
        """
        Build a request from an instance, a mapping or None.

        Keyword overrides that are not None replace the matching fields.
        """
        if isinstance(value, cls) and not overrides:
            return value

        if isinstance(value, cls):
            data = value.model_dump()
        elif value is None:
            data = {}
        elif isinstance(value, Mapping):
            data = dict(value)
        else:
            raise ValidationError(
                f"Operations must be a mapping, got {type(value).__name__}"
            )

        data.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid alter operations: {e}")

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "AlterOperations":
        """Load an operation request from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise ValidationError(f"Operations file not found: {path}")
        except yaml.YAMLError as e:
            raise ValidationError(f"Invalid YAML in operations file: {e}")

        logger.debug(f"Loaded alter operations from {path}")
        return cls.coerce(data)

    def merge(self, other: "AlterOperations") -> "AlterOperations":
        """Combine two requests; lists concatenate and ``other``'s rename wins."""
        return AlterOperations(
            rename_table=(
                other.rename_table
                if other.rename_table is not None
                else self.rename_table
            ),
            add_columns=self.add_columns + other.add_columns,
            delete_columns=self.delete_columns + other.delete_columns,
            modify_columns=self.modify_columns + other.modify_columns,
            rename_columns=self.rename_columns + other.rename_columns,
        )
