"""
Column snapshots for sqlalter.

A snapshot is the ordered column layout of a table as reported by a
"describe table" query. The planner only ever reads it.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import yaml

from ..exceptions import ValidationError


logger = logging.getLogger(__name__)


# Key spellings accepted by ColumnInfo.from_row, first match wins
_NAME_KEYS = ("name", "column_name", "COLUMN_NAME")
_TYPE_KEYS = ("type", "type_name", "TYPE_NAME", "data_type")
_NULLABLE_KEYS = ("nullable", "is_nullable", "IS_NULLABLE")
_POSITION_KEYS = ("cid", "ordinal_position", "ORDINAL_POSITION")


def _parse_nullable(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().upper()
        # DBI reports unknown nullability as an empty string
        if not normalized:
            return False
        if normalized in ("YES", "Y", "TRUE", "1"):
            return True
        if normalized in ("NO", "N", "FALSE", "0"):
            return False
        raise ValidationError(f"Invalid nullability value: {value!r}")
    if isinstance(value, int):
        return bool(value)
    raise ValidationError(f"Invalid nullability value: {value!r}")


def _is_column_tuple(item: Any) -> bool:
    return isinstance(item, (tuple, list)) and len(item) == 3


def _first(row: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return None


@dataclass
class ColumnInfo:
    """Information about a single table column."""

    name: str
    type_name: str
    is_nullable: bool = True
    ordinal_position: int = 0

    @property
    def definition(self) -> str:
        """Column definition used when the column is recreated unchanged."""
        if self.is_nullable:
            return self.type_name
        return " ".join(part for part in (self.type_name, "NOT NULL") if part)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ColumnInfo":
        """
        Build a column from a describe-table row.

        Understands DBI ``column_info`` rows (``COLUMN_NAME``, ``TYPE_NAME``,
        ``IS_NULLABLE``), information_schema rows (``column_name``,
        ``data_type``, ``is_nullable``), SQLite ``PRAGMA table_info`` rows
        (``name``, ``type``, ``notnull``, ``cid``) and plain
        ``name``/``type``/``nullable`` mappings.
        """
        name = _first(row, _NAME_KEYS)
        type_name = _first(row, _TYPE_KEYS)
        if not name:
            raise ValidationError(f"Column row has no name: {dict(row)!r}")
        if type_name is None:
            raise ValidationError(
                "Column row has no type", details={"column": name}
            )

        nullable_value = _first(row, _NULLABLE_KEYS)
        if nullable_value is not None:
            is_nullable = _parse_nullable(nullable_value)
        elif row.get("notnull") is not None:
            is_nullable = not _parse_nullable(row["notnull"])
        else:
            is_nullable = True

        position = _first(row, _POSITION_KEYS)

        return cls(
            name=str(name),
            type_name=str(type_name),
            is_nullable=is_nullable,
            ordinal_position=int(position) if position is not None else 0,
        )

    def __str__(self) -> str:
        return f"{self.name} {self.definition}"


class ColumnSnapshot:
    """Ordered, read-only column layout of a table."""

    def __init__(self, columns: Iterable[ColumnInfo] = ()):
        self._columns: Dict[str, ColumnInfo] = {}
        for position, column in enumerate(columns):
            if column.name in self._columns:
                raise ValidationError(
                    f"Duplicate column '{column.name}' in snapshot"
                )
            self._columns[column.name] = ColumnInfo(
                name=column.name,
                type_name=column.type_name,
                is_nullable=column.is_nullable,
                ordinal_position=position,
            )

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "ColumnSnapshot":
        """Build a snapshot from describe-table rows."""
        rows = list(rows)
        columns = [ColumnInfo.from_row(row) for row in rows]
        # Only trust reported positions when every row has one
        if rows and all(_first(row, _POSITION_KEYS) is not None for row in rows):
            columns.sort(key=lambda col: col.ordinal_position)
        return cls(columns)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ColumnSnapshot":
        """
        Build a snapshot from an ordered ``name -> definition`` mapping.

        ``definition`` is either a type string (nullable column) or a mapping with
        ``type`` and an optional ``nullable`` flag.
        """
        columns = []
        for name, definition in mapping.items():
            if isinstance(definition, str):
                columns.append(ColumnInfo(name=name, type_name=definition))
            elif isinstance(definition, Mapping):
                columns.append(ColumnInfo.from_row({"name": name, **definition}))
            else:
                raise ValidationError(
                    f"Invalid definition for column '{name}': {definition!r}"
                )
        return cls(columns)

    @classmethod
    def coerce(cls, value: Any) -> "ColumnSnapshot":
        """
        Accept a snapshot, a column mapping or a sequence of rows/columns.

        Rows may also be plain ``(name, type, nullable)`` tuples.
        """
        if isinstance(value, ColumnSnapshot):
            return value
        if value is None:
            return cls()
        if isinstance(value, Mapping):
            return cls.from_mapping(value)
        items = list(value)
        if all(isinstance(item, ColumnInfo) for item in items):
            return cls(items)
        if all(isinstance(item, Mapping) for item in items):
            return cls.from_rows(items)
        if all(_is_column_tuple(item) for item in items):
            return cls.from_rows(
                {"name": name, "type": type_name, "nullable": nullable}
                for name, type_name, nullable in items
            )
        raise ValidationError(
            "Snapshot must be a mapping or a sequence of column rows "
            "or (name, type, nullable) tuples"
        )

    @classmethod
    def from_yaml(
        cls, path: Union[str, Path]
    ) -> Tuple[Optional[str], "ColumnSnapshot"]:
        """
        Load a snapshot from a YAML or JSON file.

        The document is a list of rows, a column mapping, or a mapping with
        ``columns`` and an optional ``table`` name. Returns the table name
        (or None) and the snapshot.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise ValidationError(f"Snapshot file not found: {path}")
        except yaml.YAMLError as e:
            raise ValidationError(f"Invalid YAML in snapshot file: {e}")

        table = None
        if isinstance(data, Mapping) and "columns" in data:
            table = data.get("table")
            data = data["columns"]

        snapshot = cls.coerce(data)
        logger.debug(f"Loaded {len(snapshot)} columns from {path}")
        return table, snapshot

    @property
    def names(self) -> List[str]:
        """Column names in physical order."""
        return list(self._columns)

    @property
    def columns(self) -> List[ColumnInfo]:
        return list(self._columns.values())

    @property
    def is_empty(self) -> bool:
        return not self._columns

    def get(self, name: str) -> Optional[ColumnInfo]:
        """Get column information by name."""
        return self._columns.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def __iter__(self) -> Iterator[ColumnInfo]:
        return iter(self._columns.values())

    def __len__(self) -> int:
        return len(self._columns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnSnapshot):
            return NotImplemented
        return self.columns == other.columns

    def __repr__(self) -> str:
        return f"ColumnSnapshot({', '.join(str(c) for c in self)})"
