"""
Alter table planning for sqlalter.

SQLite's ALTER TABLE can only rename a table or append a column. Deleting,
modifying or renaming columns is emulated by building a replacement table
with the desired layout, copying the rows over, then dropping the original
and renaming the replacement into its place.

The planner is a pure function of (table, snapshot, operations): it never
talks to a database and keeps no state between calls.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from ..config import PlannerConfig, SqlAlterConfig
from ..exceptions import (
    ColumnAlreadyExistsError,
    ColumnNotFoundError,
    ConfigurationError,
    OriginalColumnNotFoundError,
    SchemaError,
    TableNotFoundError,
)
from .operations import AlterOperations, AlterStatement, ChangeType
from .snapshot import ColumnSnapshot


logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Double-quote an identifier, escaping embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


def _column_def(name: str, definition: str) -> str:
    # Untyped columns have an empty definition
    return " ".join(part for part in (quote_identifier(name), definition) if part)


@dataclass
class AlterPlan:
    """Result of planning the alteration of one table."""

    table: str
    statements: List[AlterStatement]
    requires_rebuild: bool = False
    temp_table: Optional[str] = None
    final_table: Optional[str] = None

    # (new column, source column) pairs of the rebuilt table, in column order
    column_mapping: List[Tuple[str, str]] = None

    # DROP original + RENAME temp; emitted only when the planner finalizes
    finalize_statements: List[AlterStatement] = None

    def __post_init__(self):
        if self.column_mapping is None:
            self.column_mapping = []
        if self.finalize_statements is None:
            self.finalize_statements = []
        if self.final_table is None:
            self.final_table = self.table

    @property
    def sql(self) -> List[str]:
        """Statements in execution order."""
        return [statement.sql for statement in self.statements]

    @property
    def is_empty(self) -> bool:
        return not self.statements

    @property
    def is_finalized(self) -> bool:
        """Check if the finalize pair is part of the emitted statements."""
        return any(s.change_type == ChangeType.DROP_TABLE for s in self.statements)

    @property
    def complete_sql(self) -> List[str]:
        """
        Statements with the finalize pair placed right after the row copy.

        Identical to ``sql`` when the plan is already finalized or needs no
        rebuild.
        """
        if not self.requires_rebuild or self.is_finalized:
            return self.sql

        result = []
        for statement in self.statements:
            result.append(statement.sql)
            if statement.change_type == ChangeType.COPY_ROWS:
                result.extend(s.sql for s in self.finalize_statements)
        return result


class AlterPlanner:
    """Plans the statements that bring a table to a requested layout."""

    def __init__(
        self,
        temp_table_prefix: str = "_",
        temp_table_suffix: str = "_tmp",
        finalize_rebuild: bool = False,
        strict_collisions: bool = True,
    ):
        if not temp_table_prefix and not temp_table_suffix:
            raise ConfigurationError(
                "Temporary table prefix and suffix cannot both be empty"
            )
        self.temp_table_prefix = temp_table_prefix
        self.temp_table_suffix = temp_table_suffix
        self.finalize_rebuild = finalize_rebuild
        self.strict_collisions = strict_collisions

    @classmethod
    def from_config(
        cls, config: Union[SqlAlterConfig, PlannerConfig]
    ) -> "AlterPlanner":
        """Create a planner from the application or planner configuration."""
        planner_config = config.planner if isinstance(config, SqlAlterConfig) else config
        return cls(
            temp_table_prefix=planner_config.temp_table_prefix,
            temp_table_suffix=planner_config.temp_table_suffix,
            finalize_rebuild=planner_config.finalize_rebuild,
            strict_collisions=planner_config.strict_collisions,
        )

    def temp_table_name(self, table: str) -> str:
        return f"{self.temp_table_prefix}{table}{self.temp_table_suffix}"

    def plan(self, table: str, snapshot: Any, operations: Any = None) -> List[str]:
        """Return the ordered SQL statements for altering ``table``."""
        return self.build_plan(table, snapshot, operations).sql

    def build_plan(
        self, table: str, snapshot: Any, operations: Any = None
    ) -> AlterPlan:
        """
        Plan the alteration of ``table``.

        Args:
            table: Name of the table to alter
            snapshot: Current columns (ColumnSnapshot, mapping or rows)
            operations: AlterOperations or an equivalent mapping

        Returns:
            AlterPlan with the statements in execution order

        Raises:
            TableNotFoundError: the snapshot has no columns
            ColumnNotFoundError: a delete/modify names a missing column
            OriginalColumnNotFoundError: a rename source is not an original column
            ColumnAlreadyExistsError: a rename target or added column exists
        """
        snapshot = ColumnSnapshot.coerce(snapshot)
        operations = AlterOperations.coerce(operations)

        try:
            plan = self._build_plan(table, snapshot, operations)
        except SchemaError as e:
            logger.debug(f"Rejected alter plan for table '{table}': {e}")
            raise

        logger.debug(
            f"Planned {len(plan.statements)} statements for table '{table}' "
            f"(rebuild: {plan.requires_rebuild})"
        )
        return plan

    def _build_plan(
        self, table: str, snapshot: ColumnSnapshot, operations: AlterOperations
    ) -> AlterPlan:
        if snapshot.is_empty:
            raise TableNotFoundError(table)

        original_orders = {col.name: col.ordinal_position for col in snapshot}
        col_orders = dict(original_orders)

        self._apply_deletions(table, col_orders, operations.delete_columns)
        col_definitions = self._apply_modifications(
            table, col_orders, operations.modify_columns
        )
        rename_rmap = self._apply_renames(
            table, original_orders, col_orders, operations.rename_columns
        )

        plan = AlterPlan(
            table=table,
            statements=[],
            requires_rebuild=operations.requires_rebuild,
            final_table=operations.rename_table,
        )

        if plan.requires_rebuild:
            plan.temp_table = self.temp_table_name(table)
            plan.column_mapping = [
                (name, rename_rmap.get(name, name))
                for name in sorted(col_orders, key=col_orders.__getitem__)
            ]
            plan.statements.extend(
                self._rebuild_statements(
                    table, plan.temp_table, snapshot, plan.column_mapping, col_definitions
                )
            )
            plan.finalize_statements = self._finalize_statements(table, plan.temp_table)
            if self.finalize_rebuild:
                plan.statements.extend(plan.finalize_statements)

        plan.statements.extend(
            self._add_column_statements(table, col_orders, operations.add_columns)
        )

        if operations.rename_table is not None:
            plan.statements.append(
                AlterStatement(
                    change_type=ChangeType.RENAME_TABLE,
                    table=table,
                    sql=(
                        f"ALTER TABLE {quote_identifier(table)} "
                        f"RENAME TO {quote_identifier(operations.rename_table)}"
                    ),
                    description=f"Rename table {table} to {operations.rename_table}",
                )
            )

        return plan

    def _apply_deletions(
        self, table: str, col_orders: Dict[str, int], names: List[str]
    ) -> None:
        for name in names:
            if name not in col_orders:
                raise ColumnNotFoundError(table, name, "delete")
            del col_orders[name]

    def _apply_modifications(
        self,
        table: str,
        col_orders: Dict[str, int],
        modifications: List[Tuple[str, str]],
    ) -> Dict[str, str]:
        """Return definition overrides keyed by original column name."""
        col_definitions = {}
        for name, definition in modifications:
            if name not in col_orders:
                raise ColumnNotFoundError(table, name, "modify")
            col_definitions[name] = definition
        return col_definitions

    def _apply_renames(
        self,
        table: str,
        original_orders: Dict[str, int],
        col_orders: Dict[str, int],
        renames: List[Tuple[str, str]],
    ) -> Dict[str, str]:
        """Move ordinals to the new names; return the new -> old map."""
        rename_rmap = {}
        for old, new in renames:
            if old not in original_orders:
                raise OriginalColumnNotFoundError(table, old, new)
            if new in original_orders:
                raise ColumnAlreadyExistsError(table, new, "rename", source_name=old)
            if old not in col_orders:
                raise ColumnNotFoundError(
                    table,
                    old,
                    "rename",
                    message=(
                        f"Can't rename column '{old}' -> '{new}': "
                        f"column '{old}' was already deleted or renamed"
                    ),
                )
            if self.strict_collisions and new in col_orders:
                raise ColumnAlreadyExistsError(table, new, "rename", source_name=old)

            col_orders[new] = col_orders.pop(old)
            rename_rmap[new] = old
        return rename_rmap

    def _rebuild_statements(
        self,
        table: str,
        temp_table: str,
        snapshot: ColumnSnapshot,
        column_mapping: List[Tuple[str, str]],
        col_definitions: Dict[str, str],
    ) -> List[AlterStatement]:
        column_defs = []
        for new_name, source in column_mapping:
            definition = col_definitions.get(source) or snapshot.get(source).definition
            column_defs.append(_column_def(new_name, definition))

        new_names = ",".join(quote_identifier(new) for new, _ in column_mapping)
        source_names = ",".join(quote_identifier(src) for _, src in column_mapping)

        return [
            AlterStatement(
                change_type=ChangeType.CREATE_TEMP_TABLE,
                table=table,
                sql=(
                    f"CREATE TABLE {quote_identifier(temp_table)} "
                    f"({', '.join(column_defs)})"
                ),
                description=f"Create replacement table {temp_table}",
            ),
            AlterStatement(
                change_type=ChangeType.COPY_ROWS,
                table=table,
                sql=(
                    f"INSERT INTO {quote_identifier(temp_table)} ({new_names}) "
                    f"SELECT {source_names} FROM {quote_identifier(table)}"
                ),
                description=f"Copy rows from {table} to {temp_table}",
            ),
        ]

    def _finalize_statements(self, table: str, temp_table: str) -> List[AlterStatement]:
        return [
            AlterStatement(
                change_type=ChangeType.DROP_TABLE,
                table=table,
                sql=f"DROP TABLE {quote_identifier(table)}",
                description=f"Drop original table {table}",
            ),
            AlterStatement(
                change_type=ChangeType.RENAME_TEMP_TABLE,
                table=table,
                sql=(
                    f"ALTER TABLE {quote_identifier(temp_table)} "
                    f"RENAME TO {quote_identifier(table)}"
                ),
                description=f"Rename {temp_table} to {table}",
            ),
        ]

    def _add_column_statements(
        self,
        table: str,
        col_orders: Dict[str, int],
        additions: List[Tuple[str, str]],
    ) -> List[AlterStatement]:
        statements = []
        for name, definition in additions:
            if name in col_orders:
                raise ColumnAlreadyExistsError(table, name, "add")
            col_orders[name] = max(col_orders.values(), default=-1) + 1

            statements.append(
                AlterStatement(
                    change_type=ChangeType.ADD_COLUMN,
                    table=table,
                    sql=(
                        f"ALTER TABLE {quote_identifier(table)} "
                        f"ADD COLUMN {_column_def(name, definition)}"
                    ),
                    description=f"Add column {name}",
                )
            )
        return statements


def gen_sql_alter_table(
    table: str,
    snapshot: Any,
    rename_table: Optional[str] = None,
    add_columns: Any = None,
    delete_columns: Any = None,
    modify_columns: Any = None,
    rename_columns: Any = None,
    **planner_options: Any,
) -> List[str]:
    """
    Generate SQL statements to alter a SQLite table.

    Pair arguments take a list of pairs, an ordered mapping, or a flat
    alternating list such as ``["a1", "INT", "a2", "TEXT"]``. Remaining
    keyword arguments configure the AlterPlanner.
    """
    operations = AlterOperations.coerce(
        rename_table=rename_table,
        add_columns=add_columns,
        delete_columns=delete_columns,
        modify_columns=modify_columns,
        rename_columns=rename_columns,
    )
    return AlterPlanner(**planner_options).plan(table, snapshot, operations)
