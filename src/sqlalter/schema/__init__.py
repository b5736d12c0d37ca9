"""
Schema alteration package for sqlalter.

This package provides:
- Column snapshots of the table being altered
- Alter operation requests and emitted statements
- The planner that turns both into SQL
"""

from .snapshot import ColumnInfo, ColumnSnapshot
from .operations import AlterOperations, AlterStatement, ChangeType
from .planner import AlterPlan, AlterPlanner, gen_sql_alter_table, quote_identifier

__all__ = [
    "ColumnInfo",
    "ColumnSnapshot",
    "AlterOperations",
    "AlterStatement",
    "ChangeType",
    "AlterPlan",
    "AlterPlanner",
    "gen_sql_alter_table",
    "quote_identifier",
]
