"""
Pytest configuration and shared fixtures for sqlalter tests.

This module provides shared fixtures and utilities for testing all sqlalter components.
"""

from typing import Any, Dict, List

import pytest
import yaml
from click.testing import CliRunner

from sqlalter.schema.planner import AlterPlanner
from sqlalter.schema.snapshot import ColumnInfo, ColumnSnapshot


# ============================================================================
# Snapshot Fixtures
# ============================================================================

@pytest.fixture
def users_rows() -> List[Dict[str, Any]]:
    """Describe-table rows for a users table, as a DBI column_info query returns them."""
    return [
        {"COLUMN_NAME": "id", "TYPE_NAME": "INTEGER", "IS_NULLABLE": "NO", "ORDINAL_POSITION": 1},
        {"COLUMN_NAME": "name", "TYPE_NAME": "TEXT", "IS_NULLABLE": "YES", "ORDINAL_POSITION": 2},
        {"COLUMN_NAME": "email", "TYPE_NAME": "VARCHAR(255)", "IS_NULLABLE": "YES", "ORDINAL_POSITION": 3},
        {"COLUMN_NAME": "created_at", "TYPE_NAME": "TIMESTAMP", "IS_NULLABLE": "NO", "ORDINAL_POSITION": 4},
    ]


@pytest.fixture
def users_snapshot() -> ColumnSnapshot:
    """Snapshot of the users table."""
    return ColumnSnapshot(
        [
            ColumnInfo("id", "INTEGER", is_nullable=False),
            ColumnInfo("name", "TEXT", is_nullable=True),
            ColumnInfo("email", "VARCHAR(255)", is_nullable=True),
            ColumnInfo("created_at", "TIMESTAMP", is_nullable=False),
        ]
    )


@pytest.fixture
def planner() -> AlterPlanner:
    """Planner with default settings."""
    return AlterPlanner()


# ============================================================================
# File Fixtures
# ============================================================================

@pytest.fixture
def snapshot_file(tmp_path):
    """YAML snapshot file naming the users table."""
    path = tmp_path / "users.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "table": "users",
                "columns": [
                    {"name": "id", "type": "INTEGER", "nullable": False},
                    {"name": "name", "type": "TEXT", "nullable": True},
                    {"name": "email", "type": "VARCHAR(255)"},
                ],
            },
            sort_keys=False,
        ),
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture
def runner():
    """Click test runner."""
    return CliRunner()
