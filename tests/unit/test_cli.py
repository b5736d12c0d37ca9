"""
Unit tests for the sqlalter CLI interface.
"""

import json
import logging
import os

import pytest
import yaml
from click.testing import CliRunner
from rich.console import Console

from sqlalter import __version__, cli
from sqlalter.cli import _configure_logging, _split_pairs, handle_errors, main
from sqlalter.config import LoggingConfig
from sqlalter.exceptions import SchemaError


@pytest.fixture
def operations_file(tmp_path):
    """Operations file deleting and renaming columns."""
    path = tmp_path / "ops.yaml"
    path.write_text(
        "delete_columns: [email]\nrename_columns: {name: full_name}\n",
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI attaches to the package logger."""
    yield
    package_logger = logging.getLogger("sqlalter")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


class TestCLIMain:
    """Test main CLI functionality."""

    def test_cli_help(self, runner):
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "extended ALTER TABLE statement generator" in result.output

    def test_cli_version(self, runner):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_plan_help(self, runner):
        result = runner.invoke(main, ["plan", "--help"])

        assert result.exit_code == 0
        assert "--rename-column" in result.output


class TestPlanCommand:
    """Test the plan command."""

    def test_rename_column_sql(self, runner, snapshot_file):
        result = runner.invoke(
            main, ["plan", "-s", snapshot_file, "--rename-column", "name=full_name"]
        )

        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert lines == [
            'CREATE TABLE "_users_tmp" '
            '("id" INTEGER NOT NULL, "full_name" TEXT, "email" VARCHAR(255));',
            'INSERT INTO "_users_tmp" ("id","full_name","email") '
            'SELECT "id","name","email" FROM "users";',
        ]

    def test_add_column_and_rename_table(self, runner, snapshot_file):
        result = runner.invoke(
            main,
            [
                "plan", "-s", snapshot_file,
                "--add-column", "age=INT DEFAULT 0",
                "--rename-table", "members",
            ],
        )

        assert result.exit_code == 0, result.output
        assert result.output.strip().splitlines() == [
            'ALTER TABLE "users" ADD COLUMN "age" INT DEFAULT 0;',
            'ALTER TABLE "users" RENAME TO "members";',
        ]

    def test_table_option_overrides_snapshot(self, runner, snapshot_file):
        result = runner.invoke(
            main, ["plan", "-s", snapshot_file, "-t", "people", "--rename-table", "p"]
        )

        assert result.exit_code == 0, result.output
        assert 'ALTER TABLE "people" RENAME TO "p";' in result.output

    def test_operations_file_merged_with_flags(self, runner, snapshot_file, operations_file):
        result = runner.invoke(
            main,
            [
                "plan", "-s", snapshot_file, "-o", operations_file,
                "--add-column", "age=INT", "--format", "json",
            ],
        )

        assert result.exit_code == 0, result.output
        statements = json.loads(result.output)
        assert statements == [
            'CREATE TABLE "_users_tmp" ("id" INTEGER NOT NULL, "full_name" TEXT)',
            'INSERT INTO "_users_tmp" ("id","full_name") SELECT "id","name" FROM "users"',
            'ALTER TABLE "users" ADD COLUMN "age" INT',
        ]

    def test_finalize_flag(self, runner, snapshot_file):
        result = runner.invoke(
            main, ["plan", "-s", snapshot_file, "--delete-column", "email", "--finalize"]
        )

        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert lines[-2:] == [
            'DROP TABLE "users";',
            'ALTER TABLE "_users_tmp" RENAME TO "users";',
        ]

    def test_finalize_from_config(self, runner, snapshot_file, tmp_path):
        config_path = tmp_path / "sqlalter.yaml"
        config_path.write_text("planner:\n  finalize_rebuild: true\n", encoding="utf-8")

        result = runner.invoke(
            main,
            ["plan", "-s", snapshot_file, "-c", str(config_path), "--delete-column", "email"],
        )

        assert result.exit_code == 0, result.output
        assert 'DROP TABLE "users";' in result.output

    def test_no_finalize_overrides_config(self, runner, snapshot_file, tmp_path):
        config_path = tmp_path / "sqlalter.yaml"
        config_path.write_text("planner:\n  finalize_rebuild: true\n", encoding="utf-8")

        result = runner.invoke(
            main,
            [
                "plan", "-s", snapshot_file, "-c", str(config_path),
                "--delete-column", "email", "--no-finalize",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "DROP TABLE" not in result.output

    def test_table_format_reminds_finalize(self, runner, snapshot_file):
        result = runner.invoke(
            main,
            ["plan", "-s", snapshot_file, "--delete-column", "email", "--format", "table"],
        )

        assert result.exit_code == 0, result.output
        assert "Rebuild not finalized" in result.output
        assert 'DROP TABLE "users";' in result.output

    def test_table_format_shows_descriptions_and_phases(
        self, runner, snapshot_file, monkeypatch
    ):
        monkeypatch.setattr(cli, "console", Console(width=200))

        result = runner.invoke(
            main,
            [
                "plan", "-s", snapshot_file,
                "--delete-column", "email",
                "--add-column", "age=INT",
                "--format", "table",
            ],
        )

        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        create_row = next(line for line in lines if "Create replacement table _users_tmp" in line)
        copy_row = next(line for line in lines if "Copy rows from users to _users_tmp" in line)
        add_row = next(line for line in lines if "Add column age" in line)
        assert "rebuild" in create_row
        assert "rebuild" in copy_row
        assert "direct" in add_row
        assert "rebuild" not in add_row

    def test_table_format_without_changes(self, runner, snapshot_file):
        result = runner.invoke(main, ["plan", "-s", snapshot_file, "--format", "table"])

        assert result.exit_code == 0, result.output
        assert "No changes requested for users" in result.output

    def test_no_operations_prints_nothing(self, runner, snapshot_file):
        result = runner.invoke(main, ["plan", "-s", snapshot_file])

        assert result.exit_code == 0
        assert result.output == ""

    def test_missing_column_fails(self, runner, snapshot_file):
        result = runner.invoke(
            main, ["plan", "-s", snapshot_file, "--delete-column", "nope"]
        )

        assert result.exit_code == 1
        assert "Can't delete column 'nope': column doesn't exist" in result.output

    def test_empty_snapshot_fails(self, runner, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text(yaml.safe_dump({"table": "ghost", "columns": []}), encoding="utf-8")

        result = runner.invoke(main, ["plan", "-s", str(path), "--rename-table", "x"])

        assert result.exit_code == 1
        assert "table doesn't exist" in result.output

    def test_missing_table_name_fails(self, runner, tmp_path):
        path = tmp_path / "cols.yaml"
        path.write_text(yaml.safe_dump([{"name": "a", "type": "INT"}]), encoding="utf-8")

        result = runner.invoke(main, ["plan", "-s", str(path), "--delete-column", "a"])

        assert result.exit_code == 1
        assert "No table name given" in result.output

    def test_bad_pair_option(self, runner, snapshot_file):
        result = runner.invoke(
            main, ["plan", "-s", snapshot_file, "--rename-column", "name"]
        )

        assert result.exit_code == 2
        assert "expected NAME=VALUE" in result.output


class TestConfigCommands:
    """Test init and validate-config."""

    def test_init_writes_config(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["init", "-o", "sqlalter.yaml"])

            assert result.exit_code == 0, result.output
            assert os.path.exists("sqlalter.yaml")
            with open("sqlalter.yaml", encoding="utf-8") as f:
                data = yaml.safe_load(f)
            assert data["planner"]["temp_table_suffix"] == "_tmp"

    def test_init_keeps_existing_file_when_declined(self, runner):
        with runner.isolated_filesystem():
            with open("sqlalter.yaml", "w", encoding="utf-8") as f:
                f.write("debug: true\n")

            result = runner.invoke(main, ["init", "-o", "sqlalter.yaml"], input="n\n")

            assert result.exit_code == 0
            with open("sqlalter.yaml", encoding="utf-8") as f:
                assert f.read() == "debug: true\n"

    def test_validate_config(self, runner, tmp_path):
        path = tmp_path / "sqlalter.yaml"
        path.write_text("planner:\n  strict_collisions: false\n", encoding="utf-8")

        result = runner.invoke(main, ["validate-config", "-c", str(path)])

        assert result.exit_code == 0, result.output
        assert "Configuration is valid" in result.output
        assert "Strict collisions" in result.output

    def test_validate_config_invalid(self, runner, tmp_path):
        path = tmp_path / "sqlalter.yaml"
        path.write_text("logging:\n  level: LOUD\n", encoding="utf-8")

        result = runner.invoke(main, ["validate-config", "-c", str(path)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestHelpers:
    """Test CLI helper functions."""

    def test_split_pairs(self):
        assert _split_pairs(None, None, ("a=INT", "b = TEXT CHECK(b='x')")) == [
            ("a", "INT"),
            ("b", "TEXT CHECK(b='x')"),
        ]

    def test_handle_errors_exits_on_sqlalter_error(self):
        @handle_errors
        def failing():
            raise SchemaError("planning failed")

        with pytest.raises(SystemExit) as exc_info:
            failing()

        assert exc_info.value.code == 1

    def test_configure_logging_file_handler(self, tmp_path):
        log_file = tmp_path / "sqlalter.log"

        _configure_logging(LoggingConfig(level="INFO", file=str(log_file)))
        logging.getLogger("sqlalter.schema.planner").info("planned")

        package_logger = logging.getLogger("sqlalter")
        assert package_logger.level == logging.INFO
        assert len(package_logger.handlers) == 2
        for handler in package_logger.handlers:
            handler.flush()
        assert "planned" in log_file.read_text(encoding="utf-8")

    def test_configure_logging_debug_overrides_level(self):
        _configure_logging(LoggingConfig(level="ERROR"), debug=True)

        assert logging.getLogger("sqlalter").level == logging.DEBUG
