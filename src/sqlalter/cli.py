"""
Command-line interface for sqlalter.
"""

import json
import logging
import sys
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from . import __version__
from .config import LoggingConfig, SqlAlterConfig
from .exceptions import ValidationError, SqlAlterError
from .schema import AlterOperations, AlterPlan, AlterPlanner, ColumnSnapshot


console = Console()


def handle_errors(func):
    """Decorator to handle errors gracefully in CLI commands."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SqlAlterError as e:
            console.print(
                f"[red]Error:[/red] {escape(str(e))}", highlight=False, soft_wrap=True
            )
            sys.exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            sys.exit(0)
        except Exception as e:
            console.print(
                f"[red]Unexpected error:[/red] {escape(str(e))}",
                highlight=False,
                soft_wrap=True,
            )
            if "--debug" in sys.argv:
                import traceback
                traceback.print_exc()
            sys.exit(1)
    return wrapper


def _configure_logging(logging_config: LoggingConfig, debug: bool = False) -> None:
    """Attach handlers described by the logging configuration."""
    package_logger = logging.getLogger("sqlalter")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(logging_config.format)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    package_logger.addHandler(stream_handler)

    if logging_config.file:
        file_handler = RotatingFileHandler(
            logging_config.file,
            maxBytes=logging_config.max_size,
            backupCount=logging_config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    package_logger.setLevel(logging.DEBUG if debug else logging_config.level)


def _split_pairs(ctx, param, values) -> List[Tuple[str, str]]:
    """Parse repeated NAME=VALUE options into pairs."""
    pairs = []
    for value in values:
        name, sep, rest = value.partition("=")
        if not sep or not name.strip() or not rest.strip():
            raise click.BadParameter(f"expected NAME=VALUE, got {value!r}")
        pairs.append((name.strip(), rest.strip()))
    return pairs


@click.group()
@click.version_option(__version__)
@click.option(
    "--debug", is_flag=True, help="Enable debug mode"
)
@click.pass_context
def main(ctx, debug):
    """sqlalter: extended ALTER TABLE statement generator for SQLite."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="sqlalter.yaml",
    help="Output configuration file path",
)
@handle_errors
def init(output: str):
    """Initialize a new sqlalter configuration file."""
    if Path(output).exists():
        if not click.confirm(f"Configuration file {output} already exists. Overwrite?"):
            return

    SqlAlterConfig().to_yaml(output)
    console.print(f"[green]✓[/green] Configuration file created: {output}")


@main.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    required=True,
    help="Configuration file path",
)
@handle_errors
def validate_config(config: str):
    """Validate configuration file."""
    console.print(f"Validating configuration: {config}")

    sqlalter_config = SqlAlterConfig.from_yaml(config)
    sqlalter_config.validate_config()

    console.print("[green]✓[/green] Configuration is valid")
    _display_config_summary(sqlalter_config)


@main.command()
@click.option(
    "--snapshot",
    "-s",
    type=click.Path(exists=True),
    required=True,
    help="YAML/JSON file with the table's current columns",
)
@click.option(
    "--table",
    "-t",
    help="Table name (defaults to the table named in the snapshot file)",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Configuration file path",
)
@click.option(
    "--operations",
    "-o",
    type=click.Path(exists=True),
    help="YAML file with the requested operations",
)
@click.option(
    "--rename-table",
    help="New table name",
)
@click.option(
    "--add-column",
    "add_columns",
    multiple=True,
    callback=_split_pairs,
    metavar="NAME=DEFINITION",
    help="Column to add (repeatable)",
)
@click.option(
    "--delete-column",
    "delete_columns",
    multiple=True,
    metavar="NAME",
    help="Column to delete (repeatable)",
)
@click.option(
    "--modify-column",
    "modify_columns",
    multiple=True,
    callback=_split_pairs,
    metavar="NAME=DEFINITION",
    help="Column to redefine (repeatable)",
)
@click.option(
    "--rename-column",
    "rename_columns",
    multiple=True,
    callback=_split_pairs,
    metavar="OLD=NEW",
    help="Column to rename (repeatable)",
)
@click.option(
    "--finalize/--no-finalize",
    default=None,
    help="Emit the DROP/RENAME statements that complete a rebuild (overrides config)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["sql", "table", "json"]),
    default="sql",
    help="Output format",
)
@click.pass_context
@handle_errors
def plan(
    ctx,
    snapshot: str,
    table: Optional[str],
    config: Optional[str],
    operations: Optional[str],
    rename_table: Optional[str],
    add_columns: List[Tuple[str, str]],
    delete_columns: Tuple[str, ...],
    modify_columns: List[Tuple[str, str]],
    rename_columns: List[Tuple[str, str]],
    finalize: Optional[bool],
    output_format: str,
):
    """Print the statements that apply the requested changes to a table."""
    sqlalter_config = SqlAlterConfig.from_yaml(config) if config else SqlAlterConfig()
    _configure_logging(
        sqlalter_config.logging, ctx.obj.get("debug") or sqlalter_config.debug
    )

    snapshot_table, column_snapshot = ColumnSnapshot.from_yaml(snapshot)
    table = table or snapshot_table
    if not table:
        raise ValidationError(
            "No table name given and the snapshot file does not name one"
        )

    requested = AlterOperations.from_yaml(operations) if operations else AlterOperations()
    requested = requested.merge(
        AlterOperations.coerce(
            rename_table=rename_table,
            add_columns=add_columns,
            delete_columns=list(delete_columns),
            modify_columns=modify_columns,
            rename_columns=rename_columns,
        )
    )

    planner = AlterPlanner.from_config(sqlalter_config)
    if finalize is not None:
        planner.finalize_rebuild = finalize

    alter_plan = planner.build_plan(table, column_snapshot, requested)

    if output_format == "json":
        console.out(json.dumps(alter_plan.sql, indent=2), highlight=False)
    elif output_format == "table":
        _display_plan(alter_plan)
    else:
        for statement in alter_plan.sql:
            console.out(f"{statement};", highlight=False)


def _display_plan(alter_plan: AlterPlan) -> None:
    """Display a plan as a table."""
    if alter_plan.is_empty:
        console.print(f"[yellow]No changes requested for {escape(alter_plan.table)}[/yellow]")
        return

    table = Table(title=f"Alter plan for {escape(alter_plan.table)}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Phase", no_wrap=True)
    table.add_column("Change", style="cyan")
    table.add_column("SQL")

    for step, statement in enumerate(alter_plan.statements, start=1):
        phase = "[magenta]rebuild[/magenta]" if statement.is_rebuild_step else "direct"
        table.add_row(
            str(step), phase, Text(statement.description), Text(statement.sql)
        )

    console.print(table)

    if alter_plan.requires_rebuild and not alter_plan.is_finalized:
        console.print(
            "\n[yellow]Rebuild not finalized.[/yellow] "
            "Run these right after the row copy:"
        )
        for statement in alter_plan.finalize_statements:
            console.out(f"  {statement.sql};", highlight=False)


def _display_config_summary(config: SqlAlterConfig) -> None:
    """Display configuration summary."""
    table = Table(title="Configuration Summary")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Temp table prefix", repr(config.planner.temp_table_prefix))
    table.add_row("Temp table suffix", repr(config.planner.temp_table_suffix))
    table.add_row("Finalize rebuild", str(config.planner.finalize_rebuild))
    table.add_row("Strict collisions", str(config.planner.strict_collisions))
    table.add_row("Log level", config.logging.level)
    table.add_row("Log file", config.logging.file or "-")

    console.print(table)


if __name__ == "__main__":
    main()
