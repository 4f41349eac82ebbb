"""CLI for reportlayer datasources and maintenance tasks."""

from pathlib import Path

import typer

from reportlayer import __version__
from reportlayer.config import ReportLayerConfig, build_connection_string, find_config, load_config


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"reportlayer {__version__}")
        raise typer.Exit()


app = typer.Typer(
    help="reportlayer: report datasources for learning analytics",
    no_args_is_help=True,
)

# Global state for config (set in callback, used in commands)
_loaded_config: ReportLayerConfig | None = None


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True, help="Show version"
    ),
    config: Path = typer.Option(None, "--config", "-c", help="Path to config file (reportlayer.yaml)"),
):
    """reportlayer CLI.

    You can use a config file (reportlayer.yaml or reportlayer.json) to set default values.
    CLI arguments override config file values.
    """
    global _loaded_config

    config_path = config if config else find_config()

    if config_path:
        try:
            _loaded_config = load_config(config_path)
            typer.echo(f"Loaded config from: {config_path}", err=True)
        except Exception as e:
            typer.echo(f"Warning: Failed to load config: {e}", err=True)
            _loaded_config = None


def _config() -> ReportLayerConfig:
    return _loaded_config or ReportLayerConfig()


def _open_adapter(db: Path | None):
    """Open the database given on the command line or in the config, if any."""
    from reportlayer.db.duckdb import DuckDBAdapter

    if db:
        return DuckDBAdapter(str(db))
    config = _config()
    if config.connection:
        return DuckDBAdapter.from_url(build_connection_string(config))
    return None


def _build_datasource(name: str, course: int, user: int, adapter):
    from reportlayer.core.catalog import CatalogSnapshot, load_catalog
    from reportlayer.core.context import ReportContext
    from reportlayer.datasources import get_datasource

    config = _config()
    catalog = load_catalog(adapter, config.table_prefix) if adapter else CatalogSnapshot()
    context = ReportContext(
        user_id=user,
        course_id=course,
        site_guest_id=config.site_guest_id,
        catalog=catalog,
        table_prefix=config.table_prefix,
        date_format=config.display.date_format,
        timezone=config.display.timezone,
        wwwroot=config.display.wwwroot,
    )
    return get_datasource(name, context).build()


@app.command("list")
def list_datasources():
    """
    List available datasources.

    Examples:
      reportlayer list
    """
    from reportlayer.datasources import DATASOURCES

    for name, datasource_class in DATASOURCES.items():
        typer.echo(f"{name}\t{datasource_class.get_name()}")


@app.command()
def describe(
    name: str = typer.Argument(..., help="Datasource name"),
):
    """
    Show the columns, filters and conditions a datasource exposes.

    Examples:
      reportlayer describe users
    """
    try:
        datasource = _build_datasource(name, course=0, user=0, adapter=None)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Datasource: {name} ({datasource.get_name()})")
    main_table, main_alias = datasource.main_table
    typer.echo(f"Main table: {main_table} {main_alias}")

    typer.echo("\nColumns:")
    defaults = set(datasource.get_default_columns())
    for identity, column in datasource.get_columns().items():
        marker = "*" if identity in defaults else " "
        typer.echo(f"  {marker} {identity} [{column.type}] {column.label}")

    typer.echo("\nFilters:")
    defaults = set(datasource.get_default_filters())
    for identity, filter_ in datasource.get_filters().items():
        marker = "*" if identity in defaults else " "
        typer.echo(f"  {marker} {identity} [{filter_.kind}] {filter_.label}")

    typer.echo("\nConditions:")
    defaults = set(datasource.get_default_conditions())
    for identity, condition in datasource.get_conditions().items():
        marker = "*" if identity in defaults else " "
        typer.echo(f"  {marker} {identity} [{condition.kind}] {condition.label}")

    buttons = datasource.get_action_buttons()
    if buttons:
        typer.echo("\nActions:")
        for button in buttons:
            typer.echo(f"  {button.button_id}: {button.button_value} -> {button.form_action}")


@app.command("compile")
def compile_query(
    name: str = typer.Argument(..., help="Datasource name"),
    column: list[str] = typer.Option(None, "--column", help="Column identity (repeatable, defaults to the datasource defaults)"),
    course: int = typer.Option(0, "--course", help="Course id"),
    user: int = typer.Option(0, "--user", help="Viewing user id"),
    db: Path = typer.Option(None, "--db", help="DuckDB database used to discover installed modules"),
):
    """
    Print the SQL and parameters of a datasource query without executing it.

    Examples:
      reportlayer compile users
      reportlayer compile users --column user:email --column enrolment:role
      reportlayer compile activities --course 2 --db site.duckdb
    """
    adapter = None
    try:
        adapter = _open_adapter(db)
        datasource = _build_datasource(name, course=course, user=user, adapter=adapter)
        query = datasource.compose(columns=column or None)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        if adapter is not None:
            adapter.close()

    typer.echo(query.sql)
    if query.params:
        typer.echo("\n-- Parameters:")
        for param, value in query.params.items():
            typer.echo(f"--   :{param} = {value!r}")


@app.command()
def run(
    name: str = typer.Argument(..., help="Datasource name"),
    column: list[str] = typer.Option(None, "--column", help="Column identity (repeatable, defaults to the datasource defaults)"),
    course: int = typer.Option(0, "--course", help="Course id"),
    user: int = typer.Option(0, "--user", help="Viewing user id"),
    db: Path = typer.Option(None, "--db", help="Path to DuckDB database file"),
    output: Path = typer.Option(None, "--output", "-o", help="Output file (default: stdout)"),
):
    """
    Execute a datasource query and output formatted rows as CSV.

    Examples:
      reportlayer run users --db site.duckdb
      reportlayer run activities --course 2 --db site.duckdb --output activities.csv
    """
    import csv
    import sys

    adapter = None
    try:
        adapter = _open_adapter(db)
        if adapter is None:
            typer.echo("Error: No database given (use --db or a config connection)", err=True)
            raise typer.Exit(1)

        datasource = _build_datasource(name, course=course, user=user, adapter=adapter)
        query = datasource.compose(columns=column or None)
        rows = query.format_rows(adapter.fetchall(adapter.execute(query.sql, query.params)))
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        if adapter is not None:
            adapter.close()

    headers = [selected.identity for selected in query.columns]
    if output:
        with open(output, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=headers)
            writer.writeheader()
            writer.writerows(rows)
        typer.echo(f"Results written to {output}", err=True)
    else:
        writer = csv.DictWriter(sys.stdout, fieldnames=headers)
        writer.writeheader()
        writer.writerows(rows)


@app.command()
def cleanup(
    db: Path = typer.Option(None, "--db", help="Path to DuckDB database file"),
    days: int = typer.Option(None, "--days", help="Log lifetime in days (overrides config)"),
):
    """
    Delete old cli and restore log records.

    Meant to be run periodically; each run stops after the configured time
    limit and the next run continues where it stopped.

    Examples:
      reportlayer cleanup --db site.duckdb --days 30
    """
    import logging

    from reportlayer.tasks.log_cleanup import LogCleanupTask

    logging.basicConfig(level=logging.INFO)

    config = _config()
    adapter = None
    try:
        adapter = _open_adapter(db)
        if adapter is None:
            typer.echo("Error: No database given (use --db or a config connection)", err=True)
            raise typer.Exit(1)

        task = LogCleanupTask(
            adapter,
            log_lifetime_days=days if days is not None else config.cleanup.log_lifetime_days,
            table_prefix=config.table_prefix,
            time_limit=config.cleanup.time_limit,
            batch_size=config.cleanup.batch_size,
        )
        result = task.execute()
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        if adapter is not None:
            adapter.close()

    status = "complete" if result.completed else "partial, rerun to continue"
    typer.echo(f"Cleanup {status}: {result.batches} batch(es) deleted")


if __name__ == "__main__":
    app()
