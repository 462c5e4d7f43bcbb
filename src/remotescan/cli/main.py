from __future__ import annotations

"""
remotescan CLI: inspect and read foreign tables from the command line.

Thin layer: load config → call engine → print.
"""

import json
from enum import Enum
from typing import Optional

import typer

from remotescan.errors import ConfigurationError, RemoteScanError, format_error_for_cli
from remotescan.logging import configure_cli_logging
from remotescan.version import VERSION

app = typer.Typer(help="remotescan CLI: read remote MySQL tables as local relations")

# Exit codes (stable for scripts)
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 2
EXIT_RUNTIME_ERROR = 3


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


@app.callback(invoke_without_command=True)
def _version(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None, "--version", help="Show the remotescan version and exit.", is_eager=True
    ),
) -> None:
    if version:
        typer.echo(f"remotescan {VERSION}")
        raise typer.Exit(code=0)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def _fail(exc: BaseException, verbose: bool) -> None:
    """Print an error and exit with the matching code."""
    msg = format_error_for_cli(exc)
    if verbose:
        import traceback

        typer.secho(f"Error: {msg}\n\n{traceback.format_exc()}", fg=typer.colors.RED)
    else:
        typer.secho(f"Error: {msg}", fg=typer.colors.RED)
    if isinstance(exc, (ConfigurationError, FileNotFoundError)):
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    raise typer.Exit(code=EXIT_RUNTIME_ERROR)


def _load(config_path: Optional[str]):
    from remotescan.config.settings import load_config

    return load_config(config_path)


@app.command("explain")
def explain(
    table: str = typer.Argument(..., help="Configured foreign table name."),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to the configuration file."
    ),
    costs: bool = typer.Option(
        True, "--costs/--no-costs", help="Ask the remote source for a row estimate."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Show the remote query, startup-cost tier and estimated rows."""
    configure_cli_logging(verbose)
    try:
        from remotescan import open_scan

        cfg = _load(config)
        fs = open_scan(cfg, table)
        for key, value in fs.explain(costs=costs).items():
            typer.echo(f"{key}: {value}")

        if costs:
            plan = fs.plan()
            typer.secho(
                f"Estimated rows: {plan.rows:g}  total cost: {plan.total_cost:g}",
                fg=typer.colors.BLUE,
            )
    except typer.Exit:
        raise
    except (RemoteScanError, FileNotFoundError) as e:
        _fail(e, verbose)
    raise typer.Exit(code=EXIT_SUCCESS)


@app.command("scan")
def scan(
    table: str = typer.Argument(..., help="Configured foreign table name."),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to the configuration file."
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", min=0, help="Stop after this many rows."
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TABLE, "--output-format", "-o", help="Output format."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Read a foreign table and print its rows."""
    configure_cli_logging(verbose)
    try:
        import remotescan

        cfg = _load(config)
        df = remotescan.to_polars(cfg, table, limit=limit)
    except typer.Exit:
        raise
    except (RemoteScanError, FileNotFoundError) as e:
        _fail(e, verbose)

    if output_format is OutputFormat.JSON:
        typer.echo(json.dumps(df.to_dicts(), default=str, indent=2))
    elif output_format is OutputFormat.CSV:
        typer.echo(df.write_csv(), nl=False)
    else:
        typer.echo(df)
    raise typer.Exit(code=EXIT_SUCCESS)


@app.command("check-config")
def check_config(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to the configuration file."
    ),
) -> None:
    """Validate the configuration file and every foreign table in it."""
    configure_cli_logging(False)
    try:
        from remotescan.config.settings import resolve_foreign_table

        cfg = _load(config)
        for name in sorted(cfg.foreign_tables):
            options, schema = resolve_foreign_table(cfg, name)
            typer.echo(
                f"{name}: {options.effective_query}  "
                f"({schema.live_count} column(s), {schema.dropped_count} dropped)"
            )
    except typer.Exit:
        raise
    except (RemoteScanError, FileNotFoundError) as e:
        _fail(e, False)

    typer.secho("Configuration OK", fg=typer.colors.GREEN)
    raise typer.Exit(code=EXIT_SUCCESS)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
