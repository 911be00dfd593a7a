"""
mysqlgate CLI Entry Point

Command-line interface for running the MCP MySQL server.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from mysqlgate.config import Settings, get_settings, load_settings
from mysqlgate.connection import configured_descriptor
from mysqlgate.errors import GatewayError
from mysqlgate.server import run_server
from mysqlgate.utils.logger import setup_logging

app = typer.Typer(
    name="mysqlgate",
    help="mysqlgate - MCP server for MySQL",
    add_completion=False,
    invoke_without_command=True,  # Allow running without subcommand
)
console = Console()
# stdout belongs to the MCP transport while serving
err_console = Console(stderr=True)


def _load(env_file: Optional[Path]) -> Settings:
    if env_file:
        return load_settings(env_file)
    return get_settings()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    env_file: Optional[Path] = typer.Option(None, "--env", "-e", help="Path to .env file"),
    read_only: Optional[bool] = typer.Option(
        None, "--read-only/--read-write", help="Override MYSQL_READ_ONLY"
    ),
    explain_check: Optional[bool] = typer.Option(
        None, "--explain-check/--no-explain-check", help="Override MYSQL_EXPLAIN_CHECK"
    ),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also log to this file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """
    mysqlgate - MCP server for MySQL.

    Run directly without subcommand to serve over stdio.
    Use subcommands (serve, config, version) for other operations.

    Examples:
        mysqlgate                       # Serve with .env / environment settings
        mysqlgate --read-only           # Do not register mutating tools
        mysqlgate --explain-check -v    # Verify statement types, debug logging
        mysqlgate config                # Show configuration
        mysqlgate version               # Show version
    """
    if ctx.invoked_subcommand is not None:
        return

    _serve(env_file, read_only, explain_check, log_file, verbose)


@app.command()
def serve(
    env_file: Optional[Path] = typer.Option(None, "--env", "-e", help="Path to .env file"),
    read_only: Optional[bool] = typer.Option(
        None, "--read-only/--read-write", help="Override MYSQL_READ_ONLY"
    ),
    explain_check: Optional[bool] = typer.Option(
        None, "--explain-check/--no-explain-check", help="Override MYSQL_EXPLAIN_CHECK"
    ),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also log to this file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """
    Serve MCP tools over stdio.
    """
    _serve(env_file, read_only, explain_check, log_file, verbose)


def _serve(
    env_file: Optional[Path],
    read_only: Optional[bool],
    explain_check: Optional[bool],
    log_file: Optional[Path],
    verbose: bool,
) -> None:
    """
    Internal function to run the server.

    Shared by the default callback and the serve command.
    """
    settings = _load(env_file)

    if read_only is not None:
        settings.mysql.read_only = read_only
    if explain_check is not None:
        settings.mysql.explain_check = explain_check
    if verbose:
        settings.debug = True

    setup_logging(
        level=settings.effective_log_level,
        log_file=log_file or settings.log_file,
    )

    try:
        run_server(settings)
    except Exception as e:
        err_console.print(f"\n[red]Server failed: {e}[/red]")
        if verbose:
            err_console.print_exception()
        raise typer.Exit(1)


@app.command()
def config(
    env_file: Optional[Path] = typer.Option(None, "--env", "-e", help="Path to .env file"),
):
    """
    Show current configuration.
    """
    settings = _load(env_file)
    mysql = settings.mysql

    console.print("\n[bold blue]mysqlgate Configuration[/bold blue]")
    console.print("-" * 40)

    table = Table(title="MySQL")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Host", f"{mysql.host}:{mysql.port}")
    table.add_row("User", mysql.user)
    table.add_row("Password", "********" if mysql.password else "")
    table.add_row("Database", mysql.database)
    table.add_row("Read only", str(mysql.read_only))
    table.add_row("Explain check", str(mysql.explain_check))

    try:
        table.add_row("Resolved connection", configured_descriptor(mysql).masked())
    except GatewayError as e:
        table.add_row("Resolved connection", f"[red]{e}[/red]")

    console.print(table)

    console.print("\n[cyan]Logging:[/cyan]")
    console.print(f"  Level: {settings.effective_log_level}")
    console.print(f"  File: {settings.log_file or '-'}")


@app.command()
def version():
    """
    Show version information.
    """
    from mysqlgate import __version__

    console.print(f"mysqlgate version: [green]{__version__}[/green]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
