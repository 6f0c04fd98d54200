"""
dbx CLI - Query a remote endpoint from the terminal

Usage:
    dbx                      # Launch interactive TUI
    dbx 'QUERY'              # Execute query and print the result
    dbx help                 # Show usage
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from dbx import __version__
from dbx.cli.formatters import JSONFormatter, get_formatter
from dbx.core.client import QueryClient
from dbx.core.config import CONFIG_FILE, LOG_FILE, config_dir as default_config_dir, load_settings
from dbx.core.errors import TransportError
from dbx.core.types import ResponseShape

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> None:
    """
    Configure the root logger

    Args:
        verbose: Log DEBUG and up instead of WARNING and up
        log_file: Write records to this file instead of stderr
    """
    level = logging.DEBUG if verbose else logging.WARNING
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers = [logging.FileHandler(log_file, encoding="utf-8")]
    elif verbose:
        handlers = [logging.StreamHandler(sys.stderr)]
    else:
        handlers = [logging.NullHandler()]
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("query", nargs=-1)
@click.option(
    "--endpoint",
    "-e",
    envvar="DBX_ENDPOINT",
    default=None,
    help="Query endpoint URL (default: from config, http://localhost:8000/db)",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["json", "table", "csv", "markdown"], case_sensitive=False),
    default="json",
    help="Output format for tabular results (default: json)",
)
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding config.json, history.json and dbx.log",
)
@click.option(
    "--no-color",
    is_flag=True,
    help="Disable colored output",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging",
)
@click.version_option(version=__version__, prog_name="dbx")
@click.pass_context
def cli(
    ctx: click.Context,
    query: Tuple[str, ...],
    endpoint: Optional[str],
    format: str,
    config_dir: Optional[Path],
    no_color: bool,
    verbose: bool,
):
    """
    dbx - Interactive query workbench

    Without a query, starts the interactive shell. With a query, runs it once
    and prints the result.

    Examples:

        \b
        # Launch the shell
        $ dbx

        \b
        # One-shot query, JSON output
        $ dbx 'select * from Patients limit 1'

        \b
        # Rows as a table
        $ dbx 'select count(*) from Users' -f table

    Quote the entire query to prevent shell expansion of * and other
    special characters.
    """
    fmt = format.lower()
    del format

    if query == ("help",):
        click.echo(ctx.get_help())
        return

    directory = config_dir or default_config_dir()
    if not query:
        setup_logging(verbose, log_file=directory / LOG_FILE)
    else:
        setup_logging(verbose)

    settings = load_settings(directory / CONFIG_FILE)
    if endpoint:
        settings.endpoint = endpoint

    if not query:
        try:
            from dbx.cli.shell import launch_shell

            launch_shell(settings, directory)
        except Exception as e:
            logger.exception("Shell failed")
            click.echo(f"Error running app: {e}", err=True)
            sys.exit(1)
        return

    run_query(" ".join(query), settings.endpoint, fmt, no_color=no_color)


def run_query(query_text: str, endpoint: str, fmt: str = "json", no_color: bool = False) -> None:
    """Execute one query and print the result, exiting 1 on transport failure."""
    with QueryClient(endpoint) as client:
        try:
            result = client.execute(query_text)
        except TransportError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    if result.shape is ResponseShape.TABULAR:
        if fmt == "json":
            output_text = JSONFormatter().format(result.payload)
        else:
            formatter = get_formatter(fmt)
            output_text = formatter.format(
                result.payload,
                no_color=no_color or (not sys.stdout.isatty()),
                show_footer=False,
            )
    elif result.shape is ResponseShape.STRUCTURED:
        output_text = JSONFormatter().format_payload(result.payload)
    else:
        output_text = result.raw

    click.echo(output_text)


if __name__ == "__main__":
    cli()
