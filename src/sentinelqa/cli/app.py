"""SentinelQA CLI -- Main Typer entry point.

Registers all subcommands and provides --version / --verbose global options.
"""

from __future__ import annotations

import typer
from rich.console import Console

from sentinelqa import __version__
from sentinelqa.log import configure_logging

# -- ASCII Banner -----------------------------------------------------------

BANNER = r"""
 ___           _   _          _  ___   _
/ __| ___ _ _ | |_(_)_ _  ___| |/ _ \ /_\
\__ \/ -_) ' \|  _| | ' \/ -_) | (_) / _ \
|___/\___|_||_|\__|_|_||_\___|_|\__\_\/ \_\
"""

TAGLINE = "An AI agent that clicks through your UI so your testers don't have to."

console = Console()

# -- Version callback -------------------------------------------------------


def _version_callback(value: bool) -> None:
    if value:
        console.print(BANNER, style="bold cyan")
        console.print(f"  {TAGLINE}", style="dim")
        console.print(f"  v{__version__}\n", style="bold")
        raise typer.Exit()


# -- Main app ---------------------------------------------------------------

app = typer.Typer(
    name="sentinelqa",
    help=f"{BANNER}\n{TAGLINE}",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show SentinelQA version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
) -> None:
    """SentinelQA -- autonomous, goal-driven GUI testing.

    Describe the test in plain language. The agent inspects, acts and verifies.
    """
    configure_logging(verbose)


# -- Register subcommands ---------------------------------------------------

from sentinelqa.cli.init_cmd import init  # noqa: E402
from sentinelqa.cli.inspect_cmd import inspect  # noqa: E402
from sentinelqa.cli.report import report  # noqa: E402
from sentinelqa.cli.run import run  # noqa: E402

app.command(name="init", help="Initialize a .sentinelqa/ project directory.")(init)
app.command(name="inspect", help="List the UI elements the agent would see (zero cost).")(inspect)
app.command(name="run", help="Run an autonomous UI test toward a goal.")(run)
app.command(name="report", help="List or view Markdown test reports.")(report)
