"""
mapharvest CLI - Main entry point.

Harvests map search listings for a list of places and merges them into
one deduplicated CSV.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from mapharvest import __app_name__, __version__

# Load environment variables from .env (if present)
load_dotenv()

# Install rich traceback for better error display
install_rich_traceback(show_locals=False, width=120)

# Force UTF-8 on Windows; place names and addresses are not ASCII-only
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")
    for stream in (sys.stdout, sys.stderr):
        if hasattr(stream, "reconfigure"):
            stream.reconfigure(encoding="utf-8", errors="replace")

console = Console(legacy_windows=False)
err_console = Console(stderr=True, legacy_windows=False)

# Create main app
app = typer.Typer(
    name=__app_name__,
    help="Harvest map search listings into CSV datasets",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """mapharvest - Map listing harvester."""


# =============================================================================
# Register harvest commands
# =============================================================================

from .commands import harvest  # noqa: E402

app.command("run")(harvest.run_command)
app.command("query")(harvest.query_command)
app.command("merge")(harvest.merge_command)


# =============================================================================
# Init Command
# =============================================================================


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Write default configuration and the sample query list.

    Creates configs/app.yaml, configs/queries/illawarra.yaml and the
    logs/ and tmp/ directories.
    """
    from mapharvest.core.config.defaults import (
        DEFAULT_APP_YAML,
        ILLAWARRA_SUBURBS,
        render_queries_yaml,
    )

    for dir_path in (Path("configs/queries"), Path("logs"), Path("tmp")):
        dir_path.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []

    app_config_path = Path("configs/app.yaml")
    if not app_config_path.exists() or force:
        app_config_path.write_text(DEFAULT_APP_YAML, encoding="utf-8")
        written.append(app_config_path)

    queries_path = Path("configs/queries/illawarra.yaml")
    if not queries_path.exists() or force:
        queries_path.write_text(render_queries_yaml(ILLAWARRA_SUBURBS), encoding="utf-8")
        written.append(queries_path)

    if written:
        created = "\n".join(f"  - [cyan]{path}[/cyan]" for path in written)
    else:
        created = "  [dim]nothing (files exist; use --force to overwrite)[/dim]"

    console.print()
    console.print(Panel.fit(
        "[bold green]OK - mapharvest initialized[/bold green]\n\n"
        f"Written:\n{created}\n\n"
        "Next steps:\n"
        "  1. Install a browser: [yellow]playwright install chromium[/yellow]\n"
        "  2. Try one search: [yellow]mapharvest query \"restaurant near Keiraville, NSW\"[/yellow]\n"
        "  3. Run the batch: [yellow]mapharvest run[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
