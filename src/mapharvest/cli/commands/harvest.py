"""
Harvest commands: batch runs, single queries and merging artifacts.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from mapharvest.core.config import AppConfig, ConfigError, load_app_config, load_queries
from mapharvest.core.logging import setup_logging

console = Console()
err_console = Console(stderr=True)


def _load_config(config_path: Optional[Path], **overrides) -> AppConfig:
    """Load app config, apply CLI overrides and configure logging."""
    try:
        config = load_app_config(config_path).with_overrides(**overrides)
    except ConfigError as e:
        err_console.print(f"[red]Error loading config:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)
    except ValueError as e:
        err_console.print(f"[red]Invalid option:[/red] {e}")
        raise typer.Exit(1)

    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )
    return config


def _show_summary(stats) -> None:
    """Show summary table of a batch run."""
    table = Table(title="Harvest Summary")

    table.add_column("Query", style="cyan")
    table.add_column("Records", justify="right", style="green")
    table.add_column("Status", justify="center")

    for index, count in sorted(stats.records_per_query.items()):
        status = "[red]failed[/red]" if index in stats.failed_indexes else "[green]OK[/green]"
        table.add_row(stats.formatted_queries[index], str(count), status)

    table.add_section()
    table.add_row("[bold]Total[/bold]", str(stats.total_records), "")
    console.print(table)

    duration = f"{stats.duration_seconds:.1f}s" if stats.duration_seconds else "-"
    if stats.merge and stats.merge.output_path:
        console.print(
            f"[bold green]{stats.merge.unique_records}[/bold green] unique records "
            f"({stats.merge.duplicates} duplicates removed) -> "
            f"[cyan]{stats.merge.output_path}[/cyan] in {duration}"
        )
    else:
        console.print(f"[yellow]No records harvested[/yellow] in {duration}")

    if stats.failed_queries:
        console.print()
        console.print(f"[red]{len(stats.failed_queries)} queries failed:[/red]")
        for query in stats.failed_queries[:5]:
            console.print(f"  • {query}")
        if len(stats.failed_queries) > 5:
            console.print(f"  [dim]... and {len(stats.failed_queries) - 5} more[/dim]")


def run_command(
    queries: Optional[Path] = typer.Option(
        None,
        "--queries",
        "-q",
        help="Query source (YAML list of {name: ...} or text, one per line)",
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        "-c",
        help="Queries harvested concurrently per chunk",
    ),
    cooldown_ms: Optional[int] = typer.Option(
        None,
        "--cooldown-ms",
        help="Pause between chunks in milliseconds",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Combined output CSV",
    ),
    template: Optional[str] = typer.Option(
        None,
        "--template",
        "-t",
        help="Query template containing {name}",
    ),
    headless: Optional[bool] = typer.Option(
        None,
        "--headless/--headed",
        help="Run the browser headless",
    ),
    keep_tmp: Optional[bool] = typer.Option(
        None,
        "--keep-tmp",
        help="Keep per-query artifacts after merging",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to app.yaml",
    ),
) -> None:
    """Harvest every query in chunks and merge the results.

    Examples:
        mapharvest run
        mapharvest run --queries configs/queries/illawarra.yaml -c 5
        mapharvest run --template "cafe near {name}, NSW" --headed
    """
    from mapharvest.core.orchestrator import BatchOrchestrator

    config = _load_config(
        config_path,
        **{
            "batch.concurrency": concurrency,
            "batch.cooldown_ms": cooldown_ms,
            "batch.final_output": output,
            "batch.keep_tmp": keep_tmp,
            "search.query_template": template,
            "browser.headless": headless,
        },
    )

    source = queries or config.queries_file
    if source is None:
        err_console.print("[red]No query source. Pass --queries or set queries_file.[/red]")
        raise typer.Exit(1)

    try:
        entries = load_queries(source)
    except ConfigError as e:
        err_console.print(f"[red]Error loading queries:[/red] {e}")
        raise typer.Exit(1)

    if not entries:
        err_console.print(f"[yellow]No queries found in {source}[/yellow]")
        raise typer.Exit(1)

    console.print(
        f"[bold]Harvesting {len(entries)} queries[/bold] "
        f"[dim](concurrency={config.batch.concurrency}, cooldown={config.batch.cooldown_ms}ms)[/dim]"
    )
    console.print()

    try:
        stats = asyncio.run(BatchOrchestrator(config).run(entries))
    except Exception as e:
        err_console.print(f"[red]Batch failed:[/red] {e}")
        raise typer.Exit(1)

    console.print()
    _show_summary(stats)


def query_command(
    text: str = typer.Argument(..., help="Full search text, used as-is"),
    output: Path = typer.Option(
        Path("results.csv"),
        "--output",
        "-o",
        help="Output CSV",
    ),
    headless: Optional[bool] = typer.Option(
        None,
        "--headless/--headed",
        help="Run the browser headless",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to app.yaml",
    ),
) -> None:
    """Harvest a single search and write its records to one CSV.

    Examples:
        mapharvest query "restaurant near Keiraville, New South Wales, Australia"
    """
    from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

    from mapharvest.core.backends import PlaywrightBackend
    from mapharvest.core.harvest import harvest_query
    from mapharvest.core.output import write_dataset

    config = _load_config(config_path, **{"browser.headless": headless})

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"[cyan]Harvesting {text}...[/cyan]", total=None)
        result = asyncio.run(
            harvest_query(text, config, lambda: PlaywrightBackend.from_config(config.browser))
        )

    if result.error:
        err_console.print(f"[yellow]Session ended early:[/yellow] {result.error}")

    if write_dataset(result.rows(), output):
        console.print(f"[green]Saved {result.item_count} records to[/green] [cyan]{output}[/cyan]")
    else:
        console.print("[yellow]No records harvested; nothing written.[/yellow]")

    skipped = result.skipped
    if skipped:
        details = ", ".join(f"{reason.value}={count}" for reason, count in skipped.items())
        console.print(f"[dim]Skipped: {details}[/dim]")


def merge_command(
    directory: Path = typer.Argument(..., help="Directory of per-query CSV artifacts"),
    output: Path = typer.Option(
        Path("all_restaurants.csv"),
        "--output",
        "-o",
        help="Combined output CSV",
    ),
) -> None:
    """Merge per-query artifacts into one deduplicated CSV.

    Examples:
        mapharvest merge tmp/1718000000000 --output all_restaurants.csv
    """
    from mapharvest.core.output import MergeReducer

    if not directory.is_dir():
        err_console.print(f"[red]Not a directory:[/red] {directory}")
        raise typer.Exit(1)

    stats = MergeReducer().merge(directory, output)

    if stats.output_path:
        console.print(
            f"[green]Merged {stats.files_read} files:[/green] {stats.total_records} records, "
            f"{stats.unique_records} unique -> [cyan]{output}[/cyan]"
        )
    else:
        console.print(f"[yellow]No records found in {directory}; nothing written.[/yellow]")
