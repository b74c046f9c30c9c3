"""m3ukit CLI - playlist analysis from the command line."""

import asyncio
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from m3ukit import __version__
from m3ukit.config import load_config
from m3ukit.errors import M3UParserError
from m3ukit.models.parse_result import ParseResult
from m3ukit.services import M3UParser, Strategy

console = Console()


# ===== HELPERS =====

def run_async(coro):
    """Run an async function."""
    return asyncio.run(coro)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def load_playlist(parser: M3UParser, source: str) -> ParseResult:
    """Parse SOURCE (file path or URL) with statistics, exiting on failure."""
    try:
        if is_url(source):
            console.print(f"[dim]Downloading {source}...[/]")
            return run_async(parser.parse_url_with_statistics(source))
        return run_async(parser.parse_file_with_statistics(source))
    except M3UParserError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)


# ===== DISPLAY HELPERS =====

def display_summary(result: ParseResult):
    playlist = result.playlist
    stats = result.statistics

    table = Table(title=playlist.name or "Playlist", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Items", str(len(playlist)))
    table.add_row("Live channels", str(len(playlist.channels)))
    table.add_row("Movies", str(len(playlist.movies)))
    table.add_row("Series episodes", str(len(playlist.series)))
    table.add_row("Unique series", str(playlist.unique_series_count))
    table.add_row("Groups", str(len(playlist.groups)))
    table.add_row("Lines", str(stats.total_lines))
    table.add_row("Success rate", f"{stats.success_rate:.1%}")
    table.add_row("Orphaned EXTINF", str(stats.orphaned_extinf_count))
    table.add_row("Duplicate URLs", str(stats.duplicate_url_count))
    table.add_row("Invalid URLs", str(stats.invalid_url_count))
    table.add_row("Parse time", f"{stats.parse_time:.3f}s")

    console.print(table)


def display_warnings(result: ParseResult, limit: int):
    if not result.warnings:
        console.print("[green]No warnings[/]")
        return

    table = Table(title=f"Warnings ({len(result.warnings)})", show_header=True)
    table.add_column("Line", style="dim", width=6)
    table.add_column("Severity", width=8)
    table.add_column("Type", style="magenta")
    table.add_column("Message", style="cyan")

    colors = {"info": "blue", "warning": "yellow", "error": "red"}
    for warning in result.warnings[:limit]:
        color = colors[warning.severity.value]
        table.add_row(
            str(warning.line_number),
            f"[{color}]{warning.severity.value}[/]",
            warning.type.value,
            warning.message,
        )

    if len(result.warnings) > limit:
        console.print(f"[dim](Showing first {limit} of {len(result.warnings)} warnings)[/]")

    console.print(table)


# ===== CLI COMMANDS =====

@click.group(invoke_without_command=True)
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None, help="Config file (JSON)")
@click.option("--verbose", is_flag=True, help="Debug logging")
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def main(ctx, config_path: Optional[str], verbose: bool, version: bool):
    """m3ukit - IPTV playlist parser and analyzer."""
    setup_logging(verbose)

    if version:
        console.print(f"m3ukit v{__version__}")
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        return

    ctx.obj = M3UParser(config=load_config(config_path))


@main.command()
@click.argument("source")
@click.option("--warnings", "warning_limit", default=20, show_default=True, help="Max warnings to list")
@click.pass_obj
def analyze(parser: M3UParser, source: str, warning_limit: int):
    """Parse SOURCE and show content, statistics and warnings."""
    result = load_playlist(parser, source)

    display_summary(result)
    display_warnings(result, warning_limit)

    dedup = result.playlist.deduplication_statistics()
    console.print(Panel(
        f"[cyan]{dedup.unique_count}[/] unique of [cyan]{dedup.original_count}[/] "
        f"([yellow]{dedup.duplicates_removed}[/] duplicates, {dedup.duplicate_percentage:.1f}%)",
        title="Deduplication",
    ))


@main.command()
@click.argument("source")
@click.option("--top", "-n", default=20, show_default=True, help="Number of series to list")
@click.pass_obj
def series(parser: M3UParser, source: str, top: int):
    """List the largest series in SOURCE."""
    result = load_playlist(parser, source)
    grouped = result.playlist.series_grouped

    if not grouped:
        console.print("[yellow]No series found[/]")
        return

    table = Table(title=f"Series ({len(grouped)} unique, {result.playlist.total_episode_count} episodes)", show_header=True)
    table.add_column("#", style="dim", width=4)
    table.add_column("Series", style="cyan")
    table.add_column("Group", style="magenta")
    table.add_column("Seasons", style="green", justify="right")
    table.add_column("Episodes", style="green", justify="right")

    for i, info in enumerate(grouped[:top], 1):
        table.add_row(str(i), info.name, info.group or "-", str(info.season_count), str(info.episode_count))

    console.print(table)


@main.command()
@click.argument("source")
@click.option(
    "--strategy", "-s",
    type=click.Choice([s.value for s in Strategy]),
    default=Strategy.COMPOSITE.value,
    show_default=True,
    help="How duplicates are matched",
)
@click.option("--top", "-n", default=20, show_default=True, help="Number of groups to list")
@click.pass_obj
def duplicates(parser: M3UParser, source: str, strategy: str, top: int):
    """Show duplicate groups in SOURCE."""
    result = load_playlist(parser, source)
    groups = result.playlist.find_duplicates(strategy=Strategy(strategy))

    if not groups:
        console.print("[green]No duplicates found[/]")
        return

    table = Table(title=f"Duplicate groups ({len(groups)})", show_header=True)
    table.add_column("#", style="dim", width=4)
    table.add_column("Count", style="yellow", justify="right")
    table.add_column("Best item", style="cyan")
    table.add_column("Score", style="green", justify="right")

    for i, group in enumerate(groups[:top], 1):
        best = group[0]
        table.add_row(str(i), str(len(group)), best.name, str(best.quality_score))

    console.print(table)


@main.command()
@click.argument("name")
@click.option("--group", "-g", default=None, help="Group label of the entry")
@click.pass_obj
def classify(parser: M3UParser, name: str, group: Optional[str]):
    """Classify a single entry NAME as live, movie or series."""
    content_type = parser.classifier.classify(name, group, {})
    console.print(f"[cyan]{name}[/] -> [bold green]{content_type}[/]")


if __name__ == "__main__":
    main()
