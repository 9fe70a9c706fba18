"""Command-line interface for novel-retrieval."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.logging import RichHandler
from rich.table import Table

from novel_retrieval import __version__
from novel_retrieval.config import AppConfig, Strictness
from novel_retrieval.errors import (
    ChapterError,
    DiscoveryError,
    NovelRetrievalError,
    UnsupportedSiteError,
)
from novel_retrieval.orchestrator import Orchestrator
from novel_retrieval.sites import DEFAULT_REGISTRY

app = typer.Typer(
    name="novel-retrieval",
    help="Download serialized web novels into a single text file.",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"novel-retrieval version {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # Transport internals drown out our own records at DEBUG
    logging.getLogger("httpcore").setLevel(logging.INFO)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """Web novel downloader for the command line."""
    pass


def build_config(
    url: str,
    config_file: Optional[Path] = None,
    output: Optional[Path] = None,
    concurrency: Optional[int] = None,
    fail_fast: Optional[bool] = None,
    delay: Optional[float] = None,
    retries: Optional[int] = None,
    timeout: Optional[int] = None,
    cache_dir: Optional[Path] = None,
    markers: Optional[bool] = None,
    verbose: bool = False,
) -> AppConfig:
    """Combine the optional TOML file with command-line flags.

    Flags left unset keep the file's value (or the built-in default).
    """
    if config_file is not None:
        config = AppConfig.from_toml(config_file, entry_url=url)
    else:
        config = AppConfig(entry_url=url)

    def merged(section, **values):
        updates = {k: v for k, v in values.items() if v is not None}
        return section.model_copy(update=updates) if updates else section

    update: dict = {
        "fetcher": merged(config.fetcher, max_retries=retries, timeout_ms=timeout),
        "rate_limit": merged(
            config.rate_limit, delay_seconds=delay, max_concurrent=concurrency
        ),
        "output": merged(
            config.output, path=output, cache_dir=cache_dir, missing_markers=markers
        ),
        "verbose": verbose or config.verbose,
    }
    if fail_fast is not None:
        update["strictness"] = Strictness.FAIL_FAST if fail_fast else Strictness.BEST_EFFORT

    # Round-trip through validation so flag values get the same bounds as the file
    return AppConfig.model_validate(config.model_copy(update=update).model_dump())


@app.command()
def download(
    url: str = typer.Argument(..., help="Table-of-contents URL of the novel"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file or directory (default: ./<author>_<title>.txt)",
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        "-c",
        help="Chapters fetched at once (default: the site's own limit)",
    ),
    fail_fast: Optional[bool] = typer.Option(
        None,
        "--fail-fast/--best-effort",
        help="Abort on the first failed chapter, or skip it and keep going (default)",
    ),
    delay: Optional[float] = typer.Option(
        None,
        "--delay",
        help="Minimum seconds between request starts",
    ),
    retries: Optional[int] = typer.Option(
        None,
        "--retries",
        help="Retries per page on network errors, 429 and 5xx",
    ),
    timeout: Optional[int] = typer.Option(
        None,
        "--timeout",
        help="Per-request timeout in milliseconds",
    ),
    cache_dir: Optional[Path] = typer.Option(
        None,
        "--cache-dir",
        help="Keep finished chapters here so an interrupted run can resume",
    ),
    markers: Optional[bool] = typer.Option(
        None,
        "--markers/--no-markers",
        help="Write a marker line where a chapter is missing",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        exists=True,
        dir_okay=False,
        help="TOML file with default settings",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
):
    """
    Download every chapter of a novel into one UTF-8 text file.

    Examples:

        novel-retrieval download https://czbooks.net/n/abc123

        novel-retrieval download https://tw.hjwzw.com/Book/Chapter/12345 -o novel.txt

        novel-retrieval download https://www.novel543.com/1234567/dir --fail-fast
    """
    setup_logging(verbose)

    try:
        config = build_config(
            url,
            config_file=config_file,
            output=output,
            concurrency=concurrency,
            fail_fast=fail_fast,
            delay=delay,
            retries=retries,
            timeout=timeout,
            cache_dir=cache_dir,
            markers=markers,
            verbose=verbose,
        )
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    orchestrator = Orchestrator(config, console)

    try:
        result = asyncio.run(orchestrator.run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Download cancelled.[/yellow]")
        raise typer.Exit(130)
    except UnsupportedSiteError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        console.print("Run [cyan]novel-retrieval list-sites[/cyan] to see supported sites.")
        raise typer.Exit(1)
    except DiscoveryError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    except ChapterError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        console.print("[dim]Rerun with --best-effort to skip failed chapters.[/dim]")
        raise typer.Exit(1)
    except NovelRetrievalError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)

    if result.success_count == 0:
        console.print("[red]No chapter could be downloaded; nothing was written.[/red]")
        raise typer.Exit(1)


@app.command("list-sites")
def list_sites():
    """List supported novel sites."""
    table = Table(title="Supported Sites")
    table.add_column("Name", style="cyan")
    table.add_column("Site")
    table.add_column("Hosts")
    table.add_column("Concurrency", justify="right")

    for adapter in DEFAULT_REGISTRY.list_sites():
        table.add_row(
            adapter.name,
            adapter.display_name,
            ", ".join(sorted(adapter.hosts)),
            str(adapter.max_concurrent),
        )

    console.print(table)


if __name__ == "__main__":
    app()
