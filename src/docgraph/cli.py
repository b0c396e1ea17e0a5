"""Command line interface for DocGraph."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from docgraph.config import AppConfig, PrerenderConfig
from docgraph.drivers.live import LiveDriver
from docgraph.drivers.site import SiteCrawlStats, prerender as run_prerender
from docgraph.exceptions import ConfigError
from docgraph.models import CrawlResult, Document
from docgraph.web.app import app as web_app, configure as configure_web


console = Console()
app = typer.Typer(help="DocGraph - crawl, cache and prerender a markdown document graph")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_config(base_url: Optional[str], site_config: Optional[Path]) -> AppConfig:
    try:
        if site_config is not None:
            config = AppConfig.from_site_config(site_config, base_url=base_url)
        else:
            config = AppConfig.from_env()
            if base_url:
                config.base_url = base_url
        config.validate()
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return config


async def _crawl(config: AppConfig) -> CrawlResult:
    driver = LiveDriver(config)
    try:
        return await driver.get_files()
    finally:
        await driver.aclose()


async def _fetch_one(config: AppConfig, path: str) -> Document:
    driver = LiveDriver(config)
    try:
        return await driver.get_file(path)
    finally:
        await driver.aclose()


@app.command()
def crawl(
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Site URL documents are fetched from"),
    site_config: Optional[Path] = typer.Option(None, "--config", help="Site JSON configuration"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Discover every document reachable from the configured roots."""
    _setup_logging(verbose)
    config = _load_config(base_url, site_config)

    console.print(f"Crawling [bold]{config.base_url}[/bold] from {len(config.roots())} roots...")
    result = asyncio.run(_crawl(config))

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Path")
    table.add_column("Title")
    table.add_column("Dates")
    table.add_column("Tags")
    table.add_column("Links", justify="right")
    table.add_column("Backlinks", justify="right")
    table.add_column("Status")

    for path in sorted(result.documents):
        document = result.documents[path]
        dates = document.flags.dates
        span = dates.start_date or ""
        if dates.end_date and dates.end_date != dates.start_date:
            span = f"{dates.start_date} ~ {dates.end_date}"
        table.add_row(
            path,
            document.flags.title,
            span,
            ", ".join(document.flags.tags),
            str(len(document.document_links())),
            str(len(result.backlinks.get(path, []))),
            "[red]error[/red]" if document.is_error else "ok",
        )

    console.print(table)
    errors = sum(1 for document in result.documents.values() if document.is_error)
    console.print(f"Documents: {len(result.documents)}, errors: {errors}")


@app.command()
def show(
    path: str = typer.Argument(..., help="Document path, e.g. /index.md"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Site URL documents are fetched from"),
    site_config: Optional[Path] = typer.Option(None, "--config", help="Site JSON configuration"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Fetch a single document and print its flags and links."""
    _setup_logging(verbose)
    config = _load_config(base_url, site_config)
    document = asyncio.run(_fetch_one(config, path))

    flags = document.flags
    console.print(f"[bold]{flags.title}[/bold] ({document.path})")
    if document.is_error:
        console.print(f"[red]{document.body}[/red]")
        raise typer.Exit(code=1)
    if flags.tags:
        console.print(f"Tags: {', '.join(flags.tags)}")
    if flags.dates.start_date:
        console.print(f"Dates: {flags.dates.start_date} - {flags.dates.end_date}")
    if flags.cover:
        console.print(f"Cover: {flags.cover}")
    for name, value in sorted(flags.extra.items()):
        console.print(f"{name}: {value}")

    if not document.links:
        console.print("[yellow]No links found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Target")
    table.add_column("Kind")
    for link in document.links.values():
        if link.is_image:
            kind = "image"
        elif link.is_markdown:
            kind = "document"
        elif link.is_external:
            kind = "external"
        else:
            kind = "asset"
        table.add_row(link.href, kind)
    console.print(table)


@app.command()
def prerender(
    host: Optional[str] = typer.Option(None, "--host", help="Running site to render (PRERENDER_HOST)"),
    out_dir: Optional[Path] = typer.Option(None, "--out-dir", help="Output directory (PRERENDER_DIR)"),
    index_path: Optional[str] = typer.Option(None, help="Path of the single page app on the host"),
    index_file: Optional[str] = typer.Option(None, help="Index document rendered as index.html"),
    category_file: Optional[str] = typer.Option(None, help="Category document"),
    roots: Optional[List[str]] = typer.Option(None, "--root", help="Additional document paths to render"),
    concurrency: int = typer.Option(8, help="Maximum pages loaded at once"),
    timeout_ms: int = typer.Option(30_000, help="Navigation timeout in milliseconds"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Render every reachable page with a headless browser into a static mirror."""
    _setup_logging(verbose)
    config = PrerenderConfig.from_env()
    if host:
        config.host = host
    if out_dir is not None:
        config.out_dir = out_dir
    if index_path:
        config.index_path = index_path
    if index_file:
        config.index_file = index_file
    if category_file:
        config.category_file = category_file
    config.extra_roots = list(roots or [])
    config.max_concurrency = concurrency
    config.timeout_ms = timeout_ms

    try:
        config.validate()
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc

    console.print(f"Rendering [bold]{config.index_url}[/bold] into [bold]{config.out_dir}[/bold]...")
    try:
        stats: SiteCrawlStats = asyncio.run(run_prerender(config))
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc
    console.print(f"Written: {len(stats.written)}, failed: {len(stats.failed)}")
    for path in stats.failed:
        console.print(f"[yellow]Skipped {path}[/yellow]")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Site URL documents are fetched from"),
    site_config: Optional[Path] = typer.Option(None, "--config", help="Site JSON configuration"),
) -> None:
    """Start the live document service."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    config = _load_config(base_url, site_config)
    configure_web(LiveDriver(config))

    console.print(f"Starting live service on http://{host}:{port} (documents: {config.base_url})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
