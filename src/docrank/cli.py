"""Command line interface for docrank."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

import typer
from rich.console import Console
from rich.table import Table

from docrank.config import AppConfig, Services, build_services
from docrank.index.indexer import IngestionError, is_url
from docrank.models import SearchRequest
from docrank.utils.files import iter_page_paths, read_page
from docrank.web.app import app as web_app


console = Console()
app = typer.Typer(help="docrank - hybrid search over technical documentation")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _source_label(item: str) -> str:
    if is_url(item):
        return urlparse(item).netloc or "web"
    return Path(item).stem


def _load_pages(services: Services, pages: List[Path], source: Optional[str]) -> int:
    if not pages:
        return 0
    paths = list(iter_page_paths(pages))
    if not paths:
        raise typer.BadParameter("No documentation pages (.html, .htm, .md, .txt) found.")
    total = 0
    for path in paths:
        chunks = services.indexer.ingest(read_page(path), source or path.stem, path.as_uri())
        total += len(chunks)
    return total


@app.command()
def ingest(
    inputs: List[str] = typer.Argument(..., help="Page files, directories or http(s) URLs."),
    source: Optional[str] = typer.Option(None, help="Source label (defaults to file stem or host)"),
    version: Optional[str] = typer.Option(None, help="Documentation version label"),
    provider: str = typer.Option(AppConfig().embedding_provider, help="Embeddings provider"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Parse pages into chunks and show what would be indexed."""
    _setup_logging(verbose)
    services = build_services(AppConfig(embedding_provider=provider, load_samples=False))

    items: List[tuple[str, str, str | None]] = []
    for item in inputs:
        if is_url(item):
            items.append((item, source or _source_label(item), None))
            continue
        paths = list(iter_page_paths([Path(item)]))
        if not paths:
            console.print(f"[yellow]No pages found in {item}.[/yellow]")
        for path in paths:
            items.append((read_page(path), source or path.stem, path.as_uri()))

    failed = 0
    for raw, label, url in items:
        try:
            services.indexer.ingest(raw, label, url, version=version)
        except IngestionError as exc:
            console.print(f"[red]{exc}[/red]")
            failed += 1

    chunks = sorted(services.index.get_all(), key=lambda chunk: chunk.id)
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Tags")
    for chunk in chunks:
        table.add_row(chunk.id, chunk.title[:60], chunk.category, ", ".join(chunk.tags))
    console.print(table)
    console.print(f"Chunks: {len(chunks)}, failed sources: {failed}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    page: List[Path] = typer.Option([], "--page", "-p", help="Extra page files or directories to index"),
    page_source: Optional[str] = typer.Option(None, help="Source label for --page inputs"),
    semantic: bool = typer.Option(False, "--semantic", help="Use embedding similarity"),
    keyword: bool = typer.Option(False, "--keyword", help="Use keyword scoring"),
    fuzzy: bool = typer.Option(False, "--fuzzy", help="Enable fuzzy keyword matching"),
    source: Optional[str] = typer.Option(None, help="Only chunks from this source"),
    version: Optional[str] = typer.Option(None, help="Only chunks with this version"),
    category: Optional[str] = typer.Option(None, help="Only chunks in this category"),
    tag: List[str] = typer.Option([], "--tag", help="Only chunks with any of these tags"),
    top_k: int = typer.Option(AppConfig().max_results, help="Number of results to display"),
    min_score: float = typer.Option(0.0, help="Minimum relevance score"),
    samples: bool = typer.Option(True, "--samples/--no-samples", help="Seed built-in documentation"),
    provider: str = typer.Option(AppConfig().embedding_provider, help="Embeddings provider"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Execute a semantic, keyword or hybrid search."""
    _setup_logging(verbose)
    services = build_services(AppConfig(embedding_provider=provider, load_samples=samples))
    _load_pages(services, page, page_source)

    request = SearchRequest(
        query=query,
        semantic_search=semantic,
        keyword_search=keyword,
        fuzzy_search=fuzzy,
        source=source,
        version=version,
        category=category,
        tags=tag or None,
        min_relevance_score=min_score,
        max_results=top_k,
    )
    result = services.engine.search(request)

    if as_json:
        typer.echo(json.dumps(result.to_dict(include_code_snippets=False), indent=2))
        return

    if not result.has_results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Snippet")

    for item in result.results:
        snippet = item.chunk.content_preview(180).replace("\n", " ")
        table.add_row(f"{item.relevance_score:.4f}", item.chunk.id, item.chunk.title, snippet)

    console.print(table)
    console.print(
        f"{result.total_results} results ({result.search_type}) in {result.search_time_ms:.1f} ms"
    )


@app.command()
def stats(
    page: List[Path] = typer.Option([], "--page", "-p", help="Extra page files or directories to index"),
    samples: bool = typer.Option(True, "--samples/--no-samples", help="Seed built-in documentation"),
) -> None:
    """Show index statistics."""
    services = build_services(AppConfig(load_samples=samples))
    _load_pages(services, page, None)
    typer.echo(json.dumps(services.engine.stats(), indent=2))


@app.command()
def update(
    source: List[str] = typer.Option([], "--source", "-s", help="Configured source to update (default: all)"),
    provider: str = typer.Option(AppConfig().embedding_provider, help="Embeddings provider"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Fetch and index the configured documentation sources."""
    _setup_logging(verbose)
    services = build_services(AppConfig(embedding_provider=provider, load_samples=False))
    try:
        stats = services.update_sources(source)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--source") from exc

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Source")
    table.add_column("Chunks", justify="right")
    table.add_column("Status")
    for name in stats.processed_sources:
        failed = name in stats.failed_sources
        count = "-" if failed else str(len(services.index.get_by_source(name)))
        table.add_row(name, count, "[red]failed[/red]" if failed else "ok")
    console.print(table)
    console.print(
        f"Ingested: {stats.ingested}, failed: {stats.failed}, chunks: {stats.chunks}"
    )


@app.command()
def sources(
    samples: bool = typer.Option(True, "--samples/--no-samples", help="Seed built-in documentation"),
) -> None:
    """List configured and indexed documentation sources."""
    services = build_services(AppConfig(load_samples=samples))
    typer.echo(json.dumps(services.list_sources(), indent=2))


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the JSON API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    console.print(f"Starting docrank API on http://{host}:{port}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
