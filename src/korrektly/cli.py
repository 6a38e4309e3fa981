"""Command line interface for Korrektly."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from korrektly.api.client import ApiError, Korrektly
from korrektly.api.types import (
    AutocompleteContentOnlyResponse,
    AutocompleteRequest,
    SearchRequest,
)
from korrektly.config import DATASET_ENV, AppConfig, ConfigError
from korrektly.index.indexer import Indexer
from korrektly.index.uploader import BatchUploader
from korrektly.utils.files import DiscoveryError
from korrektly.utils.text import truncate


console = Console()
app = typer.Typer(help="Korrektly - index documentation and query the search API")

SEARCH_TYPES = ("hybrid", "semantic", "fulltext")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_config(**overrides: object) -> AppConfig:
    config = AppConfig.from_env(**overrides)
    try:
        config.validate()
    except ConfigError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        if exc.missing:
            console.print("Please set these environment variables before running the command.")
        raise typer.Exit(code=1) from exc
    return config


def _client(config: AppConfig) -> Korrektly:
    return Korrektly(config.api_token or "", config.base_url)


@app.command()
def index(
    path: Path = typer.Option(..., "--path", "-p", help="Path to the documentation directory"),
    dataset: Optional[str] = typer.Option(
        None, "--dataset", "-d", help=f"Dataset ID (overrides {DATASET_ENV})"
    ),
    root_url: Optional[str] = typer.Option(
        None, "--root-url", "-r", help="Root URL for source URLs (e.g. https://docs.example.com)"
    ),
    openapi_spec: Optional[str] = typer.Option(
        None, "--openapi-spec", "-s", help="URL of an OpenAPI specification file"
    ),
    api_ref_path: str = typer.Option(
        AppConfig().api_ref_path, "--api-ref-path", "-a", help="API reference path prefix"
    ),
    batch_size: int = typer.Option(AppConfig().batch_size, help="Chunks per upload request"),
    max_retries: int = typer.Option(AppConfig().max_retries, help="Retries per failed batch"),
    upsert: bool = typer.Option(
        AppConfig().upsert, "--upsert/--no-upsert", help="Update existing chunks by tracking id"
    ),
    gitignore: bool = typer.Option(
        AppConfig().respect_gitignore, "--gitignore/--no-gitignore", help="Respect .gitignore"
    ),
    validate_urls: bool = typer.Option(
        AppConfig().validate_urls,
        "--validate-urls/--no-validate-urls",
        help="Drop chunks whose source URL is malformed",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index markdown files (and optionally an OpenAPI spec) into a dataset."""
    _setup_logging(verbose)
    config = _load_config(
        dataset_id=dataset,
        root_url=root_url,
        openapi_spec=openapi_spec,
        api_ref_path=api_ref_path,
        batch_size=batch_size,
        max_retries=max_retries,
        upsert=upsert,
        respect_gitignore=gitignore,
        validate_urls=validate_urls,
    )

    console.print(f"Dataset ID: [bold]{config.dataset_id}[/bold]")
    console.print(f"Docs path: [bold]{path}[/bold]")
    if config.root_url:
        console.print(f"Root URL: {config.root_url}")
    if config.openapi_spec:
        console.print(f"OpenAPI spec: {config.openapi_spec}")

    with _client(config) as client:
        uploader = BatchUploader(
            client,
            config.dataset_id or "",
            batch_size=config.batch_size,
            max_retries=config.max_retries,
            upsert=config.upsert,
        )
        indexer = Indexer(uploader, config, report=console.print)
        try:
            stats = indexer.index(path)
        except DiscoveryError as exc:
            console.print(f"[red]Error processing markdown files: {escape(str(exc))}[/red]")
            raise typer.Exit(code=1) from exc

    if stats.unique_chunks == 0:
        console.print("[yellow]No chunks to upload.[/yellow]")
        return

    upload = stats.upload
    console.print(
        f"Uploaded: {upload.chunks_uploaded}, failed: {upload.chunks_failed} "
        f"({upload.batches_sent} batches sent, {upload.batches_failed} skipped)"
    )
    console.print("[green]Done![/green]")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    dataset: Optional[str] = typer.Option(None, "--dataset", "-d", help="Dataset ID"),
    limit: int = typer.Option(10, help="Number of results to display"),
    search_type: str = typer.Option("hybrid", "--type", help="hybrid, semantic or fulltext"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Run a search against a dataset."""
    _setup_logging(verbose)
    if search_type not in SEARCH_TYPES:
        raise typer.BadParameter(f"Unknown search type: {search_type}")
    config = _load_config(dataset_id=dataset)

    try:
        request = SearchRequest(query=query, limit=limit, search_type=search_type)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    with _client(config) as client:
        try:
            response = client.search(config.dataset_id or "", request)
        except ApiError as exc:
            console.print(f"[red]{escape(str(exc))}[/red]")
            raise typer.Exit(code=1) from exc

    results = response.data.results
    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Heading")
    table.add_column("Source")
    table.add_column("Snippet")

    for result in results:
        heading = result.metadata_value("heading") or ""
        snippet = result.content.replace("\n", " ")
        table.add_row(
            f"{result.scores.hybrid:.4f}", str(heading), result.source_url or "", truncate(snippet, 180)
        )

    console.print(table)


@app.command()
def autocomplete(
    query: str = typer.Argument(..., help="Query prefix"),
    dataset: Optional[str] = typer.Option(None, "--dataset", "-d", help="Dataset ID"),
    limit: int = typer.Option(10, help="Number of suggestions"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show autocomplete suggestions for a query prefix."""
    _setup_logging(verbose)
    config = _load_config(dataset_id=dataset)

    try:
        request = AutocompleteRequest(query=query, limit=limit)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    with _client(config) as client:
        try:
            response = client.autocomplete(config.dataset_id or "", request)
        except ApiError as exc:
            console.print(f"[red]{escape(str(exc))}[/red]")
            raise typer.Exit(code=1) from exc

    if isinstance(response, AutocompleteContentOnlyResponse):
        suggestions = list(response.suggestions)
    else:
        suggestions = [suggestion.content for suggestion in response.data.suggestions]

    if not suggestions:
        console.print("[yellow]No suggestions.[/yellow]")
        return
    for suggestion in suggestions:
        console.print(f"- {suggestion}")
