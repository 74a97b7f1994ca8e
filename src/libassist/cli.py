"""Command line interface for the library assistant."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from libassist.config import ENV_PREFIX, AppConfig
from libassist.models import RESOURCE_TYPES, SOURCE_TYPES, SUPPORTED_LANGUAGES
from libassist.pipeline.language import detect_language
from libassist.pipeline.reply import (
    PipelineError,
    get_localized_error_message,
    log_pipeline_error,
)
from libassist.services import build_services, create_store
from libassist.sync.catalog import CatalogSync
from libassist.utils.files import iter_document_paths
from libassist.utils.text import truncate

LOGGER = logging.getLogger(__name__)
console = Console()
app = typer.Typer(help="libassist - multilingual library assistant")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _ensure_db_parent(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)


def _load_config(db: Optional[Path]) -> AppConfig:
    config = AppConfig.from_env()
    if db is not None:
        config.db_path = db
    return config


def _require_db(config: AppConfig) -> Path:
    resolved_db = config.resolve_db_path(Path.cwd())
    if config.store_backend == "sqlite" and not resolved_db.exists():
        raise typer.BadParameter(f"Database not found: {resolved_db}")
    return resolved_db


def _check_choice(value: str, choices: tuple[str, ...], name: str) -> str:
    if value not in choices:
        raise typer.BadParameter(f"{name} must be one of: {', '.join(choices)}")
    return value


@app.command()
def ingest(
    inputs: List[Path] = typer.Argument(
        ..., help="Files or directories with PDF/text documents.", resolve_path=True
    ),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    source_type: str = typer.Option("other", help="Source type recorded for every document"),
    language: str = typer.Option("uk", help="Document language (uk, ru, en)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Chunk, embed and store documents for retrieval."""
    _setup_logging(verbose)
    _check_choice(source_type, SOURCE_TYPES, "source-type")
    _check_choice(language, SUPPORTED_LANGUAGES, "language")

    config = _load_config(db)
    resolved_db = config.resolve_db_path(Path.cwd())
    _ensure_db_parent(resolved_db)

    paths = list(iter_document_paths(inputs))
    if not paths:
        console.print("[yellow]No documents found.[/yellow]")
        return

    services = build_services(config)
    console.print(f"Ingesting into [bold]{resolved_db}[/bold]...")
    processed = partial = failed = 0
    try:
        for path in paths:
            try:
                result = services.processor.ingest_path(
                    path, source_type=source_type, language=language
                )
            except ValueError as exc:
                console.print(f"[red]Skipped {path.name}: {exc}[/red]")
                failed += 1
                continue
            except Exception as exc:
                LOGGER.exception("Failed to process %s", path)
                console.print(f"[red]Failed {path.name}: {exc}[/red]")
                failed += 1
                continue
            if result.success:
                processed += 1
            elif result.chunks_created:
                partial += 1
            else:
                failed += 1
            console.print(f"{path.name}: {result.chunks_created} chunks")
    finally:
        services.close()

    console.print(f"Processed: {processed}, partial: {partial}, failed: {failed}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    language: str = typer.Option("uk", help="Language of the chunks to search"),
    top_k: int = typer.Option(5, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Execute a semantic search over ingested documents."""
    _setup_logging(verbose)
    config = _load_config(db)
    _require_db(config)

    services = build_services(config)
    try:
        results = services.searcher.semantic_search(
            query, language, top_k=top_k, threshold=config.similarity_threshold
        )
    finally:
        services.close()

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Document")
    table.add_column("Chunk")
    table.add_column("Snippet")

    for item in results:
        snippet = item.chunk.content.replace("\n", " ")
        table.add_row(
            f"{item.score:.4f}",
            item.chunk.document_title,
            str(item.chunk.chunk_index),
            truncate(snippet, 180),
        )

    console.print(table)


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question for the assistant"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    language: Optional[str] = typer.Option(None, help="Answer language; detected when omitted"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Ask a one-off question without a stored conversation."""
    _setup_logging(verbose)
    config = _load_config(db)
    _ensure_db_parent(config.resolve_db_path(Path.cwd()))
    if language is not None:
        _check_choice(language, SUPPORTED_LANGUAGES, "language")
    language = language or detect_language(question) or config.default_language

    services = build_services(config)
    try:
        answer = services.generator.generate_conversation_reply(question, language, None, None)
    except PipelineError as exc:
        log_pipeline_error(exc.cause or exc, conversation_id=None, user_id=None, prompt=question)
        console.print(f"[red]{get_localized_error_message(language)}[/red]")
        raise typer.Exit(code=1)
    finally:
        services.close()

    console.print(answer)


@app.command()
def sync(
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    url: Optional[str] = typer.Option(None, help="Catalog page to synchronise from"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Run one catalog synchronisation."""
    _setup_logging(verbose)
    config = _load_config(db)
    _ensure_db_parent(config.resolve_db_path(Path.cwd()))

    store = create_store(config)
    try:
        result = CatalogSync(
            store, url=url or config.catalog_url, timeout=config.catalog_timeout
        ).run_sync()
    finally:
        store.close()

    console.print(f"Synced: {result.synced}, errors: {len(result.errors)}")
    for error in result.errors:
        console.print(f"[red]{error}[/red]")
    if result.errors and not result.synced:
        raise typer.Exit(code=1)


@app.command()
def resources(
    query: Optional[str] = typer.Argument(None, help="Substring to look for in names and descriptions"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    type: Optional[str] = typer.Option(None, "--type", help="Restrict to one resource type"),
    language: str = typer.Option("uk", help="Language used for names"),
) -> None:
    """List known library resources."""
    config = _load_config(db)
    _require_db(config)
    if type is not None:
        _check_choice(type, RESOURCE_TYPES, "type")

    store = create_store(config)
    try:
        if query:
            found = [item for item in store.search_resources(query) if type in (None, item.type)]
        else:
            found = store.list_resources(type)
    finally:
        store.close()

    if not found:
        console.print("[yellow]No resources found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID")
    table.add_column("Type")
    table.add_column("Name")
    table.add_column("URL")
    for item in found:
        table.add_row(str(item.id), item.type, item.name_for(language), item.url or "")
    console.print(table)


@app.command()
def documents(
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """List ingested documents and their processing state."""
    config = _load_config(db)
    _require_db(config)

    store = create_store(config)
    try:
        records = store.list_document_metadata()
    finally:
        store.close()

    if not records:
        console.print("[yellow]No documents ingested yet.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Document")
    table.add_column("Title")
    table.add_column("Language")
    table.add_column("Chunks")
    table.add_column("Status")
    for record in records:
        status = "processed" if record.is_processed else (record.processing_error or "pending")
        table.add_row(
            record.document_id, record.title, record.language, str(record.total_chunks), status
        )
    console.print(table)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    sync_on_startup: bool = typer.Option(False, "--sync", help="Start the periodic catalog sync"),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    from libassist.web.app import app as web_app

    config = _load_config(db)
    resolved_db = config.resolve_db_path(Path.cwd())
    if config.store_backend == "sqlite" and not resolved_db.exists():
        console.print("[yellow]Warning: database not found, it will be created.[/yellow]")

    # The app reads its configuration from the environment.
    os.environ[f"{ENV_PREFIX}DB_PATH"] = str(resolved_db)
    if sync_on_startup:
        os.environ[f"{ENV_PREFIX}SYNC_ON_STARTUP"] = "true"

    console.print(f"Starting API on http://{host}:{port} (database: {resolved_db})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
