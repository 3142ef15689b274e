"""
Arabic Search CLI - General purpose command-line interface.

Commands:
- init-db: Create the SQLite schema
- load: Import document snippets from JSON/JSONL and rebuild term statistics
- search: Rank documents against a query
- stats: Display corpus and cache statistics
- serve: Run the HTTP API
"""

# Load environment variables before any other imports
# This ensures production paths are available to config modules
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists (for production paths)
env_path = Path(__file__).parent.parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

# Standard library imports
import sys
import logging

# Third-party imports
import click
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from config.search_config import DATABASE_PATH, LOG_LEVEL, API_CONFIG, CONCURRENCY_CONFIG
from arabic_search.ingestion.database import init_database
from arabic_search.ingestion.document_loader import DocumentLoader
from arabic_search.search.models import SearchStatus
from arabic_search.search.search_engine import SearchEngine, SearchError

console = Console()

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
def cli():
    """Arabic Search CLI - Manage the document store and rank queries."""
    pass


# ============================================================================
# Database Commands
# ============================================================================

@cli.command(name='init-db')
@click.option('--db-path', '-d', default=DATABASE_PATH, help='Database path')
def init_db(db_path):
    """Initialize the database schema."""
    console.print("\n[bold cyan]Initializing Database[/bold cyan]\n")

    try:
        db = init_database(db_path)
        db.close()
        console.print(f"[green]✓[/green] Database initialized at: {db_path}")
        console.print("[green]✓[/green] Schema created successfully\n")
    except Exception as e:
        console.print(f"[red]Error initializing database: {e}[/red]\n")
        sys.exit(1)


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--db-path', '-d', default=DATABASE_PATH, help='Database path')
def load(path, db_path):
    """
    Import document snippets and rebuild term statistics.

    PATH is a JSON array or JSON Lines file of objects with file_id,
    page_index and text_snippet.
    """
    console.print(f"\n[bold cyan]Loading documents from:[/bold cyan] {path}\n")

    db = init_database(db_path)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            task = progress.add_task("Importing documents...", total=None)

            loader = DocumentLoader(db.connect())
            stats = loader.load_file(path)

            progress.remove_task(task)

    except ValueError as e:
        console.print(f"[red]Invalid input file: {e}[/red]\n")
        sys.exit(1)
    finally:
        db.close()

    table = Table(title="Import Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Documents Saved", str(stats['saved']))
    table.add_row("Records Skipped", str(stats['skipped']))
    table.add_row("Distinct Terms", str(stats['terms']))

    console.print(table)
    console.print()


# ============================================================================
# Search Commands
# ============================================================================

@cli.command()
@click.argument('query')
@click.option('--limit', '-l', default=None, type=int, help='Maximum results to return')
@click.option('--db-path', '-d', default=DATABASE_PATH, help='Database path')
@click.option('--scores', is_flag=True, help='Show individual signal scores')
def search(query, limit, db_path, scores):
    """
    Rank stored documents against a query.

    Example usage:
        arabic-search search "ما هو الصبر"
        arabic-search search "لماذا نصوم" --limit 5 --scores
    """
    console.print(f"\n[bold cyan]Searching for:[/bold cyan] '{query}'\n")

    engine = SearchEngine.from_database(db_path)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            task = progress.add_task("Ranking...", total=None)

            outcome = engine.rank(query, limit=limit)

            progress.remove_task(task)

    except (SearchError, ValueError) as e:
        console.print(f"[red]Search error: {e}[/red]\n")
        if LOG_LEVEL == "DEBUG":
            import traceback
            console.print(traceback.format_exc())
        sys.exit(1)
    finally:
        engine.close()

    if outcome.status == SearchStatus.NO_TERMS:
        console.print("[yellow]The query has no meaningful terms.[/yellow]\n")
        return

    console.print(
        f"[bold green]{len(outcome.results)} results[/bold green] "
        f"from {outcome.candidate_count} candidates "
        f"({outcome.duplicates_removed} duplicates removed)"
    )
    intents = outcome.query.intent.labels()
    if intents:
        console.print(f"Looking for: {', '.join(intents)}")
    console.print(f"Query time: {outcome.query_time_ms}ms\n")

    if not outcome.results:
        console.print("[yellow]No results found. Try rephrasing the query.[/yellow]\n")
        return

    for i, doc in enumerate(outcome.results, 1):
        console.print(f"[bold cyan]{i}. file {doc.file_id}, page {doc.page_index}[/bold cyan]")
        console.print(f"   [green]Score: {doc.re_rank_score:.4f}[/green]", end="")
        if doc.has_quotes:
            console.print(" [yellow](quotes)[/yellow]", end="")
        console.print()

        snippet = doc.text_snippet
        if len(snippet) > 150:
            snippet = snippet[:150] + "..."
        console.print(f"   {snippet}")

        if scores:
            breakdown = ", ".join(
                f"{name}={value:.3f}" for name, value in doc.scores().items()
                if isinstance(value, float) and value
            )
            console.print(f"   [dim]{breakdown}[/dim]")

        console.print()


# ============================================================================
# Statistics Commands
# ============================================================================

@cli.command()
@click.option('--db-path', '-d', default=DATABASE_PATH, help='Database path')
def stats(db_path):
    """Display corpus and cache statistics."""
    console.print("\n[bold cyan]Arabic Search Statistics[/bold cyan]\n")

    engine = SearchEngine.from_database(db_path)
    try:
        statistics = engine.get_stats()
    finally:
        engine.close()

    store = statistics.get('store', {})

    table = Table(title="Corpus Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Documents", str(store.get('documents', 0)))
    table.add_row("Source Files", str(store.get('files', 0)))
    table.add_row("Indexed Terms", str(store.get('term_statistics', 0)))
    table.add_row("Documents for IDF", str(statistics['total_documents']))

    console.print(table)
    console.print()


# ============================================================================
# Server Commands
# ============================================================================

@cli.command()
@click.option('--host', default=API_CONFIG['host'], help='Bind address')
@click.option('--port', '-p', default=API_CONFIG['port'], type=int, help='Port')
@click.option('--reload', is_flag=True, default=API_CONFIG['reload'], help='Reload on code changes')
def serve(host, port, reload):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    console.print(f"\n[bold cyan]Starting API on {host}:{port}[/bold cyan]\n")

    uvicorn.run(
        "arabic_search.api.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=CONCURRENCY_CONFIG['uvicorn_workers'],
        log_level=API_CONFIG['log_level']
    )


if __name__ == '__main__':
    cli()
