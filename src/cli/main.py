"""
vocab: terminal front end for the vocabulary engine.

Commands:
    vocab sessions CATEGORY          - Sessions of a category, with status
    vocab progress [CATEGORY]        - Completion per category
    vocab rate ITEM_ID RATING        - Record a hard/medium/easy rating
    vocab due [-d RATING] [-l N]     - Items due for review
    vocab stats                      - Review statistics per rating
    vocab modes                      - Learning modes and the recommended one
    vocab study MODE [-s ID | -c ID] - Run a learning mode in the terminal
    vocab reset --yes                - Delete all reviews and completions

Usage:
    VOCAB_CORPUS_PATH=vocabulary.json vocab sessions greetings
    vocab study flashcard --session greetings_session_1
    vocab due --difficulty hard --limit 5
"""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from config import get_settings
from src.core.engine import VocabEngine, build_engine
from src.core.errors import EngineError, InvalidArgument
from src.review.scheduler import Rating

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="vocab",
    help="Vocabulary sessions, spaced review and learning modes",
    no_args_is_help=True,
)
console = Console()

RATING_STYLES = {
    Rating.HARD: "red",
    Rating.MEDIUM: "yellow",
    Rating.EASY: "green",
}


def _engine() -> VocabEngine:
    try:
        return build_engine(surface=console)
    except EngineError as e:
        console.print(f"[red]Could not start engine:[/red] {e}")
        raise typer.Exit(1)


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {error}")
    raise typer.Exit(1)


# =============================================================================
# Sessions & Progress
# =============================================================================


@app.command()
def sessions(
    category: str = typer.Argument(..., help="Category id"),
) -> None:
    """Show the study sessions of a category."""
    engine = _engine()
    try:
        catalog = engine.require_catalog()
        session_list = catalog.sessions_for(category)
        next_session = engine.progress.next_session(category)
    except EngineError as e:
        _fail(e)

    table = Table(title=f"Sessions: {category}")
    table.add_column("#", justify="right")
    table.add_column("Session")
    table.add_column("Words", justify="right")
    table.add_column("Tiers", justify="center")
    table.add_column("Primary", justify="center")
    table.add_column("Status")

    for session in session_list:
        if engine.progress.is_completed(session.id):
            status = "[green]done[/green]"
        elif next_session is not None and session.id == next_session.id:
            status = "[cyan]next[/cyan]"
        elif engine.progress.is_unlocked(session):
            status = "open"
        else:
            status = "[dim]locked[/dim]"
        table.add_row(
            str(session.number),
            session.id,
            str(session.size),
            session.tier_range,
            session.primary_tier,
            status,
        )

    console.print(table)


@app.command()
def progress(
    category: Optional[str] = typer.Argument(None, help="Category id (all categories if omitted)"),
) -> None:
    """Show session completion."""
    engine = _engine()
    try:
        catalog = engine.require_catalog()
        if category:
            rows = [engine.progress.progress_for(category)]
        else:
            rows = [engine.progress.progress_for(cid) for cid in catalog.corpus.category_ids()]
    except EngineError as e:
        _fail(e)

    table = Table(title="Progress")
    table.add_column("Category")
    table.add_column("Completed", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("%", justify="right")
    for row in rows:
        table.add_row(row.category_id, str(row.completed), str(row.total), f"{row.percentage:.1f}")
    console.print(table)

    if not category:
        overall = engine.progress.overall()
        recommended = catalog.partitioner.recommended_tier(overall["completed_sessions"])
        console.print(
            f"\n{overall['completed_sessions']}/{overall['total_sessions']} sessions, "
            f"{overall['words_studied']} words studied. Recommended level: [bold]{recommended}[/bold]"
        )


# =============================================================================
# Review
# =============================================================================


@app.command()
def rate(
    item_id: str = typer.Argument(..., help="Item id"),
    rating: str = typer.Argument(..., help="hard, medium or easy"),
) -> None:
    """Record a rating and schedule the next review."""
    engine = _engine()
    try:
        record = engine.scheduler.rate(item_id, rating)
    except EngineError as e:
        _fail(e)

    style = RATING_STYLES[record.rating]
    console.print(
        f"[{style}]{record.rating.value}[/{style}] {item_id}: next review "
        f"{record.next_due:%Y-%m-%d %H:%M} UTC (review #{record.review_count})"
    )


@app.command()
def due(
    difficulty: str = typer.Option("all", "--difficulty", "-d", help="all, hard, medium or easy"),
    limit: int = typer.Option(10, "--limit", "-l", help="Maximum items (0 for no limit)"),
) -> None:
    """List the items due for review, most overdue first."""
    engine = _engine()
    try:
        records = engine.scheduler.due_records(difficulty, limit)
    except EngineError as e:
        _fail(e)

    if not records:
        console.print("[green]Nothing due for review![/green]")
        return

    table = Table(title="Due for review")
    table.add_column("Item")
    table.add_column("Meaning")
    table.add_column("Rating")
    table.add_column("Due since")
    for record in records:
        item = (engine.corpus.find_item(record.item_id) if engine.corpus else None) or record.item
        style = RATING_STYLES[record.rating]
        table.add_row(
            item.text if item else record.item_id,
            item.translation if item else "",
            f"[{style}]{record.rating.value}[/{style}]",
            f"{record.next_due:%Y-%m-%d %H:%M}",
        )
    console.print(table)


@app.command()
def stats() -> None:
    """Review statistics per rating."""
    engine = _engine()
    buckets = engine.scheduler.stats()

    table = Table(title="Review statistics")
    table.add_column("Rating")
    table.add_column("Total", justify="right")
    table.add_column("Due", justify="right")
    table.add_column("Next 24h", justify="right")
    for rating, bucket in buckets.items():
        style = RATING_STYLES[rating]
        table.add_row(
            f"[{style}]{rating.value}[/{style}]",
            str(bucket.total),
            str(bucket.due),
            str(bucket.upcoming),
        )
    console.print(table)


@app.command()
def reset(
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete all review records and completed sessions."""
    if not confirm and not Confirm.ask(
        "Reset ALL reviews and session progress? This cannot be undone!", default=False
    ):
        raise typer.Exit(0)

    engine = _engine()
    try:
        removed = engine.scheduler.reset()
    except EngineError as e:
        _fail(e)
    console.print(
        f"[green]Reset {removed['word_reviews']} reviews and "
        f"{removed['completed_sessions']} completed sessions.[/green]"
    )


# =============================================================================
# Modes
# =============================================================================


@app.command()
def modes() -> None:
    """List learning modes."""
    engine = _engine()
    recommended = engine.manager.recommend_next()

    table = Table(title="Learning modes")
    table.add_column("Mode")
    table.add_column("Label")
    table.add_column("Enabled", justify="center")
    table.add_column("Description")
    for descriptor in engine.registry.list_all():
        marker = " [cyan](recommended)[/cyan]" if recommended and descriptor.id == recommended.id else ""
        table.add_row(
            f"{descriptor.id}{marker}",
            descriptor.label,
            "[green]yes[/green]" if descriptor.enabled else "[dim]no[/dim]",
            descriptor.description,
        )
    console.print(table)


async def _run_study(engine: VocabEngine, mode: str, session: str | None, category: str | None) -> None:
    manager = engine.manager
    if session:
        instance = await manager.start_session(mode, session)
    elif category and mode == "review":
        instance = await manager.start_category_review(category)
    elif category:
        instance = await manager.start(mode, {"category": category})
    else:
        instance = await manager.start(mode)

    try:
        await instance.interact()
    finally:
        await manager.stop()


@app.command()
def study(
    mode: str = typer.Argument(..., help="Mode id (flashcard, phrase, quiz, review, examine)"),
    session: Optional[str] = typer.Option(None, "--session", "-s", help="Session id"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category id"),
) -> None:
    """Run a learning mode in the terminal."""
    if session and category:
        _fail(InvalidArgument("Use either --session or --category, not both"))

    engine = _engine()
    try:
        asyncio.run(_run_study(engine, mode, session, category))
    except EngineError as e:
        _fail(e)
    except KeyboardInterrupt:
        console.print("\n[yellow]Study interrupted.[/yellow]")
        raise typer.Exit(130)

    if session and engine.progress.is_completed(session):
        console.print(Panel(f"Session {session} completed", border_style="green"))


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="1 MB", retention=5)

    app()


if __name__ == "__main__":
    main()
