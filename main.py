#!/usr/bin/env python3
"""
FeedPress - Feed Ingestion and Indexing Pipeline
================================================

Main application entry point with CLI interface for management and
manual operations.

Usage:
    python main.py --help                       # Show all commands
    python main.py check-config                 # Validate configuration
    python main.py init-db                      # Initialize database
    python main.py add-feed NAME URL AUTHOR     # Subscribe to a feed
    python main.py sweep                        # Process all active feeds now
    python main.py queue-status                 # Show indexing queue counters
"""

import sys
import asyncio
import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from feedpress.app import FeedPressApp
from feedpress.config.settings import get_settings
from feedpress.database.models import Category, FeedSource, FeedSourceSettings, RewriteStyle
from feedpress.database.schema import DatabaseSchema
from feedpress.utils.logging import configure_application_logging
from feedpress.utils.exceptions import FeedPressError
from feedpress.utils.validators import URLValidator

console = Console()
logger = logging.getLogger(__name__)


def _setup_logging(debug: bool) -> None:
    settings = get_settings()
    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size=settings.logging.max_file_size_mb * 1024 * 1024,
        backup_count=settings.logging.backup_count,
    )


def _build_app(ctx) -> FeedPressApp:
    if "app" not in ctx.obj:
        _setup_logging(ctx.obj.get("debug", False))
        ctx.obj["app"] = FeedPressApp(auto_drain=False)
    return ctx.obj["app"]


def _run(ctx, coro):
    """Run a coroutine and release the app afterwards."""
    app = ctx.obj.get("app")

    async def runner():
        try:
            return await coro
        finally:
            if app is not None:
                await app.indexing_queue.wait_idle()

    return asyncio.run(runner())


def _fail(message: str) -> None:
    console.print(f"[bold red]❌ {message}[/bold red]")
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """FeedPress - feed ingestion and search indexing pipeline."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
def check_config():
    """Validate configuration and environment variables."""
    console.print("[bold blue]🔧 Checking FeedPress Configuration[/bold blue]")

    try:
        settings = get_settings()
    except FeedPressError as e:
        _fail(f"Configuration error: {e.user_message}")

    table = Table(title="Configuration Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    table.add_row("Database", "✅ Valid", settings.database.path)
    table.add_row("Logging", "✅ Valid", f"Level: {settings.get_effective_log_level()}")

    providers = [p.value for p in settings.ai.provider_order if settings.ai.get_api_key(p)]
    table.add_row(
        "AI Providers",
        "✅ Valid" if providers else "⚠️ None",
        ", ".join(providers) or "Keyword classification only, no rewriting",
    )

    all_passed = True
    indexing = settings.indexing
    if indexing.enabled:
        try:
            info = indexing.get_service_account_info()
            ok = bool(info) and bool(indexing.site_url)
            details = f"site: {indexing.site_url or 'missing'}, project: {(info or {}).get('project_id', 'unknown')}"
        except FeedPressError as e:
            ok, details = False, e.message
        table.add_row("Indexing", "✅ Valid" if ok else "❌ Invalid", details)
        all_passed = all_passed and ok
    else:
        table.add_row("Indexing", "⏸️ Disabled", f"backend: {indexing.queue_backend.value}")

    table.add_row(
        "Scheduler", "✅ Valid",
        f"sweep every {settings.scheduler.sweep_interval_minutes} min, "
        f"reset at {settings.scheduler.daily_reset_hour:02d}:00 UTC",
    )
    console.print(table)

    if all_passed:
        console.print("[bold green]✅ All configuration checks passed![/bold green]")
    else:
        _fail("Configuration validation failed")


@cli.command()
def init_db():
    """Initialize database with schema."""
    console.print("[bold blue]🗄️ Initializing FeedPress Database[/bold blue]")

    try:
        settings = get_settings()
        schema = DatabaseSchema(settings.database.path)
        schema.create_tables()
        if not schema.verify_schema():
            _fail("Database schema verification failed")
    except FeedPressError as e:
        _fail(f"Database initialization error: {e}")

    console.print(f"[bold green]✅ Database initialized at {settings.database.path}[/bold green]")


@cli.command()
@click.argument('name')
@click.argument('feed_url')
@click.argument('author')
@click.option('--min-length', default=100, show_default=True, help='Minimum body length')
@click.option('--max-per-day', default=5, show_default=True, help='Daily publish quota')
@click.option('--style', type=click.Choice([s.value for s in RewriteStyle]), default='professional',
              show_default=True, help='AI rewrite style')
@click.option('--no-rewrite', is_flag=True, help='Disable AI rewriting for this feed')
@click.option('--no-image-required', is_flag=True, help='Publish items without a real image')
@click.option('--draft', is_flag=True, help='Save articles as drafts')
@click.option('--publish-delay', default=0, show_default=True, help='Minutes between publishes')
@click.pass_context
def add_feed(ctx, name, feed_url, author, min_length, max_per_day, style, no_rewrite,
             no_image_required, draft, publish_delay):
    """Subscribe to a feed."""
    app = _build_app(ctx)
    try:
        feed = FeedSource(
            name=name,
            feed_url=URLValidator.validate_feed_url(feed_url),
            default_author=author,
            min_content_length=min_length,
            max_posts_per_day=max_per_day,
            settings=FeedSourceSettings(
                enable_ai_rewrite=not no_rewrite,
                ai_rewrite_style=style,
                require_image=not no_image_required,
                auto_publish=not draft,
                publish_delay=publish_delay,
            ),
        )
        feed_id = app.feed_repository.create_feed(feed)
    except FeedPressError as e:
        _fail(e.user_message)
    except ValueError as e:
        _fail(f"Invalid feed settings: {e}")

    console.print(f"[bold green]✅ Added feed {feed_id}: {name}[/bold green]")


@cli.command()
@click.argument('name')
@click.option('--description', default='', help='Description shown to the classifier')
@click.option('--order', default=0, help='Display order')
@click.pass_context
def add_category(ctx, name, description, order):
    """Create an article category."""
    app = _build_app(ctx)
    try:
        category_id = app.category_repository.create_category(
            Category(name=name, description=description, display_order=order)
        )
    except FeedPressError as e:
        _fail(e.user_message)

    console.print(f"[bold green]✅ Added category {category_id}: {name}[/bold green]")


@cli.command()
@click.option('--show-log', is_flag=True, help='Show recent error log entries')
@click.pass_context
def list_feeds(ctx, show_log):
    """List subscribed feeds with their counters."""
    app = _build_app(ctx)
    feeds = app.feed_repository.get_all_feeds()
    if not feeds:
        console.print("[yellow]No feeds configured[/yellow]")
        return

    table = Table(title="Feeds")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Active")
    table.add_column("Today", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Last Fetched")
    table.add_column("Errors", justify="right")

    for feed in feeds:
        table.add_row(
            str(feed.id),
            feed.name,
            "✅" if feed.is_active else "⏸️",
            f"{feed.posts_published_today}/{feed.max_posts_per_day}",
            str(feed.total_posts_published),
            feed.last_fetched.strftime("%Y-%m-%d %H:%M") if feed.last_fetched else "never",
            str(len(feed.error_log)),
        )
    console.print(table)

    if show_log:
        for feed in feeds:
            for entry in feed.error_log[-5:]:
                console.print(f"  [dim]{feed.name} {entry.timestamp:%Y-%m-%d %H:%M}[/dim] {entry.type.value}: {entry.message}")


@cli.command()
@click.argument('feed_id', type=int)
@click.pass_context
def clear_feed_log(ctx, feed_id):
    """Clear a feed's error log."""
    app = _build_app(ctx)
    if app.admin.clear_feed_log(feed_id):
        console.print(f"[green]✅ Cleared error log of feed {feed_id}[/green]")
    else:
        _fail(f"Feed {feed_id} not found")


def _print_feed_results(results):
    table = Table(title="Sweep Results")
    table.add_column("Feed", style="cyan")
    table.add_column("Created", justify="right")
    table.add_column("Published", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Notes")

    for result in results:
        notes = result.get("error") or ("quota reached" if result.get("quotaReached") else "")
        if result.get("errors"):
            notes = f"{len(result['errors'])} item errors"
        table.add_row(
            str(result.get("feedName")),
            str(result.get("processed", 0)),
            str(result.get("published", 0)),
            str(result.get("skipped", 0)),
            notes,
        )
    console.print(table)


@cli.command()
@click.pass_context
def sweep(ctx):
    """Process every active feed now."""
    app = _build_app(ctx)
    console.print("[bold blue]🔄 Processing active feeds[/bold blue]")
    try:
        summary = _run(ctx, app.admin.sweep_all())
    except FeedPressError as e:
        _fail(f"Sweep halted: {e}")

    _print_feed_results(summary["results"])
    console.print(f"[bold green]✅ {summary['processed']} created, {summary['published']} published[/bold green]")


@cli.command()
@click.argument('feed_id', type=int)
@click.pass_context
def sweep_feed(ctx, feed_id):
    """Process one feed now."""
    app = _build_app(ctx)
    try:
        result = _run(ctx, app.admin.sweep_feed(feed_id))
    except FeedPressError as e:
        _fail(str(e))

    _print_feed_results([result])


@cli.command()
@click.pass_context
def daily_reset(ctx):
    """Reset daily publish counters whose day rolled over."""
    app = _build_app(ctx)
    reset = app.admin.daily_reset()
    console.print(f"[green]✅ Reset {reset} feeds[/green]")


@cli.command()
@click.argument('feed_url')
@click.pass_context
def test_feed(ctx, feed_url):
    """Fetch a feed and show sample items without publishing."""
    app = _build_app(ctx)
    summary = _run(ctx, app.admin.test_feed(feed_url))
    if not summary.success:
        _fail(f"Invalid feed or not accessible: {summary.error_message}")

    console.print(f"[bold green]✅ Feed is valid: {summary.title or feed_url} ({summary.item_count} items)[/bold green]")
    for sample in summary.sample_items:
        console.print(json.dumps(sample, indent=2, ensure_ascii=False))


@cli.command()
@click.argument('title')
@click.argument('content')
@click.pass_context
def test_category(ctx, title, content):
    """Classify a title and body against the active categories."""
    app = _build_app(ctx)
    try:
        result = _run(ctx, app.admin.test_category(title, content))
    except FeedPressError as e:
        _fail(e.user_message)

    console.print(
        f"[green]{result['category']}[/green] "
        f"(confidence {result['confidence'] * 100:.1f}%, method {result['method']})"
    )


@cli.command()
@click.pass_context
def queue_status(ctx):
    """Show indexing queue counters."""
    app = _build_app(ctx)
    status = _run(ctx, app.admin.get_queue_status())

    table = Table(title="Indexing Queue")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in status.items():
        table.add_row(key, str(value))
    console.print(table)


@cli.command()
@click.option('--limit', default=None, type=int, help='Number of items to show')
@click.pass_context
def queue_items(ctx, limit):
    """List the most recent indexing queue items."""
    app = _build_app(ctx)
    items = _run(ctx, app.admin.get_queue_items(limit))
    if not items:
        console.print("[yellow]Queue is empty[/yellow]")
        return

    table = Table(title="Indexing Queue Items")
    table.add_column("ID", style="cyan")
    table.add_column("Article")
    table.add_column("URL")
    table.add_column("Status")
    table.add_column("Retries", justify="right")
    table.add_column("Error")
    for item in items:
        error = item.get("errorType") or ""
        table.add_row(str(item["id"]), item["articleTitle"], item["url"], item["status"],
                      str(item["retries"]), error)
    console.print(table)


@cli.command()
@click.confirmation_option(prompt='Delete every indexing queue item?')
@click.pass_context
def queue_clear(ctx):
    """Delete every indexing queue item."""
    app = _build_app(ctx)
    removed = _run(ctx, app.admin.clear_queue())
    console.print(f"[green]✅ Removed {removed} items[/green]")


@cli.command()
@click.pass_context
def queue_retry(ctx):
    """Reset failed items to pending and drain the queue."""
    app = _build_app(ctx)

    async def retry_and_drain():
        reset = await app.admin.retry_failed()
        drained = await app.admin.drain_queue() if reset else None
        return reset, drained

    try:
        reset, drained = _run(ctx, retry_and_drain())
    except FeedPressError as e:
        _fail(f"Drain halted: {e}")

    console.print(f"[green]✅ Reset {reset} failed items[/green]")
    if drained:
        console.print(f"Completed {drained['completed']}, retried {drained['retried']}, failed {drained['failed']}")


@cli.command()
@click.pass_context
def queue_drain(ctx):
    """Process pending indexing queue items now."""
    app = _build_app(ctx)
    try:
        result = _run(ctx, app.admin.drain_queue())
    except FeedPressError as e:
        _fail(f"Drain halted: {e}")

    if result["alreadyRunning"]:
        console.print("[yellow]A drain is already running[/yellow]")
        return
    console.print(
        f"[green]✅ Completed {result['completed']}, retried {result['retried']}, "
        f"failed {result['failed']}[/green]"
    )
    for error in result["errors"]:
        console.print(f"  [red]{error}[/red]")


@cli.command()
@click.pass_context
def indexing_stats(ctx):
    """Show indexing totals and error classifications."""
    app = _build_app(ctx)
    stats = app.admin.get_indexing_stats()
    console.print_json(json.dumps(stats))


if __name__ == '__main__':
    cli()
