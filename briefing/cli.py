"""
Command-line interface for the briefing pipeline.

Every command is one-shot and meant to be driven by an external scheduler
(cron, systemd timers, Kubernetes CronJobs).

Usage:
    briefing init-db                    # Create tables and seed sources
    briefing crawl --platform reddit    # Crawl enabled sources
    briefing translate                  # Translate pending items
    briefing sentiment                  # Tag pending items
    briefing digest --send              # Build and deliver today's digest
    briefing history --source-id 3      # Recent crawl runs of a source
    briefing health                     # Check dependencies
"""

import asyncio
import sys
from datetime import date
from typing import Any

import click

from briefing.observability.logging import bind_run_context, setup_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, debug: bool) -> None:
    """Briefing - crawl, enrich and summarize Japan IT career content."""
    setup_logging("DEBUG" if debug else None)
    bind_run_context(ctx.invoked_subcommand or "briefing")


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema and seed default sources."""
    from briefing.content.repository import ContentRepository
    from briefing.crawl.repository import CrawlHistoryRepository
    from briefing.digest.repository import DigestRepository
    from briefing.sources.service import SourcesService
    from briefing.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            sources = SourcesService(db)
            # Order matters: content and histories reference sources
            await sources.repository.create_table()
            await ContentRepository(db).create_table()
            await CrawlHistoryRepository(db).create_table()
            await DigestRepository(db).create_table()
            await sources.ensure_seeded()

            click.echo("Database initialized successfully")
        finally:
            await db.close()

    asyncio.run(run())


@main.command("seed-sources")
@click.option("--file", "path", default=None, type=click.Path(exists=True, dir_okay=False),
              help="Seed JSON file (default: bundled sources)")
def seed_sources(path: str | None) -> None:
    """Upsert sources from a JSON seed file."""
    from pathlib import Path

    from briefing.sources.service import SourcesService
    from briefing.storage.database import Database

    async def run():
        db = Database()
        await db.connect()
        try:
            count = await SourcesService(db).seed_from_json(Path(path) if path else None)
            click.echo(f"Seeded {count} sources")
        finally:
            await db.close()

    asyncio.run(run())


@main.group()
def sources() -> None:
    """List, enable and disable sources."""


@sources.command("list")
def sources_list() -> None:
    """Show every registered source."""
    from briefing.sources.repository import SourcesRepository
    from briefing.storage.database import Database

    async def run():
        db = Database()
        await db.connect()
        try:
            rows = await SourcesRepository(db).list_all()
        finally:
            await db.close()

        if not rows:
            click.echo("No sources registered. Run 'briefing init-db' first.")
            return

        for s in rows:
            state = click.style("on ", fg="green") if s.enabled else click.style("off", fg="red")
            last = s.last_crawled_at.isoformat(timespec="minutes") if s.last_crawled_at else "never"
            click.echo(f"  [{s.id:>3}] {state} {s.platform:<7} {s.category:<10} {s.name}  (last: {last})")

    asyncio.run(run())


def _set_source_enabled(source_id: int, enabled: bool) -> None:
    from briefing.sources.service import SourcesService
    from briefing.storage.database import Database

    async def run() -> bool:
        db = Database()
        await db.connect()
        try:
            service = SourcesService(db)
            if enabled:
                return await service.enable(source_id)
            return await service.disable(source_id)
        finally:
            await db.close()

    state = "enabled" if enabled else "disabled"
    if not asyncio.run(run()):
        click.echo(click.style(f"Source {source_id} not found or already {state}", fg="red"))
        sys.exit(1)
    click.echo(f"Source {source_id} {state}")


@sources.command("enable")
@click.argument("source_id", type=int)
def sources_enable(source_id: int) -> None:
    """Enable a source."""
    _set_source_enabled(source_id, True)


@sources.command("disable")
@click.argument("source_id", type=int)
def sources_disable(source_id: int) -> None:
    """Disable a source."""
    _set_source_enabled(source_id, False)


@main.command()
@click.option("--platform", default=None, type=click.Choice(["reddit", "qiita"]),
              help="Only crawl sources of this platform")
@click.option("--category", default=None,
              type=click.Choice(["community", "news_site", "job_site"]),
              help="Only crawl sources of this category")
@click.option("--source-id", default=None, type=int, help="Crawl a single source")
@click.option("--metrics/--no-metrics", default=False, help="Enable metrics server")
def crawl(platform: str | None, category: str | None, source_id: int | None, metrics: bool) -> None:
    """Crawl enabled sources once.

    Failed or partial runs raise a Telegram alert (one per batch label
    every ALERTS_COOLDOWN_MINUTES).

    The "already running" check only covers runs started by this process;
    it does not stop two separate `briefing crawl` invocations.
    """
    from briefing.alerts import AlertService
    from briefing.crawl.service import CrawlService
    from briefing.errors import CrawlAlreadyRunningError, SourceNotFoundError
    from briefing.ingestion import create_clients
    from briefing.observability.metrics import get_metrics
    from briefing.storage.database import Database

    if source_id is not None:
        label = f"source-{source_id}"
    else:
        label = platform or category or "all"

    async def run():
        if metrics:
            get_metrics().start_server()

        alerts = AlertService()
        db = Database()
        await db.connect()
        try:
            service = CrawlService(db, clients=create_clients())
            if source_id is not None:
                histories = [await service.trigger_source(source_id)]
            elif platform and not category:
                histories = await service.trigger_platform(platform)
            else:
                histories = await service.run_all_sources(category=category, platform=platform)
        except (SourceNotFoundError, CrawlAlreadyRunningError):
            raise
        except Exception as e:
            await alerts.report_crawl_error(label, e)
            raise
        finally:
            await db.close()

        await alerts.report_crawl(label, histories)

        click.echo(f"\nCrawl Results ({len(histories)} runs):")
        for h in histories:
            color = {"success": "green", "partial": "yellow"}.get(h.status.value, "red")
            click.echo(click.style(
                f"  source {h.source_id}: {h.status.value} "
                f"found={h.items_found} saved={h.items_saved} updated={h.items_updated}",
                fg=color,
            ))
            if h.error_message:
                click.echo(f"    {h.error_message}")

    try:
        asyncio.run(run())
    except (SourceNotFoundError, CrawlAlreadyRunningError) as e:
        click.echo(click.style(str(e), fg="red"))
        sys.exit(1)


@main.command()
@click.option("--source-id", default=None, type=int, help="Only runs of this source")
@click.option("--limit", default=20, type=click.IntRange(1, 500), help="Rows to show")
@click.option("--digests", is_flag=True, help="Show recent digests instead of crawl runs")
def history(source_id: int | None, limit: int, digests: bool) -> None:
    """Show recent crawl runs or digests."""
    from briefing.crawl.repository import CrawlHistoryRepository
    from briefing.digest.repository import DigestRepository
    from briefing.storage.database import Database

    async def run():
        db = Database()
        await db.connect()
        try:
            if digests:
                return await DigestRepository(db).list_recent(limit=limit)
            return await CrawlHistoryRepository(db).list_recent(source_id=source_id, limit=limit)
        finally:
            await db.close()

    rows = asyncio.run(run())
    if not rows:
        click.echo("No history recorded yet.")
        return

    if digests:
        for d in rows:
            sent = d.sent_at.isoformat(timespec="minutes") if d.sent_at else "-"
            click.echo(f"  {d.digest_date}  {d.status.value:<6} sent={sent}")
        return

    for h in rows:
        color = {"success": "green", "partial": "yellow", "running": "blue"}.get(h.status.value, "red")
        started = h.started_at.isoformat(timespec="minutes") if h.started_at else "-"
        click.echo(click.style(
            f"  [{h.source_id:>3}] {started} {h.status.value:<8} "
            f"found={h.items_found} saved={h.items_saved} updated={h.items_updated}",
            fg=color,
        ))
        if h.error_message:
            click.echo(f"        {h.error_message}")


def _run_enrichment(kind: str, batch_size: int | None) -> None:
    from briefing.enrichment import (
        EnrichmentGateway,
        SentimentOrchestrator,
        TranslationOrchestrator,
    )
    from briefing.llm import create_llm_client
    from briefing.storage.database import Database

    orchestrator_cls: Any = (
        TranslationOrchestrator if kind == "translation" else SentimentOrchestrator
    )

    async def run():
        db = Database()
        await db.connect()
        try:
            orchestrator = orchestrator_cls(EnrichmentGateway(db), create_llm_client())
            result = await orchestrator.process_pending(batch_size)
        finally:
            await db.close()

        click.echo(f"{kind.capitalize()}: processed={result.processed} failed={result.failed}")

    asyncio.run(run())


@main.command()
@click.option("--batch-size", default=None, type=int, help="Records per batch")
def translate(batch_size: int | None) -> None:
    """Translate pending items."""
    _run_enrichment("translation", batch_size)


@main.command()
@click.option("--batch-size", default=None, type=int, help="Records per batch")
def sentiment(batch_size: int | None) -> None:
    """Tag pending items with a sentiment."""
    _run_enrichment("sentiment", batch_size)


@main.command()
@click.option("--date", "target_date", default=None, type=click.DateTime(formats=["%Y-%m-%d"]),
              help="Date to summarize (default: today in the digest timezone)")
@click.option("--send/--no-send", default=False, help="Deliver the digest via Telegram")
@click.option("--force", is_flag=True, help="Regenerate even if already sent")
def digest(target_date: Any, send: bool, force: bool) -> None:
    """Generate the daily digest.

    Example:
        briefing digest --send                     # Today, delivered
        briefing digest --date 2024-05-01 --force  # Regenerate a past day
    """
    from briefing.digest import DigestService, TelegramNotifier
    from briefing.llm import create_llm_client
    from briefing.storage.database import Database

    async def run():
        db = Database()
        await db.connect()
        try:
            service = DigestService(db, create_llm_client(), notifier=TelegramNotifier())
            d: date = target_date.date() if target_date else service.today()
            result = await service.generate(d, skip_if_exists=not force, notify=send)
        finally:
            await db.close()

        if result.skipped:
            click.echo(f"Digest for {d} was already sent (use --force to regenerate)")
            return
        if result.failed:
            click.echo(click.style(result.error_message or "Digest failed", fg="red"))
            sys.exit(1)

        stats = result.stats
        click.echo(f"\nDigest {d} ({result.digest.status.value}):")
        click.echo(f"  Posts:    {stats.post_count}")
        click.echo(f"  Articles: {stats.article_count}")
        click.echo(f"  Listings: {stats.listing_count}")
        click.echo(f"  Notified: {result.notified}")

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check health of all dependencies."""
    import structlog
    logger = structlog.get_logger()

    from briefing.digest.config import TelegramConfig
    from briefing.ingestion.config import QiitaConfig, RedditConfig
    from briefing.llm.config import LLMConfig

    async def check():
        results: dict[str, bool] = {}

        try:
            from briefing.storage.database import Database
            db = Database()
            await db.connect()
            results["postgres"] = await db.health_check()
            await db.close()
        except Exception as e:
            results["postgres"] = False
            logger.error("Postgres health check failed", error=str(e))

        results["reddit_configured"] = RedditConfig().configured
        results["qiita_enabled"] = QiitaConfig().enabled
        results["llm_configured"] = LLMConfig().configured
        results["telegram_configured"] = TelegramConfig().configured

        click.echo("\nHealth Check Results:")
        click.echo("-" * 40)

        for name, status in results.items():
            icon = "✓" if status else "✗"
            color = "green" if status else "red"
            click.echo(click.style(f"  {icon} {name}: {status}", fg=color))

        click.echo("-" * 40)

        if results["postgres"]:
            click.echo(click.style("All core services healthy!", fg="green"))
            sys.exit(0)
        else:
            click.echo(click.style("Some services unhealthy!", fg="red"))
            sys.exit(1)

    asyncio.run(check())


if __name__ == "__main__":
    main()
