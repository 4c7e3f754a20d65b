"""
CLI for portal enrichment of stored records.

Usage:
    # Financial snapshot for the 50 records enriched longest ago (or never)
    python -m registry_hub.cli enrich --source financial --limit 50 --older-than 30

    # Registry details for a single enterprise number
    python -m registry_hub.cli enrich --source registry --key "BE 0417.497.106"

    # Show the planned tasks without opening a browser
    python -m registry_hub.cli enrich --source registry --limit 10 --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from registry_hub.config.portal_schema import PortalsConfig, load_portals_config
from registry_hub.config.settings import ConfigurationError, Settings, get_settings
from registry_hub.domain.enrichment.crawler import EnrichmentCrawler
from registry_hub.domain.enrichment.models import (
    EnrichmentSource,
    EnrichmentTask,
    TaskState,
)
from registry_hub.domain.enrichment.observability import CrawlStats
from registry_hub.domain.enrichment.rate_limiter import SlidingWindowRateLimiter
from registry_hub.domain.enrichment.scheduler import EnrichmentScheduler
from registry_hub.domain.registry.enterprise_number import (
    EnterpriseNumberError,
    format_enterprise_number,
)
from registry_hub.infrastructure.enrichment.outcome_exporter import (
    write_problem_outcomes_csv,
)
from registry_hub.infrastructure.extraction import build_strategies
from registry_hub.io.connectors.portals import PlaywrightPortalFetcher
from registry_hub.io.loader import (
    EnrichmentWriter,
    PostgresCompanyStore,
    create_store_engine,
)
from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="registry_hub.cli enrich",
        description="Enrich stored records from the public portals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--source",
        required=True,
        choices=[source.value for source in EnrichmentSource],
        help="Portal to crawl",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--key", help="Single enterprise number, any common format")
    target.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum records to enrich (default: REG_ENRICHMENT_DEFAULT_LIMIT)",
    )
    parser.add_argument(
        "--older-than",
        type=int,
        default=None,
        metavar="DAYS",
        help="Re-enrich records stamped more than DAYS ago (default: REG_ENRICHMENT_STALE_DAYS)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the planned tasks without crawling",
    )
    return parser


def print_crawl_results(stats: CrawlStats, source: EnrichmentSource) -> None:
    print("\n" + "=" * 60)
    print(f"Enrichment Results ({source.value})")
    print("=" * 60)
    print(f"Total tasks: {stats.total}")
    print(f"✅ Success: {stats.count(TaskState.SUCCESS)}")
    print(f"📭 No data: {stats.count(TaskState.NO_DATA)}")
    print(f"⚠️  Extraction failed: {stats.count(TaskState.EXTRACTION_FAILED)}")
    print(f"❌ Failed: {stats.count(TaskState.FAILED)}")
    print(f"🔁 Retries: {stats.retries}")
    print("=" * 60)


def print_planned_tasks(tasks: List[EnrichmentTask]) -> None:
    print(f"\n[DRY RUN] Would enrich {len(tasks)} records")
    for task in tasks[:10]:
        print(f"  - {format_enterprise_number(task.enterprise_number)} ({task.source.value})")
    if len(tasks) > 10:
        print(f"  ... and {len(tasks) - 10} more records")


async def crawl(
    tasks: List[EnrichmentTask],
    portals: PortalsConfig,
    writer: EnrichmentWriter,
    settings: Settings,
) -> CrawlStats:
    rate_limiter = SlidingWindowRateLimiter(settings.crawler_max_requests_per_minute)
    async with PlaywrightPortalFetcher(
        portals,
        headless=settings.crawler_headless,
        navigation_timeout_ms=settings.crawler_navigation_timeout_ms,
        stealth=settings.crawler_stealth,
    ) as fetcher:
        crawler = EnrichmentCrawler(
            fetcher=fetcher,
            strategies=build_strategies(portals),
            writer=writer,
            rate_limiter=rate_limiter,
            max_concurrency=settings.crawler_max_concurrency,
            max_retries=settings.crawler_max_retries,
            jitter_seconds=(
                settings.crawler_jitter_min_seconds,
                settings.crawler_jitter_max_seconds,
            ),
            backoff_base_seconds=settings.crawler_backoff_base_seconds,
            task_timeout_seconds=settings.crawler_task_timeout_seconds,
        )
        return await crawler.run(tasks)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    source = EnrichmentSource(args.source)

    if args.limit is not None and args.limit < 1:
        print("❌ --limit must be >= 1", file=sys.stderr)
        return 1
    if args.older_than is not None and args.older_than < 0:
        print("❌ --older-than must be >= 0", file=sys.stderr)
        return 1

    try:
        settings = get_settings()
        portals = load_portals_config(settings.portals_config_path)
        portals.for_source(source.value)
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 1

    tasks: List[EnrichmentTask] = []
    if args.key:
        try:
            tasks = [EnrichmentScheduler.for_key(args.key, source)]
        except EnterpriseNumberError as e:
            print(f"❌ Invalid enterprise number: {e}", file=sys.stderr)
            return 1
        if args.dry_run:
            print_planned_tasks(tasks)
            return 0

    try:
        engine = create_store_engine(
            settings.require_database_uri(), pool_size=settings.db_pool_size
        )
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        store = PostgresCompanyStore(
            engine, schema=settings.database_schema, table=settings.companies_table
        )
        if not args.key:
            tasks = EnrichmentScheduler(store).select(
                source,
                older_than_days=(
                    args.older_than
                    if args.older_than is not None
                    else settings.enrichment_stale_days
                ),
                limit=args.limit or settings.enrichment_default_limit,
            )

        if not tasks:
            print("\n✅ No stale records found!")
            return 0

        if args.dry_run:
            print_planned_tasks(tasks)
            return 0

        print(f"\n🔄 Enriching {len(tasks)} records from the {source.value} portal...")
        stats = asyncio.run(crawl(tasks, portals, EnrichmentWriter(store), settings))
    finally:
        engine.dispose()

    print_crawl_results(stats, source)
    export_path = write_problem_outcomes_csv(
        stats, output_dir=settings.observability_log_dir
    )
    if export_path:
        print(f"📄 Problem outcomes exported to {export_path}")

    return 1 if stats.count(TaskState.FAILED) == stats.total else 0


if __name__ == "__main__":
    sys.exit(main())
