"""
CLI for the bulk import of the KBO open-data extracts.

Usage:
    # Full import into REG_DATABASE_URI
    python -m registry_hub.cli import --enterprise enterprise.csv \\
        --denomination denomination.csv --address address.csv \\
        --activity activity.csv --contact contact.csv --establishment establishment.csv

    # Count everything, write nothing
    python -m registry_hub.cli import ... --dry-run

    # Keep non-active entities too
    python -m registry_hub.cli import ... --no-active-only
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from registry_hub.config.settings import ConfigurationError, Settings, get_settings
from registry_hub.domain.bulk_import import (
    BulkImportService,
    ImportResult,
    ImportSources,
    LoggingImportObserver,
)
from registry_hub.io.loader import (
    BatchUpsertWriter,
    PostgresCompanyStore,
    create_store_engine,
)
from registry_hub.io.readers import DelimitedReaderError, iter_rows
from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="registry_hub.cli import",
        description="Import the KBO open-data extracts into the record store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    sources = parser.add_argument_group("sources")
    sources.add_argument("--enterprise", type=Path, required=True, help="enterprise.csv")
    sources.add_argument(
        "--denomination", type=Path, required=True, help="denomination.csv"
    )
    sources.add_argument("--address", type=Path, required=True, help="address.csv")
    sources.add_argument("--activity", type=Path, required=True, help="activity.csv")
    sources.add_argument("--contact", type=Path, help="contact.csv (optional)")
    sources.add_argument(
        "--establishment", type=Path, help="establishment.csv (optional)"
    )

    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Records per upsert chunk (default: REG_IMPORT_BATCH_SIZE)",
    )
    parser.add_argument(
        "--active-only",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Keep only active entities (default: on)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run every pass and report counts without writing to the store",
    )
    return parser


def print_import_summary(result: ImportResult) -> None:
    stats = result.stats
    print("\n" + "=" * 60)
    print("Registry Import Summary" + (" [DRY RUN]" if result.dry_run else ""))
    print("=" * 60)
    print(f"✅ Imported: {result.imported}")
    print(f"⏭️  Skipped (no name): {result.skipped}")
    print(f"🔑 Invalid keys: {stats.invalid_keys} (checksum: {stats.checksum_mismatches})")
    print(f"📇 Contacts merged: {result.contacts}")
    print(f"🏢 Branches counted: {stats.branches}")
    print(
        f"🏷️  Activity codes: {stats.activity_codes} across "
        f"{result.nace_codes} records ({stats.main_codes} main)"
    )
    for name, pass_stats in stats.passes.items():
        print(
            f"   - {name}: read {pass_stats.rows_read}, accepted "
            f"{pass_stats.rows_accepted}, filtered {pass_stats.rows_filtered}"
        )
    if stats.failed_batches:
        print(f"❌ Failed batches: {len(stats.failed_batches)}")
        for failure in stats.failed_batches[:10]:
            print(
                f"   - {failure['stage']} #{failure['batch_index']} "
                f"({failure['attempted']} rows): {failure['error']}"
            )
    print("=" * 60)


def run_import(args: argparse.Namespace, settings: Settings) -> ImportResult:
    sources = ImportSources(
        enterprise=args.enterprise,
        denomination=args.denomination,
        address=args.address,
        activity=args.activity,
        contact=args.contact,
        establishment=args.establishment,
    )
    batch_size = args.batch_size or settings.import_batch_size
    observer = LoggingImportObserver(every_chunks=settings.progress_log_every_chunks)

    def read_rows(path: Path, columns: List[str]):
        return iter_rows(path, columns, chunksize=settings.reader_chunk_rows)

    run_kwargs = dict(
        batch_size=batch_size,
        activity_batch_size=settings.activity_batch_size,
        active_only=args.active_only,
        dry_run=args.dry_run,
    )

    if args.dry_run:
        service = BulkImportService(read_rows, observer=observer)
        return service.run(sources, **run_kwargs)

    engine = create_store_engine(
        settings.require_database_uri(),
        pool_size=settings.db_pool_size,
        write_concurrency=settings.store_write_concurrency,
    )
    try:
        store = PostgresCompanyStore(
            engine, schema=settings.database_schema, table=settings.companies_table
        )
        with BatchUpsertWriter(store, concurrency=settings.store_write_concurrency) as writer:
            service = BulkImportService(read_rows, writer=writer, observer=observer)
            return service.run(sources, **run_kwargs)
    finally:
        engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.batch_size is not None and args.batch_size < 1:
        print("❌ --batch-size must be >= 1", file=sys.stderr)
        return 1

    try:
        settings = get_settings()
        result = run_import(args, settings)
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 1
    except (FileNotFoundError, DelimitedReaderError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print_import_summary(result)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
