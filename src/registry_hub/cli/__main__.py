"""
Unified CLI entry point for RegistryHub.

Usage:
    python -m registry_hub.cli <command> [options]

Available commands:
    import   - Bulk import of the KBO open-data extracts
    enrich   - Crawl the public portals for stale records
    migrate  - Create or upgrade the record store schema
"""

import argparse
import sys
from typing import List, Optional


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point with subcommand routing.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = argparse.ArgumentParser(
        prog="registry_hub.cli",
        description="RegistryHub CLI - registry import and enrichment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full import
  python -m registry_hub.cli import --enterprise enterprise.csv --denomination denomination.csv \\
      --address address.csv --activity activity.csv --contact contact.csv

  # Financial enrichment of the 50 stalest records
  python -m registry_hub.cli enrich --source financial --limit 50 --older-than 30

  # Schema
  python -m registry_hub.cli migrate
        """,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
        help="Command to execute",
    )

    # Delegated modules handle their own help
    subparsers.add_parser(
        "import",
        help="Bulk import of the registry extracts",
        description="Join the KBO extracts and upsert them into the record store",
        add_help=False,
    )
    subparsers.add_parser(
        "enrich",
        help="Enrich stale records from the public portals",
        description="Crawl financial or registry-detail portals",
        add_help=False,
    )
    migrate_parser = subparsers.add_parser(
        "migrate",
        help="Apply the record store schema migrations",
        description="Run alembic upgrade against REG_DATABASE_URI",
    )
    migrate_parser.add_argument(
        "--revision", default="head", help="Target revision (default: head)"
    )

    args, remaining_args = parser.parse_known_args(argv)

    if args.command == "import":
        from registry_hub.cli.import_registry import main as import_main

        return import_main(remaining_args)

    elif args.command == "enrich":
        from registry_hub.cli.enrich import main as enrich_main

        return enrich_main(remaining_args)

    elif args.command == "migrate":
        return _run_migrate(args.revision)

    else:
        parser.print_help()
        return 1


def _run_migrate(revision: str) -> int:
    from registry_hub.config.settings import ConfigurationError
    from registry_hub.io.schema.migration_runner import upgrade

    try:
        upgrade(revision=revision)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    print(f"✅ Record store schema at revision {revision}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
