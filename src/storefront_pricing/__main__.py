"""
CLI entry point for catalog maintenance.

Usage:
    python -m storefront_pricing init-db
    python -m storefront_pricing sync
    python -m storefront_pricing verify [--url URL]
    python -m storefront_pricing missing [--import]
    python -m storefront_pricing recalculate
    python -m storefront_pricing exchange-rate [--force]

All commands accept ``--config PATH`` to point at a config.json.
"""

import argparse
import asyncio
import sys

from storefront_pricing.config.models import AppConfig
from storefront_pricing.config.settings import load_config_with_fallback
from storefront_pricing.db.engine import dispose_engines, get_catalog_engine
from storefront_pricing.db.init import ensure_database_directory, init_database
from storefront_pricing.db.repository import CatalogRepository, SettingsRepository
from storefront_pricing.db.session import make_session_maker
from storefront_pricing.services.sync_service import PriceSyncService
from storefront_pricing.shared.exceptions import BatchCommitError, StorefrontPricingError
from storefront_pricing.shared.logging_config import configure_structured_logging
from storefront_pricing.sources.exchange import ExchangeRateClient, sync_exchange_rate
from storefront_pricing.sources.feed import SourceFeedClient


def catalog_engine(config: AppConfig):
    return get_catalog_engine(config.storage.db_path, echo=config.storage.echo_sql)


def progress_callback(completed: int, total: int) -> None:
    """Print batch progress."""
    pct = (completed / total) * 100 if total else 100.0
    print(f"  {completed:,} / {total:,} items committed ({pct:.1f}%)")


def build_service(config: AppConfig) -> tuple[PriceSyncService, SettingsRepository]:
    session_maker = make_session_maker(catalog_engine(config))
    settings_repo = SettingsRepository(session_maker)
    service = PriceSyncService(
        CatalogRepository(session_maker, max_batch_size=config.storage.batch_size),
        settings_repo,
        SourceFeedClient(
            timeout_seconds=config.feed.timeout_seconds,
            delimiter=config.feed.delimiter,
        ),
        batch_size=config.storage.batch_size,
        currency_threshold=config.feed.foreign_currency_threshold,
        header_tokens=config.feed.header_token_set(),
    )
    return service, settings_repo


async def cmd_init_db(config: AppConfig, args: argparse.Namespace) -> int:
    ensure_database_directory(config.storage.db_path)
    await init_database(catalog_engine(config))
    print(f"Catalog database ready at {config.storage.db_path}")
    return 0


async def cmd_sync(config: AppConfig, args: argparse.Namespace) -> int:
    service, _ = build_service(config)
    print("\n=== Syncing prices from supplier feed ===\n")
    report = await service.sync_from_sheet(progress_callback=progress_callback)

    print("\n=== Sync Summary ===")
    print(f"  Rows read:     {report.rows:,}")
    print(f"  Updated:       {report.updated:,}")
    print(f"  Out of stock:  {report.deactivated:,}")
    print(f"  Missing:       {report.missing:,}")
    print(f"  Price errors:  {report.failed:,}")
    if report.failed_skus:
        print(f"    {', '.join(report.failed_skus)}")
    print()
    return 0


async def cmd_verify(config: AppConfig, args: argparse.Namespace) -> int:
    service, _ = build_service(config)
    verification = await service.verify_feed(args.url)

    print(f"\nFeed readable: {verification.row_count:,} rows")
    for label, row in (("First", verification.first_row), ("Last", verification.last_row)):
        if row is not None:
            print(f"  {label}: {row.external_id} | {row.raw_name} | {row.raw_price_text}")
    print()
    return 0


async def cmd_missing(config: AppConfig, args: argparse.Namespace) -> int:
    service, _ = build_service(config)
    missing = await service.find_missing()

    print(f"\n=== {len(missing)} feed products missing from the catalog ===\n")
    for product in missing:
        platform = product.platform_guess.value if product.platform_guess else "?"
        print(f"  {product.external_id:<16} {platform:<9} {product.raw_price:>10}  {product.name}")
    print()

    if args.do_import and missing:
        created = await service.import_missing(missing, progress_callback=progress_callback)
        print(f"\nImported {created:,} products\n")
    return 0


async def cmd_recalculate(config: AppConfig, args: argparse.Namespace) -> int:
    service, _ = build_service(config)
    print("\n=== Recalculating catalog prices ===\n")
    changed = await service.recalculate_prices(progress_callback=progress_callback)
    print(f"\n{changed:,} items repriced\n")
    return 0


async def cmd_exchange_rate(config: AppConfig, args: argparse.Namespace) -> int:
    _, settings_repo = build_service(config)
    client = ExchangeRateClient(
        base_url=config.exchange.base_url,
        timeout_seconds=config.exchange.timeout_seconds,
    )
    result = await sync_exchange_rate(settings_repo, client, force=args.force)
    if result.skipped:
        print("Automatic exchange rate sync is off (use --force)")
    elif result.updated:
        print(f"Exchange rate ({result.source}): {result.previous_rate} -> {result.rate}")
    else:
        print(f"Exchange rate ({result.source}) unchanged: {result.rate}")
    return 0


COMMANDS = {
    "init-db": cmd_init_db,
    "sync": cmd_sync,
    "verify": cmd_verify,
    "missing": cmd_missing,
    "recalculate": cmd_recalculate,
    "exchange-rate": cmd_exchange_rate,
}


async def main(args: argparse.Namespace) -> int:
    """
    Run the selected command.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    config = load_config_with_fallback(args.config)
    configure_structured_logging(level=config.logging.level)
    try:
        if args.command != "init-db":
            ensure_database_directory(config.storage.db_path)
            await init_database(catalog_engine(config))
        return await COMMANDS[args.command](config, args)
    except BatchCommitError as e:
        print(f"ERROR: {e}")
        print(f"  Batches 1-{e.batch_index} are committed; re-run to finish.")
        return 1
    except StorefrontPricingError as e:
        print(f"ERROR: {e}")
        return 1
    finally:
        await dispose_engines()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="storefront_pricing",
        description="Storefront catalog pricing maintenance",
    )
    parser.add_argument("--config", default=None, help="Path to config.json")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create the catalog database tables")
    subparsers.add_parser("sync", help="Sync prices and stock from the supplier feed")

    verify_parser = subparsers.add_parser(
        "verify", help="Check that the price feed is readable"
    )
    verify_parser.add_argument(
        "--url", default=None, help="Feed URL to check instead of the stored one"
    )

    missing_parser = subparsers.add_parser(
        "missing", help="List feed products missing from the catalog"
    )
    missing_parser.add_argument(
        "--import",
        dest="do_import",
        action="store_true",
        help="Create the missing products after listing them",
    )

    subparsers.add_parser("recalculate", help="Reprice the catalog under current settings")

    exchange_parser = subparsers.add_parser(
        "exchange-rate", help="Refresh the exchange rate from the quote API"
    )
    exchange_parser.add_argument(
        "--force",
        action="store_true",
        help="Sync even when automatic exchange rate sync is off",
    )

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(1)
    return args


def cli() -> None:
    """Console script entry point."""
    args = parse_args()
    sys.exit(asyncio.run(main(args)))


if __name__ == "__main__":
    cli()
