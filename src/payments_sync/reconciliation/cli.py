#!/usr/bin/env python3
"""Command-line interface for the provider mirror.

Usage:
    python -m payments_sync.reconciliation.cli synchronize
    python -m payments_sync.reconciliation.cli synchronize --sales-channel 2f0c1e...
    python -m payments_sync.reconciliation.cli refund --transaction-id 1234 --amount 10.50
"""

import argparse
import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..database import (
    Base,
    TransactionRepository,
    create_async_engine,
    get_async_session_factory,
    get_database_url,
)
from ..exceptions import ConfigurationError, ProviderError, RecordNotFound
from ..settings import SettingsService
from .configuration_sync import ConfigSyncEngine
from .refunds import RefundReconciler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_CREATED = 1
EXIT_ERROR = 2


@asynccontextmanager
async def open_session(database_url: Optional[str] = None) -> AsyncIterator[AsyncSession]:
    """Session on a private engine whose tables are created on first use."""
    engine = create_async_engine(database_url=database_url or get_database_url())
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with get_async_session_factory(engine)() as session:
            yield session
    finally:
        await engine.dispose()


async def synchronize_async(
    sales_channel_id: Optional[str] = None,
    database_url: Optional[str] = None,
) -> int:
    """Run one sync pass and print the result as JSON.

    Returns:
        Exit code (0 for success, 2 for configuration or provider errors).
    """
    async with open_session(database_url) as session:
        sync_engine = ConfigSyncEngine(session, SettingsService(session))
        try:
            result = await sync_engine.synchronize(sales_channel_id)
        except (ConfigurationError, ProviderError) as e:
            logger.error(f"Synchronization failed: {e}")
            return EXIT_ERROR

    print(json.dumps(result.model_dump(), indent=2))
    if result.failed:
        logger.warning(f"{len(result.failed)} configuration(s) could not be synchronized")
    return EXIT_OK


async def refund_async(
    transaction_id: int,
    amount: float,
    database_url: Optional[str] = None,
) -> int:
    """Refund ``amount`` of a mirrored transaction and print the refund as JSON."""
    async with open_session(database_url) as session:
        settings_service = SettingsService(session)
        try:
            mirror = await TransactionRepository(session).get_by_transaction_id(transaction_id)
            settings = await settings_service.get_settings(mirror.sales_channel_id)
            client = settings.get_api_client()
            try:
                transaction = await client.read_transaction(settings.space_id, transaction_id)
            finally:
                await client.close()
        except (RecordNotFound, ConfigurationError, ProviderError) as e:
            logger.error(f"Cannot refund transaction {transaction_id}: {e}")
            return EXIT_ERROR

        refund = await RefundReconciler(session, settings_service).create(transaction, amount)

    if refund is None:
        logger.warning(f"Refund for transaction {transaction_id} was not created")
        return EXIT_NOT_CREATED
    print(json.dumps(refund.to_payload(), indent=2))
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payments-sync",
        description="Keep the local payment method catalog and refunds in step with the provider.",
    )
    parser.add_argument(
        "--database-url",
        help="Database URL (default: DATABASE_URL or local SQLite)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    sync_parser = subparsers.add_parser(
        "synchronize",
        help="Mirror payment method configurations",
    )
    sync_parser.add_argument(
        "--sales-channel", "-c",
        dest="sales_channel_id",
        help="Sales channel whose provider settings apply (default: global settings)",
    )

    refund_parser = subparsers.add_parser(
        "refund",
        help="Refund a provider transaction",
    )
    refund_parser.add_argument(
        "--transaction-id", "-t",
        type=int,
        required=True,
        help="Provider transaction id",
    )
    refund_parser.add_argument(
        "--amount", "-a",
        type=float,
        required=True,
        help="Amount to refund in major units",
    )

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Optional list of command-line arguments (for testing).

    Returns:
        Exit code.
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.command == "synchronize":
        return asyncio.run(synchronize_async(
            sales_channel_id=parsed_args.sales_channel_id,
            database_url=parsed_args.database_url,
        ))

    if parsed_args.command == "refund":
        if parsed_args.amount <= 0:
            logger.error("Refund amount must be positive")
            return EXIT_ERROR
        return asyncio.run(refund_async(
            transaction_id=parsed_args.transaction_id,
            amount=parsed_args.amount,
            database_url=parsed_args.database_url,
        ))

    parser.print_help()
    return EXIT_NOT_CREATED


if __name__ == "__main__":
    sys.exit(main())
