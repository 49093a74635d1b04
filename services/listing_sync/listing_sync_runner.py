"""Bulk sync runner entry point.

Syncs listings from the listing source into the configured vector store,
using the assistant settings stored by the API server.

Usage:
    python -m services.listing_sync.listing_sync_runner            # all eligible listings
    python -m services.listing_sync.listing_sync_runner 12 34 56   # selected listings
"""

import argparse
import asyncio
import sys

from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.listing.ListingClientManager import ListingClientManager
from shared.clients.vector.VectorClientManager import VectorClientManager
from services.listing_sync.SyncService import SyncService
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.settings.SettingsManager import SettingsManager


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync directory listings into the vector store.")
    parser.add_argument("listing_ids", nargs="*", type=int, help="Listing ids to sync (default: all eligible listings).")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    """Run one bulk sync. Returns the process exit code."""
    args = parse_args(argv)
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    settings_manager = SettingsManager(helper_config=config, file_path=config.get_settings_file())

    listing_manager = ListingClientManager(helper_config=config)
    vector_manager = VectorClientManager(helper_config=config, settings_manager=settings_manager)
    embed_manager = EmbedClientManager(helper_config=config, settings_manager=settings_manager)

    try:
        sync_service = SyncService(
            helper_config=config,
            settings_manager=settings_manager,
            listing_manager=listing_manager,
            vector_manager=vector_manager,
            embed_manager=embed_manager,
        )
        result = await sync_service.do_batch_upsert(args.listing_ids)
        for error in result.errors:
            logger.error(error)
        logger.info(result.message, color="green" if result.status == "success" else "yellow")
        return 0 if result.status == "success" else 1
    finally:
        for manager in (listing_manager, vector_manager, embed_manager):
            await manager.close()


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
