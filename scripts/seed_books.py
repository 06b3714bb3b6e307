#!/usr/bin/env python3
"""
Bookshelf - Book seeding script

Fills the admin's default collection with random books and reviews. Run
seed_admin.py first; does nothing when the collection already has books.

Usage:
    python scripts/seed_books.py [count]
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

from bookshelf.api.dependencies import Settings, close_stores, get_session_factory, init_stores
from bookshelf.storage.seed import DEFAULT_BOOK_COUNT, seed_books


async def main(count: int) -> int:
    settings = Settings.from_env()
    services = await init_stores(settings)
    try:
        return await seed_books(get_session_factory(), services.book_repository, count=count)
    finally:
        await close_stores()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the admin collection with random books")
    parser.add_argument("count", nargs="?", type=int, default=DEFAULT_BOOK_COUNT, help="Number of books")
    args = parser.parse_args()

    try:
        created = asyncio.run(main(args.count))
    except RuntimeError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"Created {created} books")
