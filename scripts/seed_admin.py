#!/usr/bin/env python3
"""
Bookshelf - Admin seeding script

Creates the admin account (or resets its password) together with its
"Admin Collection".

Usage:
    python scripts/seed_admin.py [username] [password]
"""

import argparse
import asyncio

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

from bookshelf.api.dependencies import Settings, close_stores, get_session_factory, init_stores
from bookshelf.storage.seed import seed_admin


async def main(username: str, password: str) -> None:
    settings = Settings.from_env()
    await init_stores(settings)
    try:
        await seed_admin(get_session_factory(), username, password)
    finally:
        await close_stores()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or reset the Bookshelf admin user")
    parser.add_argument("username", nargs="?", default="admin", help="Admin username")
    parser.add_argument("password", nargs="?", default="password123", help="Admin password")
    args = parser.parse_args()

    asyncio.run(main(args.username, args.password))
    logger.info("Done")
