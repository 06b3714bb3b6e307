"""
Demo data for Bookshelf.

Used by ``scripts/seed_admin.py`` and ``scripts/seed_books.py``:
- An admin account with its own collection
- Random books (with a few reviews) in the admin's default collection
"""

import random
import uuid
from datetime import timedelta
from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from bookshelf.catalogue.categories import CATEGORIES
from bookshelf.storage.accounts import CredentialStore
from bookshelf.storage.book_repository import BookRepository
from bookshelf.storage.models import User, UserCollection, utcnow

ADMIN_COLLECTION_NAME = "Admin Collection"
DEFAULT_BOOK_COUNT = 15

_TITLE_OPENERS = [
    "The Art of", "A Short History of", "Notes on", "The Quiet", "Beyond",
    "Thinking in", "The Last", "Patterns of", "Letters on", "The Practice of",
]
_TITLE_SUBJECTS = [
    "Systems", "Rivers", "Design", "Silence", "Compilers", "Empire",
    "Attention", "Distributed Computing", "the Stoics", "Small Things",
]
_FIRST_NAMES = ["Ada", "Grace", "Alan", "Mary", "Italo", "Ursula", "Donald", "Simone", "Niklaus", "Toni"]
_LAST_NAMES = ["Hopper", "Turing", "Shelley", "Calvino", "Le Guin", "Knuth", "Weil", "Wirth", "Morrison", "Lovelace"]
_COMMENT_WORDS = [
    "clear", "dense", "rewarding", "slow", "brilliant", "uneven", "practical",
    "dated", "moving", "essential", "long", "surprising", "careful", "dry",
]


def random_isbn(rng: random.Random) -> str:
    """ISBN-13 with a valid check digit."""
    digits = [9, 7, 8] + [rng.randint(0, 9) for _ in range(9)]
    total = sum(d * (1 if i % 2 == 0 else 3) for i, d in enumerate(digits))
    digits.append((10 - total % 10) % 10)
    return "".join(str(d) for d in digits)


def random_comment(rng: random.Random) -> str:
    # Roughly 40% of seeded reviews have no comment
    if rng.random() >= 0.6:
        return ""
    words = rng.sample(_COMMENT_WORDS, rng.randint(4, min(12, len(_COMMENT_WORDS))))
    return " ".join(words).capitalize() + "."


async def seed_admin(
    session_factory: async_sessionmaker,
    username: str,
    password: str,
    collection_name: str = ADMIN_COLLECTION_NAME,
) -> User:
    """Create or reset the admin account and make sure it owns a collection."""
    async with session_factory() as session:
        user = await CredentialStore(session).upsert_admin(username, password, collection_name)
    logger.info(f"Seeded admin user: {username}")
    return user


async def _admin_default_collection(session_factory: async_sessionmaker) -> Optional[tuple[int, int, str]]:
    """(collection id, admin id, admin username) of the earliest admin-owned collection."""
    stmt = (
        select(UserCollection.id, User.id, User.username)
        .join(User, User.id == UserCollection.user_id)
        .where(User.is_admin.is_(True))
        .order_by(UserCollection.created_at.asc(), UserCollection.id.asc())
        .limit(1)
    )
    async with session_factory() as session:
        row = (await session.execute(stmt)).first()
    return tuple(row) if row is not None else None


async def seed_books(
    session_factory: async_sessionmaker,
    repository: BookRepository,
    count: int = DEFAULT_BOOK_COUNT,
    rng: Optional[random.Random] = None,
) -> int:
    """
    Fill the admin's default collection with random books.

    Each book gets zero to three reviews by the admin. Nothing is written
    when the collection already holds books.

    Returns:
        Number of books created.

    Raises:
        RuntimeError: No admin-owned collection exists yet.
    """
    rng = rng or random.Random()

    found = await _admin_default_collection(session_factory)
    if found is None:
        raise RuntimeError("No admin collection found, run seed_admin.py first")
    collection_id, admin_id, admin_username = found

    existing = await repository.count_in_collection(collection_id)
    if existing > 0:
        logger.info(f"Collection {collection_id} already has {existing} books, skipping")
        return 0

    now = utcnow()
    for _ in range(count):
        book = await repository.create(
            id=str(uuid.uuid4()),
            title=f"{rng.choice(_TITLE_OPENERS)} {rng.choice(_TITLE_SUBJECTS)}",
            author=f"{rng.choice(_FIRST_NAMES)} {rng.choice(_LAST_NAMES)}",
            isbn=random_isbn(rng),
            category=rng.choice(CATEGORIES),
            collection_id=collection_id,
            added_at=now - timedelta(seconds=rng.randint(0, 14 * 24 * 3600)),
        )
        for _ in range(rng.randint(0, 3)):
            await repository.add_review(
                book.id,
                rating=rng.randint(1, 5),
                comment=random_comment(rng),
                author_user_id=admin_id,
                author_username=admin_username,
            )

    logger.info(f"Seeded {count} books into collection {collection_id}")
    return count
