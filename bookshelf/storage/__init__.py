"""
Storage Module for Bookshelf

Two independent stores:
- Accounts database: users, sessions, collections
- Catalogue database: books with their reviews
"""

from bookshelf.storage.models import (
    Base,
    User,
    UserCollection,
    UserSession,
)
from bookshelf.storage.accounts import CredentialStore
from bookshelf.storage.collections import (
    CollectionDirectory,
    CollectionInfo,
)
from bookshelf.storage.book_repository import (
    BookRepository,
    StoredBook,
    StoredReview,
    BookPage,
)

__all__ = [
    # Accounts
    "Base",
    "User",
    "UserCollection",
    "UserSession",
    "CredentialStore",
    # Collections
    "CollectionDirectory",
    "CollectionInfo",
    # Catalogue
    "BookRepository",
    "StoredBook",
    "StoredReview",
    "BookPage",
]
