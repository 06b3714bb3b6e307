"""
API Routes for Bookshelf

Route modules:
- auth: Registration, login/logout, current user
- books: Scoped listing and search, reviews, admin CRUD
- collections: Collection listing
"""

from bookshelf.api.routes.auth import router as auth_router
from bookshelf.api.routes.books import router as books_router
from bookshelf.api.routes.collections import router as collections_router

__all__ = [
    "auth_router",
    "books_router",
    "collections_router",
]
