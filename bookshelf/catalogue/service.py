"""
Catalogue Service

Runs listing requests end to end: compose the query, resolve the caller's
default collection, then read one page from the catalogue store.
"""

from typing import Optional

from loguru import logger

from bookshelf.catalogue.query import (
    BookQuery,
    BookQueryParams,
    CallerDefaultCollection,
    FilterScope,
    Identity,
    OneCollection,
    ResolvedScope,
    compose_book_query,
)
from bookshelf.storage.book_repository import BookPage, BookRepository
from bookshelf.storage.collections import CollectionDirectory


class CatalogueService:
    """Scoped book listing for one request."""

    def __init__(self, repository: BookRepository, directory: CollectionDirectory):
        """
        Initialize service.

        Args:
            repository: Catalogue store
            directory: Collection directory bound to the request's accounts session
        """
        self.repository = repository
        self.directory = directory

    async def resolve_scope(self, scope: FilterScope) -> Optional[ResolvedScope]:
        """
        Replace CallerDefaultCollection with the caller's actual collection.

        Returns None when the caller owns no collection; the listing is then
        empty rather than an error.
        """
        if not isinstance(scope, CallerDefaultCollection):
            return scope

        collection_id = await self.directory.resolve_default_collection_id(scope.user_id)
        if collection_id is None:
            logger.warning(f"User {scope.user_id} owns no collection; returning empty listing")
            return None
        return OneCollection(collection_id)

    async def run(self, query: BookQuery) -> BookPage:
        scope = await self.resolve_scope(query.scope)
        if scope is None:
            return BookPage.empty(page=query.page, page_size=query.page_size)
        return await self.repository.list_books(query.with_scope(scope))

    async def list_books(self, identity: Identity, params: BookQueryParams) -> BookPage:
        """Compose and run a listing for ``identity``."""
        query = compose_book_query(identity, params)
        logger.debug(f"Listing books for user {identity.user_id}: {query}")
        return await self.run(query)
