"""
Book API Routes

Scoped listing and search, reviews, and admin-only create/update/delete.
Every route needs a logged-in caller; scoping is decided by the query
composer, never here.
"""

import uuid
from dataclasses import replace
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from bookshelf.api.dependencies import (
    get_book_repository,
    get_catalogue_service,
    get_collection_directory,
    get_current_identity,
    require_admin,
)
from bookshelf.api.schemas import (
    BookListResponse,
    BookResponse,
    BookWrite,
    ErrorResponse,
    ReviewCreate,
    SuccessResponse,
)
from bookshelf.catalogue.categories import Category
from bookshelf.catalogue.query import BookQueryParams, Identity, fits_store_int
from bookshelf.catalogue.service import CatalogueService
from bookshelf.exceptions import NotFoundError, ValidationError
from bookshelf.storage.book_repository import BookRepository
from bookshelf.storage.collections import CollectionDirectory


router = APIRouter(prefix="/books", tags=["books"])


def _optional_int(value: Optional[str]) -> Optional[int]:
    """Parse an optional numeric query value; anything else counts as absent."""
    if value is None or not value.strip():
        return None
    try:
        number = int(value)
    except ValueError:
        return None
    return number if fits_store_int(number) else None


def _optional_category(value: Optional[str]) -> Optional[Category]:
    """A blank category is no filter; an unknown one is rejected."""
    if value is None or not value.strip():
        return None
    try:
        return Category(value.strip())
    except ValueError:
        choices = ", ".join(c.value for c in Category)
        raise ValidationError(f"Unknown category: {value}", detail=f"Expected one of {choices}") from None


def _listing_params(
    category: Optional[str] = Query(None, description="Filter by category"),
    page: Optional[str] = Query(None, description="Page number, 1-based"),
    limit: Optional[str] = Query(None, description="Page size, at most 50"),
    all_collections: Optional[str] = Query(None, alias="all", description="Admin: 'true' lists every collection"),
    collection_id: Optional[str] = Query(None, alias="collectionId", description="Admin: list one collection"),
) -> BookQueryParams:
    return BookQueryParams(
        category=_optional_category(category),
        view_all_collections=(all_collections or "").strip().lower() == "true",
        explicit_collection_id=_optional_int(collection_id),
        page=page,
        page_size=limit,
    )


# =============================================================================
# Listing
# =============================================================================

@router.get(
    "",
    response_model=BookListResponse,
    responses={401: {"model": ErrorResponse, "description": "Not logged in"}},
)
async def list_books(
    params: BookQueryParams = Depends(_listing_params),
    identity: Identity = Depends(get_current_identity),
    service: CatalogueService = Depends(get_catalogue_service),
):
    """List books in the caller's scope, newest first."""
    page = await service.list_books(identity, params)
    return BookListResponse.from_page(page)


@router.get(
    "/search",
    response_model=BookListResponse,
    responses={401: {"model": ErrorResponse, "description": "Not logged in"}},
)
async def search_books(
    q: Optional[str] = Query(None, description="Text matched against title, author and ISBN"),
    params: BookQueryParams = Depends(_listing_params),
    identity: Identity = Depends(get_current_identity),
    service: CatalogueService = Depends(get_catalogue_service),
):
    """Search books in the caller's scope."""
    logger.info(f"Search by user {identity.user_id}: q={q!r} category={params.category}")
    params = replace(params, search_text=q)
    page = await service.list_books(identity, params)
    return BookListResponse.from_page(page)


# =============================================================================
# Reviews
# =============================================================================

@router.post(
    "/{book_id}/reviews",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid rating or comment"},
        404: {"model": ErrorResponse, "description": "Book not found"},
        409: {"model": ErrorResponse, "description": "Already reviewed"},
    },
)
async def add_review(
    book_id: str,
    review: ReviewCreate,
    identity: Identity = Depends(get_current_identity),
    repo: BookRepository = Depends(get_book_repository),
):
    """Append a review by the caller; returns the updated book."""
    book = await repo.add_review(
        book_id,
        rating=review.rating,
        comment=review.comment,
        author_user_id=identity.user_id,
        author_username=identity.username,
    )
    return BookResponse.from_stored(book)


# =============================================================================
# Admin CRUD
# =============================================================================

async def _check_collection(directory: CollectionDirectory, collection_id: int) -> None:
    if await directory.get(collection_id) is None:
        raise NotFoundError("Collection", collection_id)


@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid book data"},
        403: {"model": ErrorResponse, "description": "Admin only"},
        404: {"model": ErrorResponse, "description": "Collection not found"},
    },
)
async def create_book(
    book: BookWrite,
    admin: Identity = Depends(require_admin),
    repo: BookRepository = Depends(get_book_repository),
    directory: CollectionDirectory = Depends(get_collection_directory),
):
    """
    Create a book.

    Without ``collectionId`` the book goes into the admin's own default
    collection.
    """
    collection_id = book.collection_id
    if collection_id is None:
        collection_id = await directory.resolve_default_collection_id(admin.user_id)
        if collection_id is None:
            raise ValidationError(
                "collectionId is required",
                detail="The current user owns no collection to default to",
            )
    else:
        await _check_collection(directory, collection_id)

    logger.info(f"Creating book: {book.title} by {book.author}")
    created = await repo.create(
        id=str(uuid.uuid4()),
        title=book.title,
        author=book.author,
        isbn=book.isbn,
        category=book.category,
        collection_id=collection_id,
    )
    return BookResponse.from_stored(created)


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Admin only"},
        404: {"model": ErrorResponse, "description": "Book or collection not found"},
    },
)
async def update_book(
    book_id: str,
    book: BookWrite,
    admin: Identity = Depends(require_admin),
    repo: BookRepository = Depends(get_book_repository),
    directory: CollectionDirectory = Depends(get_collection_directory),
):
    """Replace a book's metadata. Reviews and ``addedAt`` are kept."""
    if book.collection_id is not None:
        await _check_collection(directory, book.collection_id)

    updated = await repo.update(
        book_id,
        title=book.title,
        author=book.author,
        isbn=book.isbn,
        category=book.category,
        collection_id=book.collection_id,
    )
    if updated is None:
        raise NotFoundError("Book", book_id)

    logger.info(f"Book {book_id} updated by {admin.username}")
    return BookResponse.from_stored(updated)


@router.delete(
    "/{book_id}",
    response_model=SuccessResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Admin only"},
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
async def delete_book(
    book_id: str,
    admin: Identity = Depends(require_admin),
    repo: BookRepository = Depends(get_book_repository),
):
    """Delete a book and its reviews."""
    if not await repo.delete(book_id):
        raise NotFoundError("Book", book_id)
    return SuccessResponse()
