"""
Book Query Composer for Bookshelf

Turns a caller identity and raw request parameters into one canonical
``BookQuery`` consumed by the catalogue:

- Collection scope (who may see what)
- Text and category filters
- Pagination window

Design Decisions:
1. Tagged scope: ``AllCollections | OneCollection | CallerDefaultCollection``
   decided once here, so the catalogue never branches on caller role
2. Pure: no I/O. ``CallerDefaultCollection`` is resolved against the
   collection directory by ``resolve_scope`` before any catalogue call
3. Lenient paging: bad or out-of-range page numbers are clamped, not rejected
"""

import math
from dataclasses import dataclass
from typing import Optional, Union

from bookshelf.catalogue.categories import Category

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50

# Widest INTEGER the stores accept (signed 64-bit)
MAX_STORE_INT = 2 ** 63 - 1


@dataclass(frozen=True)
class Identity:
    """Authenticated caller."""

    user_id: int
    username: str
    is_admin: bool = False


# =============================================================================
# Scope
# =============================================================================

@dataclass(frozen=True)
class AllCollections:
    """No collection restriction (admin only)."""


@dataclass(frozen=True)
class OneCollection:
    """Restrict to a single collection."""

    collection_id: int


@dataclass(frozen=True)
class CallerDefaultCollection:
    """Restrict to the caller's default collection, not yet resolved."""

    user_id: int


FilterScope = Union[AllCollections, OneCollection, CallerDefaultCollection]
ResolvedScope = Union[AllCollections, OneCollection]


# =============================================================================
# Query
# =============================================================================

@dataclass(frozen=True)
class BookQueryParams:
    """Raw listing parameters as received from a request."""

    search_text: Optional[str] = None
    category: Optional[Category] = None
    view_all_collections: bool = False
    explicit_collection_id: Optional[int] = None
    page: Union[int, str, None] = None
    page_size: Union[int, str, None] = None


@dataclass(frozen=True)
class BookQuery:
    """Canonical catalogue query."""

    scope: FilterScope
    search_text: Optional[str] = None
    category: Optional[Category] = None
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def with_scope(self, scope: FilterScope) -> "BookQuery":
        return BookQuery(
            scope=scope,
            search_text=self.search_text,
            category=self.category,
            page=self.page,
            page_size=self.page_size,
        )


def _coerce_int(value, default: int) -> int:
    """Parse an integer request value, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def clamp_page(page, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    """Clamp to 1.. the last page whose offset still fits a store integer."""
    last = MAX_STORE_INT // page_size + 1
    return min(last, max(1, _coerce_int(page, DEFAULT_PAGE)))


def clamp_page_size(page_size) -> int:
    return min(MAX_PAGE_SIZE, max(1, _coerce_int(page_size, DEFAULT_PAGE_SIZE)))


def fits_store_int(value: int) -> bool:
    return -MAX_STORE_INT - 1 <= value <= MAX_STORE_INT


def total_pages(total: int, page_size: int) -> int:
    """Number of pages needed for ``total`` records (0 when empty)."""
    if total <= 0:
        return 0
    return math.ceil(total / page_size)


def compose_scope(identity: Identity, params: BookQueryParams) -> FilterScope:
    """
    Decide which collections the caller may list.

    Precedence:
        1. admin + view_all_collections -> AllCollections
        2. admin + explicit_collection_id -> OneCollection
        3. anyone else -> CallerDefaultCollection
    """
    if identity.is_admin and params.view_all_collections:
        return AllCollections()
    if identity.is_admin and params.explicit_collection_id is not None:
        return OneCollection(params.explicit_collection_id)
    return CallerDefaultCollection(identity.user_id)


def compose_book_query(identity: Identity, params: BookQueryParams) -> BookQuery:
    """
    Build the canonical query for a listing or search request.

    Args:
        identity: Authenticated caller.
        params: Raw request parameters.

    Returns:
        BookQuery with scope, filters and a clamped pagination window.
    """
    search_text = (params.search_text or "").strip() or None
    page_size = clamp_page_size(params.page_size)

    return BookQuery(
        scope=compose_scope(identity, params),
        search_text=search_text,
        category=params.category,
        page=clamp_page(params.page, page_size),
        page_size=page_size,
    )
