"""
Catalogue Module for Bookshelf

Query composition and rules for the book catalogue:
- Fixed category enumeration
- Collection scoping and pagination (query composer)
- Pluggable text search strategy
- Review validation
"""

from bookshelf.catalogue.categories import Category, CATEGORIES
from bookshelf.catalogue.query import (
    Identity,
    AllCollections,
    OneCollection,
    CallerDefaultCollection,
    FilterScope,
    BookQuery,
    BookQueryParams,
    compose_book_query,
    total_pages,
)
from bookshelf.catalogue.text_match import TextMatchStrategy, NaiveTextMatch
from bookshelf.catalogue.validation import validate_review

__all__ = [
    # Categories
    "Category",
    "CATEGORIES",
    # Query composer
    "Identity",
    "AllCollections",
    "OneCollection",
    "CallerDefaultCollection",
    "FilterScope",
    "BookQuery",
    "BookQueryParams",
    "compose_book_query",
    "total_pages",
    # Text search
    "TextMatchStrategy",
    "NaiveTextMatch",
    # Validation
    "validate_review",
]
