"""
API Schemas for Bookshelf

Pydantic models for request validation and response serialization:
- Auth models
- Book and review models
- Collection models

Design Decisions:
1. camelCase on the wire, snake_case in Python (alias generator)
2. Separate Request/Response: Clear distinction between inputs and outputs
3. Review rating/comment bounds are checked by the catalogue's validator,
   so the request model stays loose and the same rules apply everywhere
4. Derived values (review count, average rating) are computed here, never stored
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bookshelf.catalogue.categories import Category
from bookshelf.storage.book_repository import BookPage, StoredBook, StoredReview
from bookshelf.storage.collections import CollectionInfo


class ApiModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Auth Schemas
# =============================================================================

class RegisterRequest(ApiModel):
    """Registration request."""

    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=8, max_length=128)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"username": "reader42", "password": "a long passphrase"}
        }
    )


class LoginRequest(ApiModel):
    """Login request."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(ApiModel):
    """Logged-in user."""

    id: int
    username: str
    is_admin: bool = False


class SuccessResponse(ApiModel):
    success: bool = True


# =============================================================================
# Book Schemas
# =============================================================================

class BookWrite(ApiModel):
    """Book create/update request (admin)."""

    title: str = Field(..., min_length=1, max_length=200)
    author: str = Field(..., min_length=1, max_length=200)
    isbn: str = Field(..., min_length=3, max_length=30)
    category: Category
    collection_id: Optional[int] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "The Design of Everyday Things",
                "author": "Don Norman",
                "isbn": "9780465050659",
                "category": "Design",
                "collectionId": 1,
            }
        }
    )


class ReviewCreate(ApiModel):
    """Review request."""

    rating: int
    comment: Optional[str] = None


class ReviewResponse(ApiModel):
    """Review as embedded in a book."""

    id: int
    user_id: int
    username: str
    rating: int
    comment: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_stored(cls, review: StoredReview) -> "ReviewResponse":
        return cls(
            id=review.id,
            user_id=review.user_id,
            username=review.username,
            rating=review.rating,
            comment=review.comment,
            created_at=review.created_at,
        )


class BookResponse(ApiModel):
    """Book response model."""

    id: str
    title: str
    author: str
    isbn: str
    category: str
    collection_id: int
    added_at: Optional[datetime] = None
    reviews: list[ReviewResponse] = Field(default_factory=list)

    # Computed at presentation time
    review_count: int = 0
    average_rating: Optional[float] = None

    @classmethod
    def from_stored(cls, book: StoredBook) -> "BookResponse":
        ratings = [r.rating for r in book.reviews]
        return cls(
            id=book.id,
            title=book.title,
            author=book.author,
            isbn=book.isbn,
            category=book.category,
            collection_id=book.collection_id,
            added_at=book.added_at,
            reviews=[ReviewResponse.from_stored(r) for r in book.reviews],
            review_count=len(ratings),
            average_rating=round(sum(ratings) / len(ratings), 2) if ratings else None,
        )


class BookListResponse(ApiModel):
    """Paginated book list response."""

    books: list[BookResponse]
    page: int
    total_pages: int
    total: int

    @classmethod
    def from_page(cls, page: BookPage) -> "BookListResponse":
        return cls(
            books=[BookResponse.from_stored(b) for b in page.items],
            page=page.page,
            total_pages=page.total_pages,
            total=page.total,
        )


# =============================================================================
# Collection Schemas
# =============================================================================

class CollectionResponse(ApiModel):
    """Collection entry."""

    id: int
    name: str
    owner_user_id: int
    created_at: Optional[datetime] = None
    owner_username: Optional[str] = None

    @classmethod
    def from_info(cls, info: CollectionInfo) -> "CollectionResponse":
        return cls(
            id=info.id,
            name=info.name,
            owner_user_id=info.owner_user_id,
            created_at=info.created_at,
            owner_username=info.owner_username,
        )


# =============================================================================
# Error / Health
# =============================================================================

class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    code: str
    detail: Optional[str] = None
    timestamp: datetime

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Book not found",
                "code": "NOT_FOUND",
                "detail": "No Book with identifier '42' exists",
                "timestamp": "2025-01-20T12:00:00Z",
            }
        }
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
