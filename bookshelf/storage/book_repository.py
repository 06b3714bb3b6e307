"""
Book Repository for Bookshelf

Catalogue store for books and their reviews using async SQLAlchemy:
- PostgreSQL for production
- SQLite for development/testing
- Filtered, sorted, paginated listing
- Atomic review append

Design Decisions:
1. Separate store: its own engine and database URL, independent of the
   accounts store. Books refer to collections by id only
2. Reviews are owned by their book: a child table ordered by insertion and
   deleted with the book
3. Append is a single INSERT of one review row, never a rewrite of the
   review list, so concurrent appends cannot overwrite each other
4. Stable ordering: added_at DESC, id DESC, so offset pagination neither
   repeats nor skips records while the data is unchanged
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Optional

from loguru import logger
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
    select,
)
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base, relationship

from bookshelf.catalogue.categories import Category
from bookshelf.catalogue.query import (
    BookQuery,
    CallerDefaultCollection,
    OneCollection,
    total_pages,
)
from bookshelf.catalogue.text_match import NaiveTextMatch, TextMatchStrategy
from bookshelf.catalogue.validation import validate_review
from bookshelf.exceptions import ConflictError, NotFoundError, TransientStoreError
from bookshelf.storage.models import is_transient_store_error, utcnow

CatalogueBase = declarative_base()


class BookModel(CatalogueBase):
    """SQLAlchemy model for books."""

    __tablename__ = "books"

    id = Column(String(36), primary_key=True)

    title = Column(String(200), nullable=False, index=True)
    author = Column(String(200), nullable=False, index=True)
    isbn = Column(String(30), nullable=False, index=True)
    category = Column(String(100), nullable=False, index=True)

    # Reference into the accounts store (no cross-database foreign key)
    collection_id = Column(Integer, nullable=False)

    added_at = Column(DateTime, default=utcnow, nullable=False)

    reviews = relationship(
        "ReviewModel",
        back_populates="book",
        order_by="ReviewModel.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_books_collection_added", "collection_id", "added_at"),
        Index("idx_books_added_id", "added_at", "id"),
    )


class ReviewModel(CatalogueBase):
    """SQLAlchemy model for book reviews."""

    __tablename__ = "book_reviews"

    # Autoincrement id doubles as the insertion order
    id = Column(Integer, primary_key=True, autoincrement=True)
    book_id = Column(String(36), ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)

    user_id = Column(Integer, nullable=False)
    # Snapshot of the author's name when the review was posted
    username = Column(String(50), nullable=False)

    rating = Column(Integer, nullable=False)
    comment = Column(String(1000), nullable=False, default="")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    book = relationship("BookModel", back_populates="reviews")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_book_reviews_rating"),
    )


@dataclass
class StoredReview:
    """Data class for review data transfer."""

    id: int
    user_id: int
    username: str
    rating: int
    comment: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, model: ReviewModel) -> "StoredReview":
        return cls(
            id=model.id,
            user_id=model.user_id,
            username=model.username,
            rating=model.rating,
            comment=model.comment or "",
            created_at=model.created_at,
        )


@dataclass
class StoredBook:
    """Data class for book data transfer."""

    id: str
    title: str
    author: str
    isbn: str
    category: str
    collection_id: int
    added_at: Optional[datetime] = None
    reviews: list[StoredReview] = field(default_factory=list)

    @classmethod
    def from_model(cls, model: BookModel) -> "StoredBook":
        """Create from SQLAlchemy model."""
        return cls(
            id=model.id,
            title=model.title,
            author=model.author,
            isbn=model.isbn,
            category=model.category,
            collection_id=model.collection_id,
            added_at=model.added_at,
            reviews=[StoredReview.from_model(r) for r in model.reviews],
        )


@dataclass
class BookPage:
    """One page of a catalogue listing."""

    items: list[StoredBook]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def empty(cls, page: int, page_size: int) -> "BookPage":
        return cls(items=[], total=0, page=page, page_size=page_size, total_pages=0)


class BookRepository:
    """
    Repository for book and review operations.

    Usage:
        repo = BookRepository("sqlite+aiosqlite:///./catalogue.db")
        await repo.create_tables()

        book = await repo.create(
            title="Structure and Interpretation of Computer Programs",
            author="Abelson & Sussman",
            isbn="9780262510875",
            category=Category.PROGRAMMING,
            collection_id=1,
        )
        page = await repo.list_books(BookQuery(scope=OneCollection(1)))
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        echo: bool = False,
        text_match: Optional[TextMatchStrategy] = None,
        one_review_per_user: bool = False,
    ):
        """
        Initialize repository.

        Args:
            database_url: SQLAlchemy async database URL
            echo: Log SQL statements
            text_match: Search strategy, NaiveTextMatch by default
            one_review_per_user: Reject a second review of a book by the same user
        """
        self.database_url = database_url or "sqlite+aiosqlite:///:memory:"
        self.engine = create_async_engine(self.database_url, echo=echo)
        self.SessionLocal = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self.text_match = text_match or NaiveTextMatch()
        self.one_review_per_user = one_review_per_user

        logger.info(f"BookRepository initialized: {self.database_url[:50]}...")

    @asynccontextmanager
    async def _store_errors(self) -> AsyncIterator[None]:
        """Report connection-level failures as TransientStoreError."""
        try:
            yield
        except DBAPIError as e:
            if not is_transient_store_error(e):
                raise
            logger.error(f"Catalogue store failure: {type(e).__name__}: {e}")
            raise TransientStoreError("Catalogue", detail=str(e.orig or e)) from e

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """Get database session."""
        async with self._store_errors():
            async with self.SessionLocal() as session:
                yield session

    async def create_tables(self) -> None:
        async with self._store_errors():
            async with self.engine.begin() as conn:
                await conn.run_sync(CatalogueBase.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    # =========================================================================
    # CRUD
    # =========================================================================

    async def create(
        self,
        id: str,
        title: str,
        author: str,
        isbn: str,
        category: Category,
        collection_id: int,
        added_at: Optional[datetime] = None,
    ) -> StoredBook:
        """
        Create a new book.

        Args:
            id: Unique book ID
            title: Book title
            author: Author
            isbn: ISBN as entered
            category: One of the fixed categories
            collection_id: Owning collection in the accounts store
            added_at: Creation time, now by default

        Returns:
            Created StoredBook
        """
        async with self.get_session() as session:
            book = BookModel(
                id=id,
                title=title,
                author=author,
                isbn=isbn,
                category=Category(category).value,
                collection_id=collection_id,
                added_at=added_at or utcnow(),
                reviews=[],
            )
            session.add(book)
            await session.commit()

            logger.info(f"Created book {id} in collection {collection_id}")
            return StoredBook.from_model(book)

    async def get(self, book_id: str) -> Optional[StoredBook]:
        async with self.get_session() as session:
            book = await session.get(BookModel, book_id)
            if book:
                return StoredBook.from_model(book)
            return None

    async def update(
        self,
        book_id: str,
        **updates,
    ) -> Optional[StoredBook]:
        """
        Update book fields.

        ``id``, ``added_at`` and reviews are never changed here; None values
        are skipped.

        Returns:
            Updated StoredBook or None
        """
        async with self.get_session() as session:
            book = await session.get(BookModel, book_id)
            if not book:
                return None

            for key, value in updates.items():
                if key in ("id", "added_at", "reviews") or value is None:
                    continue
                if key == "category":
                    value = Category(value).value
                if hasattr(book, key):
                    setattr(book, key, value)

            await session.commit()
            return StoredBook.from_model(book)

    async def delete(self, book_id: str) -> bool:
        """Delete a book and its reviews. Returns False if it did not exist."""
        async with self.get_session() as session:
            book = await session.get(BookModel, book_id)
            if not book:
                return False

            await session.delete(book)
            await session.commit()

            logger.info(f"Deleted book {book_id}")
            return True

    async def count_in_collection(self, collection_id: int) -> int:
        async with self.get_session() as session:
            stmt = select(func.count(BookModel.id)).where(BookModel.collection_id == collection_id)
            return (await session.execute(stmt)).scalar_one()

    # =========================================================================
    # Listing
    # =========================================================================

    def _conditions(self, query: BookQuery) -> list:
        scope = query.scope
        if isinstance(scope, CallerDefaultCollection):
            raise TypeError(
                "CallerDefaultCollection must be resolved to a collection "
                "before querying the catalogue"
            )

        conditions = []
        if isinstance(scope, OneCollection):
            conditions.append(BookModel.collection_id == scope.collection_id)
        if query.category is not None:
            conditions.append(BookModel.category == Category(query.category).value)
        if query.search_text:
            conditions.append(self.text_match.clause(BookModel, query.search_text))
        return conditions

    async def list_books(self, query: BookQuery) -> BookPage:
        """
        List books matching a resolved query, newest first.

        Args:
            query: Query whose scope is AllCollections or OneCollection

        Returns:
            BookPage with at most ``query.page_size`` items
        """
        conditions = self._conditions(query)

        count_stmt = select(func.count(BookModel.id))
        page_stmt = select(BookModel)
        if conditions:
            count_stmt = count_stmt.where(*conditions)
            page_stmt = page_stmt.where(*conditions)

        page_stmt = (
            page_stmt
            .order_by(BookModel.added_at.desc(), BookModel.id.desc())
            .offset(query.offset)
            .limit(query.page_size)
        )

        async with self.get_session() as session:
            total = (await session.execute(count_stmt)).scalar_one()
            books = (await session.execute(page_stmt)).scalars().all()

        return BookPage(
            items=[StoredBook.from_model(b) for b in books],
            total=total,
            page=query.page,
            page_size=query.page_size,
            total_pages=total_pages(total, query.page_size),
        )

    # =========================================================================
    # Reviews
    # =========================================================================

    async def add_review(
        self,
        book_id: str,
        rating,
        comment: Optional[str],
        author_user_id: int,
        author_username: str,
    ) -> StoredBook:
        """
        Append one review to a book.

        Args:
            book_id: Book to review
            rating: Integer star rating in [1, 5]
            comment: Optional text, at most 1000 characters
            author_user_id: Reviewer's user id
            author_username: Reviewer's current username, stored as a snapshot

        Returns:
            The book including the new review as its last entry

        Raises:
            ValidationError: Rating or comment out of bounds
            NotFoundError: No such book
            ConflictError: Repeat review while one_review_per_user is on
        """
        rating, comment = validate_review(rating, comment)

        async with self.get_session() as session:
            exists = (
                await session.execute(select(BookModel.id).where(BookModel.id == book_id))
            ).scalar_one_or_none()
            if exists is None:
                raise NotFoundError("Book", book_id)

            if self.one_review_per_user:
                stmt = select(func.count(ReviewModel.id)).where(
                    ReviewModel.book_id == book_id,
                    ReviewModel.user_id == author_user_id,
                )
                if (await session.execute(stmt)).scalar_one() > 0:
                    raise ConflictError("You have already reviewed this book")

            session.add(
                ReviewModel(
                    book_id=book_id,
                    user_id=author_user_id,
                    username=author_username,
                    rating=rating,
                    comment=comment,
                    created_at=utcnow(),
                )
            )
            await session.commit()

        logger.info(f"Review by user {author_user_id} added to book {book_id}")

        book = await self.get(book_id)
        if book is None:
            raise NotFoundError("Book", book_id)
        return book
