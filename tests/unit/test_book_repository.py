"""
Unit tests for the catalogue store.
"""

import asyncio
import uuid
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from bookshelf.catalogue.categories import Category
from bookshelf.catalogue.query import (
    AllCollections,
    BookQuery,
    CallerDefaultCollection,
    OneCollection,
)
from bookshelf.exceptions import ConflictError, NotFoundError, TransientStoreError, ValidationError
from bookshelf.storage.book_repository import BookRepository, ReviewModel

pytestmark = pytest.mark.asyncio

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


async def add_book(repo, title="Untitled", collection_id=1, minutes=0, category=Category.FICTION,
                   author="Anon", isbn="9780000000000", book_id=None):
    return await repo.create(
        id=book_id or str(uuid.uuid4()),
        title=title,
        author=author,
        isbn=isbn,
        category=category,
        collection_id=collection_id,
        added_at=BASE_TIME + timedelta(minutes=minutes),
    )


class TestCrud:

    async def test_create_and_get(self, repository):
        created = await add_book(repository, title="Dune", category=Category.SCIENCE)

        fetched = await repository.get(created.id)
        assert fetched is not None
        assert fetched.title == "Dune"
        assert fetched.category == "Science"
        assert fetched.reviews == []

    async def test_get_missing(self, repository):
        assert await repository.get("missing") is None

    async def test_update_keeps_added_at_and_reviews(self, repository):
        book = await add_book(repository, title="Old")
        await repository.add_review(book.id, 4, "ok", author_user_id=3, author_username="reader")

        updated = await repository.update(book.id, title="New", collection_id=None, added_at=datetime(2000, 1, 1))

        assert updated.title == "New"
        assert updated.collection_id == book.collection_id
        assert updated.added_at == book.added_at
        assert len(updated.reviews) == 1

    async def test_update_missing(self, repository):
        assert await repository.update("missing", title="x") is None

    async def test_delete_removes_reviews(self, repository):
        book = await add_book(repository)
        await repository.add_review(book.id, 5, "", author_user_id=3, author_username="reader")

        assert await repository.delete(book.id) is True
        assert await repository.get(book.id) is None
        assert await repository.delete(book.id) is False

        async with repository.get_session() as session:
            stmt = select(func.count(ReviewModel.id)).where(ReviewModel.book_id == book.id)
            assert (await session.execute(stmt)).scalar_one() == 0

    async def test_count_in_collection(self, repository):
        await add_book(repository, collection_id=1)
        await add_book(repository, collection_id=1)
        await add_book(repository, collection_id=2)

        assert await repository.count_in_collection(1) == 2
        assert await repository.count_in_collection(3) == 0


class TestListing:

    async def test_newest_first_with_id_tie_break(self, repository):
        await add_book(repository, title="oldest", minutes=0)
        await add_book(repository, title="tie-a", minutes=5, book_id="aaaaaaaa")
        await add_book(repository, title="tie-b", minutes=5, book_id="bbbbbbbb")
        await add_book(repository, title="newest", minutes=10)

        page = await repository.list_books(BookQuery(scope=AllCollections()))

        assert [b.title for b in page.items] == ["newest", "tie-b", "tie-a", "oldest"]

    async def test_collection_scope(self, repository):
        await add_book(repository, title="mine", collection_id=1)
        await add_book(repository, title="theirs", collection_id=2)

        page = await repository.list_books(BookQuery(scope=OneCollection(1)))

        assert [b.title for b in page.items] == ["mine"]
        assert page.total == 1

    async def test_pages_partition_results(self, repository):
        for i in range(5):
            await add_book(repository, title=f"book-{i}", minutes=i)

        seen = []
        for page_number in (1, 2, 3):
            page = await repository.list_books(
                BookQuery(scope=AllCollections(), page=page_number, page_size=2)
            )
            assert page.total == 5
            assert page.total_pages == 3
            seen.extend(b.id for b in page.items)

        assert len(seen) == 5
        assert len(set(seen)) == 5

        again = await repository.list_books(BookQuery(scope=AllCollections(), page=2, page_size=2))
        assert [b.id for b in again.items] == seen[2:4]

    async def test_page_past_end(self, repository):
        await add_book(repository)

        page = await repository.list_books(BookQuery(scope=AllCollections(), page=4, page_size=20))

        assert page.items == []
        assert page.total == 1
        assert page.total_pages == 1
        assert page.page == 4

    async def test_category_filter(self, repository):
        await add_book(repository, title="Zen", category=Category.PHILOSOPHY)
        await add_book(repository, title="SICP", category=Category.PROGRAMMING)

        page = await repository.list_books(
            BookQuery(scope=AllCollections(), category=Category.PHILOSOPHY)
        )

        assert [b.title for b in page.items] == ["Zen"]

    async def test_text_matches_title_author_isbn(self, repository):
        await add_book(repository, title="Gödel, Escher, Bach", author="Hofstadter", isbn="9780465026562")
        await add_book(repository, title="Other", author="Someone", isbn="1111111111")

        for text in ("escher", "HOFSTADTER", "0465026"):
            page = await repository.list_books(BookQuery(scope=AllCollections(), search_text=text))
            assert [b.author for b in page.items] == ["Hofstadter"], text

    async def test_text_metacharacters_match_literally(self, repository):
        await add_book(repository, title="100% Pure")
        await add_book(repository, title="Pure Maths")
        await add_book(repository, title="snake_case")
        await add_book(repository, title="snakeXcase")

        percent = await repository.list_books(BookQuery(scope=AllCollections(), search_text="%"))
        underscore = await repository.list_books(BookQuery(scope=AllCollections(), search_text="e_c"))

        assert [b.title for b in percent.items] == ["100% Pure"]
        assert [b.title for b in underscore.items] == ["snake_case"]

    async def test_unresolved_scope_rejected(self, repository):
        with pytest.raises(TypeError):
            await repository.list_books(BookQuery(scope=CallerDefaultCollection(1)))


class TestReviews:

    async def test_append_in_order(self, repository):
        book = await add_book(repository)

        await repository.add_review(book.id, 5, "first", author_user_id=1, author_username="a")
        result = await repository.add_review(book.id, 2, None, author_user_id=2, author_username="b")

        assert [(r.username, r.rating, r.comment) for r in result.reviews] == [
            ("a", 5, "first"),
            ("b", 2, ""),
        ]

    async def test_missing_book(self, repository):
        with pytest.raises(NotFoundError):
            await repository.add_review("missing", 3, "", author_user_id=1, author_username="a")

    async def test_invalid_rating_not_stored(self, repository):
        book = await add_book(repository)

        with pytest.raises(ValidationError):
            await repository.add_review(book.id, 6, "", author_user_id=1, author_username="a")

        assert (await repository.get(book.id)).reviews == []

    async def test_concurrent_appends_both_kept(self, repository):
        book = await add_book(repository)

        await asyncio.gather(
            repository.add_review(book.id, 4, "one", author_user_id=1, author_username="a"),
            repository.add_review(book.id, 1, "two", author_user_id=2, author_username="b"),
        )

        reviews = (await repository.get(book.id)).reviews
        assert sorted(r.comment for r in reviews) == ["one", "two"]

    async def test_repeat_reviews_allowed_by_default(self, repository):
        book = await add_book(repository)

        await repository.add_review(book.id, 4, "", author_user_id=1, author_username="a")
        result = await repository.add_review(book.id, 5, "", author_user_id=1, author_username="a")

        assert len(result.reviews) == 2


@pytest_asyncio.fixture
async def strict_repository(settings, stores):
    repo = BookRepository(settings.catalogue_database_url, one_review_per_user=True)
    yield repo
    await repo.dispose()


class TestOneReviewPerUser:

    async def test_second_review_conflicts(self, strict_repository):
        book = await add_book(strict_repository)
        await strict_repository.add_review(book.id, 4, "", author_user_id=1, author_username="a")

        with pytest.raises(ConflictError):
            await strict_repository.add_review(book.id, 5, "", author_user_id=1, author_username="a")

        other = await strict_repository.add_review(book.id, 5, "", author_user_id=2, author_username="b")
        assert len(other.reviews) == 2


class TestStoreFailures:

    async def test_unreachable_store(self, tmp_path):
        repo = BookRepository(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'catalogue.db'}")
        try:
            with pytest.raises(TransientStoreError) as exc_info:
                await repo.create_tables()
            assert exc_info.value.status_code == 503
        finally:
            await repo.dispose()
