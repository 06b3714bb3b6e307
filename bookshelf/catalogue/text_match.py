"""
Text search strategies for the book catalogue.

A strategy turns the caller's search text into a SQLAlchemy filter clause
over the book table. ``NaiveTextMatch`` is a case-insensitive substring
match on title, author and ISBN; an indexed full-text backend can replace
it without touching the query composer.
"""

from typing import Protocol

from sqlalchemy import ColumnElement, or_


class TextMatchStrategy(Protocol):
    """Builds a filter clause matching ``text`` against a book model."""

    def clause(self, model, text: str) -> ColumnElement[bool]:
        ...


class NaiveTextMatch:
    """
    Case-insensitive substring match over title OR author OR isbn.

    The search text is matched literally: ``%``, ``_`` and regex
    metacharacters have no special meaning.
    """

    fields: tuple[str, ...] = ("title", "author", "isbn")

    def clause(self, model, text: str) -> ColumnElement[bool]:
        return or_(
            *(
                getattr(model, name).icontains(text, autoescape=True)
                for name in self.fields
            )
        )
