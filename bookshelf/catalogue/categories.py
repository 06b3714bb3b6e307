"""
Fixed book category enumeration.

Validation, API schemas and the seeding scripts all read from ``Category``
so the set offered to clients is the set the catalogue accepts.
"""

from enum import Enum


class Category(str, Enum):
    """Book category."""
    FICTION = "Fiction"
    PROGRAMMING = "Programming"
    PHILOSOPHY = "Philosophy"
    SELF_HELP = "Self Help"
    SCIENCE = "Science"
    DESIGN = "Design"
    HISTORY = "History"
    SYSTEMS = "Systems"


CATEGORIES: tuple[str, ...] = tuple(c.value for c in Category)
