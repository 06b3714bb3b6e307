"""
Review validation rules shared by the API and the catalogue.
"""

from typing import Optional

from bookshelf.exceptions import ValidationError

MIN_RATING = 1
MAX_RATING = 5
MAX_COMMENT_LENGTH = 1000


def validate_review(rating, comment: Optional[str]) -> tuple[int, str]:
    """
    Check a review's rating and comment.

    Args:
        rating: Star rating, an integer in [1, 5].
        comment: Optional free text of at most 1000 characters.

    Returns:
        ``(rating, comment)`` with a missing comment normalized to ``""``.

    Raises:
        ValidationError: If either value is out of bounds.
    """
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError(
            "Rating must be an integer",
            detail=f"Got {rating!r}",
        )
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}",
            detail=f"Got {rating}",
        )

    comment = comment or ""
    if len(comment) > MAX_COMMENT_LENGTH:
        raise ValidationError(
            f"Comment must be at most {MAX_COMMENT_LENGTH} characters",
            detail=f"Got {len(comment)} characters",
        )

    return rating, comment
