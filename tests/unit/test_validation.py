"""
Unit tests for review validation.
"""

import pytest

from bookshelf.catalogue.validation import validate_review
from bookshelf.exceptions import ValidationError


class TestRating:

    @pytest.mark.parametrize("rating", [1, 3, 5])
    def test_valid_ratings(self, rating):
        assert validate_review(rating, None) == (rating, "")

    @pytest.mark.parametrize("rating", [0, 6, -1])
    def test_out_of_range(self, rating):
        with pytest.raises(ValidationError) as exc_info:
            validate_review(rating, "fine")
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("rating", [None, "4", 4.5, True])
    def test_not_an_integer(self, rating):
        with pytest.raises(ValidationError):
            validate_review(rating, "")


class TestComment:

    def test_max_length_accepted(self):
        assert validate_review(4, "x" * 1000) == (4, "x" * 1000)

    def test_too_long(self):
        with pytest.raises(ValidationError):
            validate_review(4, "x" * 1001)

    def test_empty_comment_allowed(self):
        assert validate_review(2, "") == (2, "")
