"""
Tests for sorted views over feedback records.
"""

import pytest
from datetime import datetime, timezone

from src.feedback.models import FeedbackRecord, SortMode
from src.feedback.sorting import compare_identifiers, derive


T = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def make(student_id, rating, record_id=None):
    return FeedbackRecord(id=record_id or f"id-{student_id}", student_id=student_id, rating=rating, timestamp=T)


def ids(records):
    return [r.student_id for r in records]


class TestIdentifierComparison:
    """Tests for natural, case-insensitive identifier comparison."""

    def test_numeric_aware(self):
        """Digit runs compare by value."""
        assert compare_identifiers("student2", "student10") < 0

    def test_case_insensitive(self):
        """Case does not affect ordering."""
        assert compare_identifiers("ALICE", "alice") == 0
        assert compare_identifiers("alice", "Bob") < 0

    def test_accent_insensitive(self):
        """Accents compare like their base letter."""
        assert compare_identifiers("émile", "emile") == 0
        assert compare_identifiers("émile", "fred") < 0

    def test_prefix_sorts_first(self):
        """A shorter prefix sorts before its extensions."""
        assert compare_identifiers("a", "a2") < 0

    def test_numbers_before_letters(self):
        """Numeric identifiers sort before alphabetic ones."""
        assert compare_identifiers("42", "abc") < 0

    def test_long_digit_runs(self):
        """Digit runs of any length compare by value."""
        huge = "9" * 5000
        assert compare_identifiers("s" + huge, "s1" + "0" * 5000) < 0
        assert compare_identifiers(huge, huge + "0") < 0
        assert compare_identifiers(huge, "a") < 0

    def test_leading_zeros_ignored(self):
        """Zero-padded numbers compare equal to unpadded ones."""
        assert compare_identifiers("a007", "a7") == 0
        assert compare_identifiers("a007", "a8") < 0

    def test_inner_punctuation_before_letters(self):
        """Punctuation inside an id sorts before letters."""
        assert compare_identifiers("a~b", "ab") < 0
        assert compare_identifiers("a-b", "aa") < 0
        assert compare_identifiers("a b", "a1") < 0


class TestDerive:
    """Tests for derive()."""

    def test_by_identifier_numeric(self):
        """student2 comes before student10."""
        records = [make("student10", 1), make("student2", 1)]
        assert ids(derive(records, SortMode.BY_IDENTIFIER)) == ["student2", "student10"]

    def test_by_rating_with_ties(self):
        """Rating descending, ties by identifier ascending."""
        records = [make("b", 3), make("a", 5), make("a2", 5)]
        assert ids(derive(records, SortMode.BY_RATING)) == ["a", "a2", "b"]

    def test_accepts_literal_mode(self):
        """Sort mode may be given as its stored literal."""
        records = [make("b", 5), make("a", 1)]
        assert ids(derive(records, "byRating")) == ["b", "a"]
        assert ids(derive(records, "byIdentifier")) == ["a", "b"]

    def test_default_mode_is_identifier(self):
        """No mode means identifier order."""
        records = [make("b", 5), make("a", 1)]
        assert ids(derive(records)) == ["a", "b"]

    def test_unknown_mode(self):
        """Unknown modes are rejected."""
        with pytest.raises(ValueError):
            derive([make("a", 1)], "byDate")

    def test_does_not_mutate_input(self):
        """The input list keeps its order."""
        records = [make("b", 1), make("a", 5)]
        derive(records, SortMode.BY_RATING)
        assert ids(records) == ["b", "a"]

    def test_independent_of_insertion_order(self):
        """Any permutation of the input gives the same output."""
        records = [make("Bob", 3), make("bob", 3), make("alice", 3), make("Carl7", 4), make("carl07", 4)]
        expected = derive(records, SortMode.BY_RATING)
        assert derive(list(reversed(records)), SortMode.BY_RATING) == expected
        assert derive(records[2:] + records[:2], SortMode.BY_RATING) == expected

    def test_empty(self):
        """Empty input gives an empty list."""
        assert derive([], SortMode.BY_RATING) == []

    def test_very_long_numeric_id(self):
        """Ids with thousands of digits still sort."""
        huge = "9" * 5000
        records = [make("a", 3), make(huge, 3), make("7", 3)]
        assert ids(derive(records, SortMode.BY_IDENTIFIER)) == ["7", huge, "a"]
        assert ids(derive(records, SortMode.BY_RATING)) == ["7", huge, "a"]
