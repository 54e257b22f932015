"""
Tests for CSV export.
"""

import csv
import io
import re
import pytest
from datetime import datetime, timedelta, timezone

from src.feedback.errors import EmptyInputError
from src.feedback.export import (
    CSV_HEADER,
    EXPORT_FILENAME,
    EXPORT_MEDIA_TYPE,
    format_offset,
    format_timestamp,
    serialize,
)
from src.feedback.models import FeedbackRecord, SortMode
from src.feedback.sorting import derive


T = datetime(2024, 1, 15, 10, 0, 5, tzinfo=timezone.utc)


def make(student_id, rating, timestamp=T):
    return FeedbackRecord(id=f"id-{student_id}", student_id=student_id, rating=rating, timestamp=timestamp)


class TestFormatTimestamp:
    """Tests for timestamp rendering."""

    def test_utc(self):
        """Zero offset renders with a plus sign."""
        assert format_timestamp(T, timezone.utc) == "2024-01-15T10:00:05+00:00"

    def test_positive_offset(self):
        """Local civil time plus offset."""
        tz = timezone(timedelta(hours=5, minutes=30))
        assert format_timestamp(T, tz) == "2024-01-15T15:30:05+05:30"

    def test_negative_offset(self):
        """Negative offsets use a minus sign and padded fields."""
        tz = timezone(-timedelta(hours=3, minutes=30))
        assert format_timestamp(T, tz) == "2024-01-15T06:30:05-03:30"

    def test_crosses_date_line(self):
        """Conversion can move the calendar date."""
        tz = timezone(-timedelta(hours=11))
        assert format_timestamp(T, tz) == "2024-01-14T23:00:05-11:00"

    def test_local_zone_by_default(self):
        """Without a zone the machine's local offset is used."""
        text = format_timestamp(T)
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{2}:\d{2}", text)
        assert text == format_timestamp(T, T.astimezone().tzinfo)

    def test_format_offset(self):
        """Offset sign and padding."""
        assert format_offset(timedelta(0)) == "+00:00"
        assert format_offset(timedelta(hours=9)) == "+09:00"
        assert format_offset(-timedelta(minutes=45)) == "-00:45"
        assert format_offset(None) == "+00:00"


class TestSerialize:
    """Tests for serialize()."""

    def test_header_and_rows(self):
        """Fixed header then one line per record."""
        text = serialize([make("student1", 5), make("student2", 3)], tz=timezone.utc)
        assert text == (
            "UserId,rating,date\n"
            "student1,5,2024-01-15T10:00:05+00:00\n"
            "student2,3,2024-01-15T10:00:05+00:00\n"
        )

    def test_empty_raises(self):
        """Exporting nothing is an error."""
        with pytest.raises(EmptyInputError):
            serialize([])

    def test_round_trip_with_derive(self):
        """Parsing the CSV recovers the derived order and ratings."""
        records = [make("student10", 2), make("b", 3), make("student2", 5), make("a", 5)]
        ordered = derive(records, SortMode.BY_RATING)

        rows = list(csv.reader(io.StringIO(serialize(ordered))))
        assert rows[0] == CSV_HEADER.split(",")
        assert [(row[0], int(row[1])) for row in rows[1:]] == [
            (r.student_id, r.rating) for r in ordered
        ]

    def test_fields_are_not_quoted(self):
        """Ids are written verbatim, commas included."""
        text = serialize([make("doe, jane", 4)], tz=timezone.utc)
        assert text.splitlines()[1] == "doe, jane,4,2024-01-15T10:00:05+00:00"

    def test_export_constants(self):
        """Download name and media type."""
        assert EXPORT_FILENAME == "Feedback.csv"
        assert EXPORT_MEDIA_TYPE.startswith("text/csv")
        assert "utf-8" in EXPORT_MEDIA_TYPE
