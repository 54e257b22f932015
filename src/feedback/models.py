"""
Data model for student feedback.

A FeedbackRecord is one student's current rating. Records are frozen;
the store swaps in a revised copy when a student is rated again, so
consumers can hold on to a record without it changing underneath them.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from src.feedback.errors import MalformedStateError


MIN_RATING = 1
MAX_RATING = 5
DEFAULT_RATING = 5


class SortMode(str, Enum):
    """Orderings available for display and export."""
    BY_IDENTIFIER = "byIdentifier"
    BY_RATING = "byRating"

    @classmethod
    def default(cls) -> "SortMode":
        return cls.BY_IDENTIFIER

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["SortMode"]:
        """
        Resolve a stored or user-supplied literal to a SortMode.

        Accepts the canonical values plus the literals written by the
        original browser page ("studentId", "rating"). Returns None for
        anything else.
        """
        if value is None:
            return None
        value = value.strip()
        for mode in cls:
            if value == mode.value:
                return mode
        return _SORT_ALIASES.get(value)


_SORT_ALIASES = {
    "studentId": SortMode.BY_IDENTIFIER,
    "rating": SortMode.BY_RATING,
}


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string into an aware datetime (naive means UTC)."""
    if not isinstance(value, str):
        raise MalformedStateError(f"Timestamp is not a string: {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise MalformedStateError(f"Invalid timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def new_record_id() -> str:
    """Generate a unique identifier for a new record."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class FeedbackRecord:
    """A single student's rating."""
    id: str
    student_id: str
    rating: int
    timestamp: datetime

    def revised(self, rating: int, timestamp: datetime) -> "FeedbackRecord":
        """Return a copy with a new rating and timestamp, same id."""
        return replace(self, rating=rating, timestamp=timestamp)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "studentId": self.student_id,
            "rating": self.rating,
            "timestamp": self.timestamp.astimezone(timezone.utc).isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FeedbackRecord":
        """
        Build a record from its persisted form.

        Unknown keys are ignored. The legacy "date" key is accepted in
        place of "timestamp".

        Raises:
            MalformedStateError: If a required field is missing or invalid
        """
        if not isinstance(data, dict):
            raise MalformedStateError(f"Record is not an object: {data!r}")

        record_id = data.get("id")
        student_id = data.get("studentId")
        rating = data.get("rating")
        raw_timestamp = data.get("timestamp", data.get("date"))

        if not isinstance(record_id, str) or not record_id:
            raise MalformedStateError(f"Record has no id: {data!r}")
        if not isinstance(student_id, str) or not student_id.strip():
            raise MalformedStateError(f"Record has no studentId: {data!r}")
        if not is_valid_rating(rating):
            raise MalformedStateError(f"Record rating out of range: {data!r}")

        return cls(
            id=record_id,
            student_id=student_id.strip(),
            rating=rating,
            timestamp=parse_timestamp(raw_timestamp),
        )


def is_valid_rating(rating) -> bool:
    """True for an int (not bool) between MIN_RATING and MAX_RATING."""
    return (
        isinstance(rating, int)
        and not isinstance(rating, bool)
        and MIN_RATING <= rating <= MAX_RATING
    )
