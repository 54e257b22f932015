"""
Response store - Owns the feedback collection and keeps it in sync with
durable storage.

Every mutation is written through to the gateway before the call
returns. If the write fails the in-memory change is undone and the
PersistenceError propagates, so memory and storage never disagree after
a call completes.

Persisted layout (records key):

    {"schema_version": 1, "records": [{"id", "studentId", "rating", "timestamp"}, ...]}

A bare list of records (schema 0, written by the original browser page)
is still accepted on load.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from src.feedback.errors import MalformedStateError, PersistenceError, ValidationError
from src.feedback.export import serialize
from src.feedback.gateway import RESPONSES_KEY, SORT_MODE_KEY, PersistenceGateway
from src.feedback.models import (
    MAX_RATING,
    MIN_RATING,
    FeedbackRecord,
    SortMode,
    is_valid_rating,
    new_record_id,
)
from src.feedback.sorting import derive


logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def encode_records(records: list[FeedbackRecord]) -> str:
    """Serialize the collection into its persisted JSON envelope."""
    return json.dumps({
        "schema_version": SCHEMA_VERSION,
        "records": [r.to_dict() for r in records],
    })


def decode_records(text: str) -> list[FeedbackRecord]:
    """
    Parse a persisted collection.

    Raises:
        MalformedStateError: If the text is not a recognizable collection
    """
    try:
        data = json.loads(text)
    except (ValueError, TypeError) as e:
        raise MalformedStateError(f"Records entry is not valid JSON: {e}") from e

    if isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        version = data.get("schema_version")
        if not isinstance(version, int) or isinstance(version, bool):
            raise MalformedStateError(f"Records entry has no schema_version: {version!r}")
        if version > SCHEMA_VERSION:
            logger.warning(
                f"Records entry has schema_version {version}, newer than {SCHEMA_VERSION}; "
                "reading known fields only"
            )
        items = data.get("records")
        if not isinstance(items, list):
            raise MalformedStateError("Records entry has no records list")
    else:
        raise MalformedStateError(f"Unexpected records entry type: {type(data).__name__}")

    records = [FeedbackRecord.from_dict(item) for item in items]

    seen = set()
    for record in records:
        if record.student_id in seen:
            raise MalformedStateError(f"Duplicate studentId in stored records: {record.student_id}")
        seen.add(record.student_id)

    return records


class ResponseStore:
    """
    The single source of truth for feedback records.

    Holds records in insertion order; display order is always derived
    with src.feedback.sorting.derive and never stored.
    """

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway
        self._records: list[FeedbackRecord] = []
        self._sort_mode: SortMode = SortMode.default()

    # -- loading --------------------------------------------------------

    def initialize(self):
        """
        Load records and sort preference from the gateway.

        Missing or malformed data is treated as a first run: empty
        collection, default sort mode.
        """
        self._records = self._load_records()
        self._sort_mode = self._load_sort_mode()
        logger.info(f"Loaded {len(self._records)} responses (sort={self._sort_mode.value})")

    def _load_records(self) -> list[FeedbackRecord]:
        text = self.gateway.get(RESPONSES_KEY)
        if not text:
            return []
        try:
            return decode_records(text)
        except MalformedStateError as e:
            logger.warning(f"Discarding malformed stored responses: {e}")
            return []

    def _load_sort_mode(self) -> SortMode:
        text = self.gateway.get(SORT_MODE_KEY)
        mode = SortMode.parse(text)
        if mode is None:
            if text:
                logger.warning(f"Ignoring unknown stored sort mode: {text!r}")
            return SortMode.default()
        return mode

    # -- queries --------------------------------------------------------

    @property
    def records(self) -> tuple[FeedbackRecord, ...]:
        """Records in insertion order (read-only snapshot)."""
        return tuple(self._records)

    @property
    def sort_mode(self) -> SortMode:
        return self._sort_mode

    def count(self) -> int:
        return len(self._records)

    def get(self, student_id: str) -> Optional[FeedbackRecord]:
        """Get the record for a student id (trimmed), if any."""
        index = self._index_of(student_id.strip())
        return self._records[index] if index is not None else None

    def can_export(self) -> bool:
        return bool(self._records)

    def can_reset(self) -> bool:
        return bool(self._records)

    def sorted_records(self, sort_mode: Optional[Union[SortMode, str]] = None) -> list[FeedbackRecord]:
        """Records in display order (stored preference unless overridden)."""
        return derive(self._records, sort_mode or self._sort_mode)

    def export_csv(self, sort_mode: Optional[Union[SortMode, str]] = None) -> str:
        """CSV text of the sorted records. Raises EmptyInputError when empty."""
        return serialize(self.sorted_records(sort_mode))

    def stats(self) -> dict:
        """Get feedback statistics."""
        total = len(self._records)
        by_rating = {rating: 0 for rating in range(MIN_RATING, MAX_RATING + 1)}
        for record in self._records:
            by_rating[record.rating] += 1

        average = sum(r.rating for r in self._records) / total if total else None

        return {
            "total": total,
            "by_rating": by_rating,
            "average": average,
        }

    # -- mutations ------------------------------------------------------

    def upsert(self, student_id: str, rating: int, now: Optional[datetime] = None) -> FeedbackRecord:
        """
        Record a rating for a student, creating or revising their record.

        Args:
            student_id: Student identifier (surrounding whitespace ignored)
            rating: Integer from 1 to 5
            now: Time of the submission; defaults to the current time

        Returns:
            The created or updated record

        Raises:
            ValidationError: If the id is empty or the rating out of range
            PersistenceError: If the change could not be saved (nothing changes)
        """
        if not isinstance(student_id, str):
            raise ValidationError("Student id must be a string")
        trimmed = student_id.strip()
        if not trimmed:
            raise ValidationError("Student id must not be empty")
        if not is_valid_rating(rating):
            raise ValidationError(f"Rating must be an integer from {MIN_RATING} to {MAX_RATING}, got {rating!r}")

        timestamp = now or datetime.now(timezone.utc)
        if timestamp.tzinfo is None:
            timestamp = timestamp.astimezone()

        previous = list(self._records)
        index = self._index_of(trimmed)

        if index is not None:
            record = self._records[index].revised(rating, timestamp)
            self._records[index] = record
            action = "Updated"
        else:
            record = FeedbackRecord(
                id=new_record_id(),
                student_id=trimmed,
                rating=rating,
                timestamp=timestamp,
            )
            self._records.append(record)
            action = "Created"

        self._commit_records(previous)
        logger.info(f"{action} response for {trimmed}: rating={rating}")
        return record

    def clear_all(self) -> int:
        """
        Permanently discard every record.

        Returns:
            Number of records removed (0 if already empty, nothing written)

        Raises:
            PersistenceError: If the empty state could not be saved
        """
        if not self._records:
            return 0

        previous = list(self._records)
        self._records = []
        self._commit_records(previous)
        logger.info(f"Cleared {len(previous)} responses")
        return len(previous)

    def set_sort_mode(self, sort_mode: Union[SortMode, str]) -> SortMode:
        """
        Change and persist the sort preference.

        Raises:
            ValueError: If the mode is unknown
            PersistenceError: If the preference could not be saved
        """
        mode = sort_mode if isinstance(sort_mode, SortMode) else SortMode.parse(sort_mode)
        if mode is None:
            raise ValueError(f"Unknown sort mode: {sort_mode}")

        try:
            self.gateway.set(SORT_MODE_KEY, mode.value)
        except (PersistenceError, OSError) as e:
            logger.error(f"Failed to save sort mode: {e}")
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(f"Failed to save sort mode: {e}") from e

        self._sort_mode = mode
        logger.info(f"Sort mode set to {mode.value}")
        return mode

    # -- internals ------------------------------------------------------

    def _index_of(self, student_id: str) -> Optional[int]:
        for i, record in enumerate(self._records):
            if record.student_id == student_id:
                return i
        return None

    def _commit_records(self, previous: list[FeedbackRecord]):
        """Persist the current collection, restoring `previous` on failure."""
        try:
            self.gateway.set(RESPONSES_KEY, encode_records(self._records))
        except (PersistenceError, OSError) as e:
            self._records = previous
            logger.error(f"Failed to save responses, change rolled back: {e}")
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(f"Failed to save responses: {e}") from e
