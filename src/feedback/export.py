"""
CSV export of feedback records.

Output format:

    UserId,rating,date
    student1,5,2024-01-15T10:00:00+01:00

Timestamps are rendered in local civil time with the UTC offset in
effect when the export runs. Fields are written without quoting, so a
student id containing a comma shifts the columns of its row.
"""

from datetime import datetime, timedelta, tzinfo
from io import StringIO
from typing import Optional, Sequence

from src.feedback.errors import EmptyInputError
from src.feedback.models import FeedbackRecord


CSV_HEADER = "UserId,rating,date"
EXPORT_FILENAME = "Feedback.csv"
EXPORT_MEDIA_TYPE = "text/csv; charset=utf-8"


def format_offset(offset: Optional[timedelta]) -> str:
    """Render a UTC offset as +HH:MM / -HH:MM (whole minutes)."""
    total_minutes = int((offset or timedelta(0)).total_seconds() // 60)
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def format_timestamp(timestamp: datetime, tz: Optional[tzinfo] = None) -> str:
    """
    Render an instant as YYYY-MM-DDTHH:MM:SS+HH:MM.

    Args:
        timestamp: Aware datetime (naive values are taken as local time)
        tz: Target zone; defaults to the machine's local zone
    """
    local = timestamp.astimezone(tz)
    return local.strftime("%Y-%m-%dT%H:%M:%S") + format_offset(local.utcoffset())


def serialize(records: Sequence[FeedbackRecord], tz: Optional[tzinfo] = None) -> str:
    """
    Render records, already in display order, as CSV text.

    Raises:
        EmptyInputError: If there are no records
    """
    if not records:
        raise EmptyInputError("Nothing to export: no feedback recorded")

    buffer = StringIO()
    buffer.write(CSV_HEADER + "\n")
    for record in records:
        buffer.write(f"{record.student_id},{record.rating},{format_timestamp(record.timestamp, tz)}\n")
    return buffer.getvalue()
