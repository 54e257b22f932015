"""Text rendering helpers for listing feedback."""

from datetime import datetime

from src.feedback.models import MAX_RATING, FeedbackRecord


FILLED_STAR = "★"
EMPTY_STAR = "☆"


def render_stars(rating: int) -> str:
    """Five-glyph star bar, e.g. 3 -> ★★★☆☆."""
    filled = max(0, min(rating, MAX_RATING))
    return FILLED_STAR * filled + EMPTY_STAR * (MAX_RATING - filled)


def format_date(timestamp: datetime) -> str:
    """Local calendar date of a timestamp."""
    return timestamp.astimezone().date().isoformat()


def format_row(record: FeedbackRecord, width: int = 20) -> str:
    return f"{record.student_id:<{width}} {format_date(record.timestamp)}  {render_stars(record.rating)}"
