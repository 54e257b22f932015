"""
Sorted views over feedback records.

Identifiers compare the way a person reads them: case and accents are
ignored and runs of digits compare by value, so "student2" comes before
"student10". Ties that survive that comparison fall back to the raw
identifier and then the record id, which makes the order total.
"""

import re
import unicodedata
from typing import Iterable, Optional, Union

from src.feedback.models import FeedbackRecord, SortMode


# Digit runs, letter runs, and runs of everything else (punctuation, spaces, "_")
_CHUNKS = re.compile(r"[0-9]+|[^\W0-9_]+|[\W_]+")

# Chunk ranks: punctuation/whitespace, then numbers, then letters
_RANK_SYMBOL = 0
_RANK_NUMBER = 1
_RANK_TEXT = 2


def _fold(text: str) -> str:
    """Case- and accent-insensitive form of text."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.casefold()


def identifier_key(student_id: str) -> tuple:
    """
    Natural sort key for a student identifier.

    The folded identifier is split into digit, letter and symbol runs.
    Digit runs compare by numeric value without converting them to int
    (length of the run without leading zeros, then its digits), so ids
    of any length stay comparable. Leading zeros are ignored here; the
    raw identifier breaks such ties at the record level.
    """
    key = []
    for chunk in _CHUNKS.findall(_fold(student_id)):
        if chunk[0] in "0123456789":
            digits = chunk.lstrip("0")
            key.append((_RANK_NUMBER, len(digits), digits))
        elif chunk[0].isalnum():
            key.append((_RANK_TEXT, 0, chunk))
        else:
            key.append((_RANK_SYMBOL, 0, chunk))
    return tuple(key)


def compare_identifiers(a: str, b: str) -> int:
    """Three-way comparison of two identifiers (-1, 0, 1)."""
    ka, kb = identifier_key(a), identifier_key(b)
    return (ka > kb) - (ka < kb)


def _by_identifier(record: FeedbackRecord) -> tuple:
    return (identifier_key(record.student_id), record.student_id, record.id)


def _by_rating(record: FeedbackRecord) -> tuple:
    return (-record.rating,) + _by_identifier(record)


_SORT_KEYS = {
    SortMode.BY_IDENTIFIER: _by_identifier,
    SortMode.BY_RATING: _by_rating,
}


def derive(
    records: Iterable[FeedbackRecord],
    sort_mode: Optional[Union[SortMode, str]] = None,
) -> list[FeedbackRecord]:
    """
    Produce the display/export order of records.

    Args:
        records: Records in any order (not modified)
        sort_mode: SortMode or its literal; None means the default mode

    Returns:
        A new list in sorted order

    Raises:
        ValueError: If sort_mode is not a known mode
    """
    if sort_mode is None:
        mode = SortMode.default()
    elif isinstance(sort_mode, SortMode):
        mode = sort_mode
    else:
        mode = SortMode.parse(sort_mode)
        if mode is None:
            raise ValueError(f"Unknown sort mode: {sort_mode}")

    return sorted(records, key=_SORT_KEYS[mode])
