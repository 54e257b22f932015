"""Error kinds raised by the feedback core."""


class FeedbackError(Exception):
    """Base class for feedback store errors."""


class ValidationError(FeedbackError):
    """Submission rejected: empty student id or rating outside 1-5."""


class PersistenceError(FeedbackError):
    """The durable store could not be read or written."""


class MalformedStateError(FeedbackError):
    """Persisted data exists but cannot be decoded."""


class EmptyInputError(FeedbackError):
    """Export attempted with no records."""
