"""
Pytest configuration and fixtures for the student feedback tests.
"""

import pytest
from datetime import datetime, timezone
from pathlib import Path
import sys

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.feedback.errors import PersistenceError
from src.feedback.gateway import InMemoryGateway
from src.feedback.store import ResponseStore


class FailingGateway(InMemoryGateway):
    """In-memory gateway whose writes can be switched off."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_writes = False

    def set(self, key, value):
        if self.fail_writes:
            raise PersistenceError("quota exceeded")
        super().set(key, value)


@pytest.fixture
def gateway():
    """Provide an empty failure-injectable gateway."""
    return FailingGateway()


@pytest.fixture
def store(gateway):
    """Provide an initialized store over the test gateway."""
    s = ResponseStore(gateway)
    s.initialize()
    return s


@pytest.fixture
def now():
    """A fixed submission time."""
    return datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)
