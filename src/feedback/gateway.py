"""
Persistence gateways - Key-value durable stores for feedback state.

The store core only needs two operations, get and set, over string keys
and string values. Implementations:
- InMemoryGateway: a dict, for tests and throwaway sessions
- JsonFileGateway: a single JSON object file on disk
- DuckDBGateway (src.data.database): a key-value table in DuckDB
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from src.feedback.errors import PersistenceError


logger = logging.getLogger(__name__)

RESPONSES_KEY = "student_feedback_responses"
SORT_MODE_KEY = "student_feedback_sort_mode"


class PersistenceGateway(Protocol):
    """Key-value store consumed by ResponseStore."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemoryGateway:
    """Dict-backed gateway. Nothing survives the process."""

    def __init__(self, initial: Optional[dict] = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileGateway:
    """
    Gateway that keeps every key in one JSON object file.

    Writes go to a temporary file in the same directory which then
    replaces the original, so a crash mid-write leaves the previous
    contents intact.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError:
            # Not JSON or not UTF-8: values look absent, the store starts fresh
            logger.warning(f"Ignoring undecodable store file: {self.path}")
            return {}
        except OSError as e:
            raise PersistenceError(f"Failed to read {self.path}: {e}") from e

        if not isinstance(data, dict):
            logger.warning(f"Ignoring store file without a top-level object: {self.path}")
            return {}
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value

        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to write {self.path}: {e}") from e


def create_gateway(backend: str, path: Optional[Path] = None) -> PersistenceGateway:
    """
    Build a gateway for a configured backend name.

    Args:
        backend: "json", "duckdb" or "memory"
        path: File location for the json and duckdb backends

    Raises:
        ValueError: If the backend is unknown or needs a path
    """
    backend = backend.lower()

    if backend == "memory":
        return InMemoryGateway()

    if path is None:
        raise ValueError(f"Backend '{backend}' requires a path")

    if backend == "json":
        return JsonFileGateway(path)

    if backend == "duckdb":
        from src.data.database import DuckDBGateway
        return DuckDBGateway(path)

    raise ValueError(f"Unknown storage backend: {backend}")
