"""
Data layer module for the feedback application.

Provides a DuckDB-based key-value gateway as an alternative to the
JSON file store.
"""

from .database import DuckDBGateway

__all__ = ["DuckDBGateway"]
