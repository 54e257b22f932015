"""
Student feedback - Collects per-student ratings, keeps them in durable
storage, and exports them as CSV.
"""

from src.feedback.models import FeedbackRecord, SortMode
from src.feedback.store import ResponseStore
from src.feedback.gateway import InMemoryGateway, JsonFileGateway, create_gateway

__all__ = [
    "FeedbackRecord",
    "SortMode",
    "ResponseStore",
    "InMemoryGateway",
    "JsonFileGateway",
    "create_gateway",
]
