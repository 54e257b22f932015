"""
Configuration settings for the student feedback application.

Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(PROJECT_ROOT / "data")))
FEEDBACK_DIR = DATA_DIR / "feedback"

# Debug mode
DEBUG = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

# Storage backend: "json", "duckdb" or "memory"
FEEDBACK_BACKEND = os.getenv("FEEDBACK_BACKEND", "json").lower()

_DEFAULT_STORE_FILES = {
    "json": "feedback_store.json",
    "duckdb": "feedback_store.duckdb",
}

FEEDBACK_STORE_PATH = Path(os.getenv(
    "FEEDBACK_STORE_PATH",
    str(FEEDBACK_DIR / _DEFAULT_STORE_FILES.get(FEEDBACK_BACKEND, "feedback_store.json"))
))

# API settings
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))

VALID_BACKENDS = ("json", "duckdb", "memory")


def validate_config():
    """Validate the configuration settings."""
    errors = []

    if FEEDBACK_BACKEND not in VALID_BACKENDS:
        errors.append(
            f"Unknown FEEDBACK_BACKEND: {FEEDBACK_BACKEND} (expected one of {', '.join(VALID_BACKENDS)})"
        )

    if FEEDBACK_STORE_PATH.exists() and FEEDBACK_STORE_PATH.is_dir():
        errors.append(f"FEEDBACK_STORE_PATH is a directory: {FEEDBACK_STORE_PATH}")

    if errors:
        for error in errors:
            print(f"Config Error: {error}")
        return False

    return True


if __name__ == "__main__":
    print("Configuration Settings")
    print("=" * 50)
    print(f"PROJECT_ROOT: {PROJECT_ROOT}")
    print(f"DATA_DIR: {DATA_DIR}")
    print(f"FEEDBACK_BACKEND: {FEEDBACK_BACKEND}")
    print(f"FEEDBACK_STORE_PATH: {FEEDBACK_STORE_PATH}")
    print(f"DEBUG: {DEBUG}")
    print(f"LOG_LEVEL: {LOG_LEVEL}")
    print(f"API_HOST: {API_HOST}")
    print(f"API_PORT: {API_PORT}")
    print("=" * 50)
    print(f"Config valid: {validate_config()}")
