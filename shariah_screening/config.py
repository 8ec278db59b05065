"""
Central configuration for data paths and runtime settings.

Local files (screening dataset, logs) are stored in ~/.shariah-screening-data/.

Configure via environment variables (a .env file is honoured by the CLI):
  - SHARIAH_DATA_DIR (default: ~/.shariah-screening-data)
  - SHARIAH_DATASET_CSV (default: <data dir>/shariah-screening.csv)
  - SHARIAH_LOG_LEVEL (default: INFO)
  - SHARIAH_MAX_WORKERS (default: 8)
"""

import os
from pathlib import Path

from .constants import DEFAULT_MAX_WORKERS


def get_data_dir() -> Path:
    """
    Get the local data directory path.

    Uses SHARIAH_DATA_DIR environment variable if set, otherwise defaults
    to ~/.shariah-screening-data/

    Returns:
        Path to data directory
    """
    env_path = os.environ.get("SHARIAH_DATA_DIR")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return Path.home() / ".shariah-screening-data"


def get_dataset_path() -> Path:
    """Get the screening dataset CSV path."""
    env_path = os.environ.get("SHARIAH_DATASET_CSV")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return get_data_dir() / "shariah-screening.csv"


def get_log_dir() -> Path:
    """Get the log file directory."""
    return get_data_dir() / "logs"


def get_log_level() -> str:
    return os.environ.get("SHARIAH_LOG_LEVEL", "INFO").upper()


def get_max_workers() -> int:
    """Worker count for portfolio fan-out; invalid values fall back to the default."""
    raw = os.environ.get("SHARIAH_MAX_WORKERS")
    if not raw:
        return DEFAULT_MAX_WORKERS
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_MAX_WORKERS
    return value if value > 0 else DEFAULT_MAX_WORKERS


def ensure_data_dir() -> Path:
    """Ensure the data directory exists."""
    data_dir = get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir
