"""Configuration management for the family finance tracker.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

# Base project root - assumes this file is in family_finance/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("FAMILY_FINANCE_DATA_DIR", _PROJECT_ROOT / "data"))

# Ledger database (key-value slots per family)
DB_PATH = Path(
    os.getenv("FAMILY_FINANCE_DB_PATH", DATA_DIR / "ledger.db")
).resolve()

# Remote assistant
MODEL_ID = os.getenv("FAMILY_FINANCE_MODEL", "gemini-2.5-flash")

# UI defaults
TOP_CATEGORIES = 8
UPCOMING_LIMIT = 5
PROJECTION_MONTHS = 6
FORECAST_HISTORY_LIMIT = 50
MAX_INSTALLMENTS = 120


def get_api_key() -> Optional[str]:
    """Return the Gemini API key, or None when it is not configured."""
    key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
    return key or None


def ensure_data_directories() -> None:
    """Create the data directory if it doesn't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
