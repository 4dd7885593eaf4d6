"""Configuration for the finance core.

Every value is a module-level constant that can be overridden through an
environment variable prefixed with ``FINANCE_CORE_``.
"""

import logging
import os
from decimal import Decimal
from typing import Optional

_PREFIX = "FINANCE_CORE_"


def _env(name: str, default: str) -> str:
    return os.getenv(_PREFIX + name, default)


# Budget thresholds (percent of budget used)
WARNING_THRESHOLD = int(_env("WARNING_THRESHOLD", "80"))
EXCEEDED_THRESHOLD = int(_env("EXCEEDED_THRESHOLD", "100"))

# Suggestions
SUGGESTION_BUFFER = Decimal(_env("SUGGESTION_BUFFER", "1.2"))  # +20%
SUGGESTION_HISTORY_MONTHS = int(_env("SUGGESTION_HISTORY_MONTHS", "3"))

# Goals
DEADLINE_WINDOW_DAYS = int(_env("DEADLINE_WINDOW_DAYS", "30"))
DAYS_PER_MONTH = int(_env("DAYS_PER_MONTH", "30"))
ON_TRACK_TOLERANCE = Decimal(_env("ON_TRACK_TOLERANCE", "0.8"))
LOW_PROGRESS_RATIO = Decimal(_env("LOW_PROGRESS_RATIO", "0.25"))
MAX_ACTIVE_GOALS = int(_env("MAX_ACTIVE_GOALS", "5"))

# Profile defaults
DEFAULT_CURRENCY = _env("DEFAULT_CURRENCY", "₹")
DEFAULT_BUDGET_RATIO = Decimal(_env("DEFAULT_BUDGET_RATIO", "0.8"))

# Expenses without a category are reported under this name
UNCATEGORIZED = _env("UNCATEGORIZED", "Others")

# Reports
BACKUP_MONTHS = int(_env("BACKUP_MONTHS", "12"))
BACKUP_VERSION = "2.0.0"

LOG_LEVEL = _env("LOG_LEVEL", "INFO")


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the configured log level to the ``finance_core`` logger tree."""
    name = (level or LOG_LEVEL).upper()
    logging.getLogger("finance_core").setLevel(getattr(logging, name, logging.INFO))
