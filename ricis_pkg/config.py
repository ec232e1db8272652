"""Centralized configuration for RICIS.

This module defines:
- Numeric root search limits (scan interval, step, bisection tolerance)
- Tolerances used when a numeric value must be compared against zero
- Root deduplication precision
- Limit rule depth

Configuration can be overridden via environment variables (prefixed with RICIS_).
"""

import os

# Version is defined in pyproject.toml [project] section
try:
    import importlib.metadata

    VERSION = importlib.metadata.version("ricis")
except Exception:
    # Fallback if package not installed
    VERSION = "1.0.0"

# Numeric root scan configuration
SCAN_INTERVAL_MIN = float(os.getenv("RICIS_SCAN_INTERVAL_MIN", "-10"))
SCAN_INTERVAL_MAX = float(os.getenv("RICIS_SCAN_INTERVAL_MAX", "10"))
SCAN_STEP = float(os.getenv("RICIS_SCAN_STEP", "0.05"))
BISECTION_TOLERANCE = float(
    os.getenv("RICIS_BISECTION_TOLERANCE", "1e-6")
)  # Bracket width at which bisection stops
MAX_BISECTION_ITERATIONS = int(os.getenv("RICIS_MAX_BISECTION_ITERATIONS", "200"))
ROOT_ACCEPT_TOLERANCE = float(
    os.getenv("RICIS_ROOT_ACCEPT_TOLERANCE", "1e-6")
)  # |f(root)| bound for a bisected root, scaled by steep bracket slopes

# Numeric tolerance constants
ZERO_TOLERANCE = float(
    os.getenv("RICIS_ZERO_TOLERANCE", "1e-10")
)  # Numeric values below this are treated as vanishing
ROOT_MATCH_TOLERANCE = float(
    os.getenv("RICIS_ROOT_MATCH_TOLERANCE", "1e-9")
)  # Two singularities share a point when their roots are this close
ROOT_ROUND_DIGITS = int(
    os.getenv("RICIS_ROOT_ROUND_DIGITS", "4")
)  # Decimal places used when deduplicating roots

# Limit rule configuration
LIMIT_MAX_ROUNDS = int(
    os.getenv("RICIS_LIMIT_MAX_ROUNDS", "3")
)  # Maximum number of derivative rounds for a 0/0 limit

LOG_LEVEL = os.getenv("RICIS_LOG_LEVEL", "WARNING")
