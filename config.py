"""
=============================================================================
CONFIGURATION FOR THE TRADING PSYCHOLOGY METRICS ENGINE (config.py)
=============================================================================

WHAT THIS FILE DOES (in plain language):
----------------------------------------
This file holds ALL configurable settings for the metrics engine in one place.
Other files read from it. Values come from the environment (e.g. your .env
file or system variables), so you can tighten thresholds for production or
relax them during development without touching code.

MAIN GROUPS OF SETTINGS:
------------------------
  1. Validation thresholds - How far apart Discipline Level and Tilt Control may
                             drift, the Psychological Stability Index floor, and
                             the calculation time budget.
  2. Validation behaviour  - Strict mode, auto-correction, failure logging.
  3. Performance           - Memory budget and whether memory is measured at all.
  4. Logging               - Log level and output format for entry points.

HOW VALUES ARE CHOSEN:
---------------------
  - Environment variables (e.g. METRICS_STRICT_MODE) override everything.
  - If an env var is not set, we use the documented default.
  - If it is set but unusable (not a number, out of bounds, unknown format),
    we print a warning and use the default, so the engine always starts.
  - The bench.py entry point loads a .env file from the project
    root before importing this module.
=============================================================================
"""

import math
import os
import sys
from typing import Any, Dict, List, Optional

# Env vars whose value was unusable and replaced by the default at import time.
INVALID_SETTINGS: List[str] = []


def _env_float(name: str, default: str, low: Optional[float] = None, high: Optional[float] = None,
               positive: bool = False) -> float:
    """Read a float env var. Unparseable or out-of-bounds values fall back to the default with a warning."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return float(default)
    try:
        value = float(raw)
    except ValueError:
        value = math.nan
    usable = (
        math.isfinite(value)
        and (low is None or value >= low)
        and (high is None or value <= high)
        and (not positive or value > 0)
    )
    if not usable:
        print(f"Config warning: {name}={raw!r} is not usable; using {default}", file=sys.stderr)
        INVALID_SETTINGS.append(name)
        return float(default)
    return value


def _env_bool(name: str, default: str) -> bool:
    return (os.getenv(name) or default).strip().lower() == "true"


# ============================================================================
# VALIDATION THRESHOLDS
# ============================================================================
# Maximum allowed gap (percentage points) between Discipline Level and Tilt
# Control before the consistency validator complains.
METRICS_MAX_DEVIATION_BETWEEN_METRICS: float = _env_float("METRICS_MAX_DEVIATION_BETWEEN_METRICS", "15", low=0, high=100)
# Psychological Stability Index (average of the two metrics) below this is flagged.
METRICS_MIN_STABILITY_INDEX: float = _env_float("METRICS_MIN_STABILITY_INDEX", "20", low=0, high=100)
# Calculation / API response time budget in milliseconds.
METRICS_MAX_CALCULATION_TIME_MS: float = _env_float("METRICS_MAX_CALCULATION_TIME_MS", "2000", positive=True)

# ============================================================================
# VALIDATION BEHAVIOUR
# ============================================================================
#   METRICS_ENABLE_AUTO_CORRECTION  - produce rebalanced correctedData next to the originals.
#   METRICS_STRICT_MODE             - treat a large metric deviation as an error, not a warning.
#   METRICS_LOG_VALIDATION_FAILURES - emit a structured log entry for every comprehensive validation.
# ----------------------------------------------------------------------------
METRICS_ENABLE_AUTO_CORRECTION: bool = _env_bool("METRICS_ENABLE_AUTO_CORRECTION", "false")
METRICS_STRICT_MODE: bool = _env_bool("METRICS_STRICT_MODE", "false")
METRICS_LOG_VALIDATION_FAILURES: bool = _env_bool("METRICS_LOG_VALIDATION_FAILURES", "true")

# ============================================================================
# PERFORMANCE
# ============================================================================
# Memory usage above this (MB) is reported as a warning by the performance validator.
METRICS_MAX_MEMORY_USAGE_MB: float = _env_float("METRICS_MAX_MEMORY_USAGE_MB", "50", positive=True)
# When True the pipeline measures peak allocation with tracemalloc. Off by default: tracing
# slows every allocation in the process while it is active.
TRACK_MEMORY_USAGE: bool = _env_bool("TRACK_MEMORY_USAGE", "false")

# ============================================================================
# LOGGING
# ============================================================================
LOG_LEVEL: str = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
# "json" for one JSON object per line (log shippers), "text" for humans.
LOG_FORMAT: str = (os.getenv("LOG_FORMAT") or "text").strip().lower()
if LOG_FORMAT not in ("text", "json"):
    print(f"Config warning: LOG_FORMAT={LOG_FORMAT!r} is not usable; using 'text'", file=sys.stderr)
    INVALID_SETTINGS.append("LOG_FORMAT")
    LOG_FORMAT = "text"


def get_validation_config() -> Dict[str, Any]:
    """
    Get the validation settings as a dictionary.

    Keys match the keyword arguments of utils.validation_types.ValidationConfig,
    so callers can do ValidationConfig(**config.get_validation_config()).

    Returns:
        dict: Validation thresholds and behaviour flags
    """
    return {
        "max_deviation_between_metrics": METRICS_MAX_DEVIATION_BETWEEN_METRICS,
        "min_psychological_stability_index": METRICS_MIN_STABILITY_INDEX,
        "max_calculation_time": METRICS_MAX_CALCULATION_TIME_MS,
        "enable_auto_correction": METRICS_ENABLE_AUTO_CORRECTION,
        "strict_mode": METRICS_STRICT_MODE,
        "log_validation_failures": METRICS_LOG_VALIDATION_FAILURES,
        "max_memory_usage_mb": METRICS_MAX_MEMORY_USAGE_MB,
    }


def warn_invalid_config() -> None:
    """
    Print a summary of env vars that were replaced by their defaults. Does not raise.

    Unusable values never reach ValidationConfig: they are replaced at import
    time, so ValidationConfig.from_env() always succeeds.
    """
    if INVALID_SETTINGS:
        print(
            "Config warning: the following env vars had unusable values and use their defaults:",
            ", ".join(INVALID_SETTINGS),
            file=sys.stderr,
        )
