#!/usr/bin/env python3
"""
Benchmark calculate_metrics() and check the timing against the performance budget.

Usage: python bench.py [N] [TAGS]
  N    = number of calculate_metrics() calls (default 1000).
  TAGS = tags per call (default 50).

Run from project root. Loads .env first, so METRICS_MAX_CALCULATION_TIME_MS and
METRICS_MAX_MEMORY_USAGE_MB apply. Exits 1 if the per-call time or peak memory
is over budget.
"""
import os
import random
import sys
import time
from pathlib import Path

# Project root on path (script lives at project root)
_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, _root)

from dotenv import load_dotenv

load_dotenv(Path(_root) / ".env")

import config
from services.metrics_pipeline import measure_calculation
from services.validation_report import validate_performance
from utils.log_setup import configure_logging
from utils.psychological_metrics import POSITIVE_EMOTIONS, NEGATIVE_EMOTIONS, NEUTRAL_EMOTIONS, calculate_metrics
from utils.validation_types import ValidationConfig

SUBJECTS = sorted(POSITIVE_EMOTIONS | NEGATIVE_EMOTIONS | NEUTRAL_EMOTIONS | {"FOMO", "REGRET"})


def make_tags(n_tags, seed=7):
    rng = random.Random(seed)
    return [
        {"subject": rng.choice(SUBJECTS), "value": rng.randint(0, 100), "fullMark": 100}
        for _ in range(n_tags)
    ]


def _arg(index, default):
    if len(sys.argv) > index:
        try:
            return int(sys.argv[index])
        except ValueError:
            pass
    return default


def main():
    configure_logging()
    config.warn_invalid_config()
    n = _arg(1, 1000)
    n_tags = _arg(2, 50)
    tags = make_tags(n_tags)

    # Warmup run
    calculate_metrics(tags)
    start = time.perf_counter()
    for _ in range(n):
        calculate_metrics(tags)
    elapsed = time.perf_counter() - start
    per_call_ms = (elapsed / n) * 1000
    print(f"calculate_metrics() x{n} ({n_tags} tags): {elapsed:.3f}s total, {per_call_ms:.3f} ms/call")

    metrics, _, peak = measure_calculation(tags, track_memory=True)
    print(f"metrics: {metrics.to_dict()}  peak memory: {peak} bytes")

    result = validate_performance(per_call_ms, peak, ValidationConfig.from_env())
    for message in result.errors + result.warnings:
        print(f"  - {message}")
    return 0 if result.is_valid and not result.warnings else 1


if __name__ == "__main__":
    sys.exit(main())
