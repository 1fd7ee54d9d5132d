"""
Metrics pipeline: the one call a data layer makes per user / time window.

  context -> calculate metrics (timed) -> validate everything -> report -> log

The computed metrics are always returned, even when validation fails. When the
validator produced corrected_data it is reported next to the metrics and never
swapped in.

Pass the upstream stats payload as response_data: without it the payload
validator reports every required field as missing and the overall result is
invalid.
"""

import logging
import threading
import time
import tracemalloc
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import config
from services.validation_report import (
    create_validation_context,
    create_validation_report,
    finalize_validation_context,
    log_validation_results,
    perform_comprehensive_validation,
)
from utils.psychological_metrics import calculate_metrics
from utils.validation_types import (
    ComprehensiveValidationResult,
    PsychologicalMetrics,
    ValidationConfig,
    ValidationContext,
    ValidationReport,
)

logger = logging.getLogger(__name__)

# tracemalloc is process-wide: concurrent measurements share one tracing session.
_tracing_lock = threading.Lock()
_tracing_users = 0
_tracing_owned = False


@dataclass
class MetricsAnalysis:
    metrics: PsychologicalMetrics
    validation: ComprehensiveValidationResult
    report: ValidationReport
    context: ValidationContext

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "metrics": self.metrics.to_dict(),
            "validation": self.validation.to_dict(),
            "summary": self.report.summary.to_dict(),
            "recommendations": list(self.report.recommendations),
            "context": self.context.to_dict(),
        }
        corrected = self.validation.psychological_metrics.corrected_data
        if corrected is not None:
            out["correctedMetrics"] = corrected.to_dict()
        return out


def _acquire_tracing() -> None:
    global _tracing_users, _tracing_owned
    with _tracing_lock:
        if _tracing_users == 0 and not tracemalloc.is_tracing():
            tracemalloc.start()
            _tracing_owned = True
        _tracing_users += 1


def _release_tracing() -> None:
    global _tracing_users, _tracing_owned
    with _tracing_lock:
        _tracing_users -= 1
        if _tracing_users == 0 and _tracing_owned:
            tracemalloc.stop()
            _tracing_owned = False


def measure_calculation(
    emotional_data: Any,
    track_memory: bool = False,
    calculator: Callable[[Any], PsychologicalMetrics] = calculate_metrics,
) -> Tuple[PsychologicalMetrics, float, Optional[int]]:
    """
    Run the calculator and return (metrics, elapsed_ms, peak_bytes).

    peak_bytes is None unless track_memory is set. Tracing is reference counted:
    it starts with the first concurrent measurement and stops when the last one
    finishes, and is left alone if something else (e.g. a profiler) started it.
    The peak is process-wide, so overlapping measurements may report each
    other's allocations.
    """
    if track_memory:
        _acquire_tracing()

    start = time.perf_counter()
    try:
        metrics = calculator(emotional_data)
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        peak = tracemalloc.get_traced_memory()[1] if track_memory else None
    finally:
        if track_memory:
            _release_tracing()
    return metrics, elapsed_ms, peak


def analyze_emotional_data(
    emotional_data: Any,
    response_data: Any = None,
    response_time: float = 0.0,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
    config_override: Optional[ValidationConfig] = None,
    track_memory: Optional[bool] = None,
) -> MetricsAnalysis:
    """
    Compute and validate psychological metrics for one request.

    Args:
        emotional_data: Raw tag collection from the data layer (may be None or malformed)
        response_data: Upstream stats payload to validate alongside (optional)
        response_time: Upstream response time in ms
        user_id: Owner of the data, for logs
        request_id: Correlation id; a UUID is generated when omitted
        config_override: Validation config; defaults to ValidationConfig.from_env()
        track_memory: Measure peak allocation; defaults to config.TRACK_MEMORY_USAGE

    Returns:
        MetricsAnalysis with metrics, comprehensive validation, report and finalized context
    """
    validation_config = config_override or ValidationConfig.from_env()
    if track_memory is None:
        track_memory = config.TRACK_MEMORY_USAGE

    context = create_validation_context(request_id, user_id, validation_config)
    metrics, calculation_time, memory_usage = measure_calculation(emotional_data, track_memory)
    logger.debug(
        "Calculated metrics for request %s in %.3f ms: %s",
        context.request_id, calculation_time, metrics.to_dict(),
    )

    validation = perform_comprehensive_validation(
        metrics.discipline_level,
        metrics.tilt_control,
        emotional_data,
        response_time,
        calculation_time,
        memory_usage=memory_usage,
        response_data=response_data,
        config=validation_config,
    )
    context = finalize_validation_context(context)
    report = create_validation_report(context, validation)
    log_validation_results(context, validation)

    return MetricsAnalysis(metrics=metrics, validation=validation, report=report, context=context)
