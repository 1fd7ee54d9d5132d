"""
Validation report aggregation.

Combines the four validation layers into one result:
  1. psychological metrics (utils.metrics_validation)
  2. emotional data (utils.emotion_tags)
  3. the upstream API payload (validate_api_response)
  4. timing and memory budgets (validate_performance)

create_validation_report() adds summary counts and recommendations;
log_validation_results() is the only side effect in the engine and is gated by
config.log_validation_failures.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, List, Optional

from utils.emotion_tags import is_finite_number, validate_emotional_data
from utils.metrics_validation import validate_psychological_metrics
from utils.validation_types import (
    DEFAULT_VALIDATION_CONFIG,
    ApiResponseValidationResult,
    ComprehensiveValidationResult,
    PerformanceMetrics,
    PerformanceValidationResult,
    ValidationConfig,
    ValidationContext,
    ValidationError,
    ValidationErrorType,
    ValidationReport,
    ValidationResult,
    ValidationSeverity,
    ValidationSummary,
    new_request_id,
    now_ms,
)

logger = logging.getLogger(__name__)

REQUIRED_RESPONSE_FIELDS = ("totalTrades", "totalPnL", "winRate", "emotionalData")

RECOMMEND_METRIC_ERRORS = "Review psychological metrics calculation logic and input data"
RECOMMEND_EMOTIONAL_DATA_ERRORS = "Validate emotional data input and ensure proper data structure"
RECOMMEND_API_ERRORS = "Check upstream API response structure and field types"
RECOMMEND_PERFORMANCE_ERRORS = "Optimize calculation algorithms and consider caching strategies"
RECOMMEND_METRIC_WARNINGS = "Monitor psychological metrics consistency and user feedback"


def _payload_size(response_data: Any) -> int:
    return len(json.dumps(response_data, default=str))


def validate_api_response(
    response_data: Any,
    response_time: float,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> ApiResponseValidationResult:
    """
    Validate the stats payload returned by the upstream API.

    A slow response is a warning; a missing or mistyped field is an error.
    """
    result = ApiResponseValidationResult(response_time=response_time)

    if not (is_finite_number(response_time) and response_time >= 0):
        result.add_error(ValidationError(
            type=ValidationErrorType.TYPE, severity=ValidationSeverity.HIGH,
            message="API response time must be a non-negative number",
            field="responseTime", value=response_time, expected_value="number >= 0",
        ))
    elif response_time > config.max_calculation_time:
        result.add_warning(ValidationError(
            type=ValidationErrorType.PERFORMANCE, severity=ValidationSeverity.HIGH,
            message=f"API response time ({response_time:g}ms) exceeds maximum allowed ({config.max_calculation_time:g}ms)",
            field="responseTime", value=response_time, expected_value=f"<= {config.max_calculation_time:g}ms",
        ))

    if not isinstance(response_data, Mapping):
        result.add_error(ValidationError(
            type=ValidationErrorType.TYPE, severity=ValidationSeverity.CRITICAL,
            message="API response data is not a valid object",
            field="responseData", value=type(response_data).__name__, expected_value="object",
        ))
        return result

    for name in REQUIRED_RESPONSE_FIELDS:
        if name not in response_data:
            result.add_error(ValidationError(
                type=ValidationErrorType.DATA_INTEGRITY, severity=ValidationSeverity.HIGH,
                message=f"Missing required field in API response: {name}",
                field=name, expected_value="required",
            ))

    total_trades = response_data.get("totalTrades")
    if "totalTrades" in response_data and not (is_finite_number(total_trades) and total_trades >= 0):
        result.add_error(ValidationError(
            type=ValidationErrorType.TYPE, severity=ValidationSeverity.HIGH,
            message="totalTrades must be a non-negative number",
            field="totalTrades", value=total_trades, expected_value="number >= 0",
        ))

    total_pnl = response_data.get("totalPnL")
    if "totalPnL" in response_data and not is_finite_number(total_pnl):
        result.add_error(ValidationError(
            type=ValidationErrorType.TYPE, severity=ValidationSeverity.HIGH,
            message="totalPnL must be a valid number",
            field="totalPnL", value=total_pnl, expected_value="number",
        ))

    win_rate = response_data.get("winRate")
    if "winRate" in response_data and not (is_finite_number(win_rate) and 0 <= win_rate <= 100):
        result.add_error(ValidationError(
            type=ValidationErrorType.RANGE, severity=ValidationSeverity.HIGH,
            message="winRate must be between 0-100",
            field="winRate", value=win_rate, expected_value="0-100",
        ))

    result.data_size = _payload_size(response_data)
    result.timestamp = now_ms()
    return result


def validate_performance(
    calculation_time: float,
    memory_usage: Optional[int] = None,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> PerformanceValidationResult:
    """
    Flag a calculation that already ran over budget. Nothing is interrupted.

    Args:
        calculation_time: Elapsed time in ms
        memory_usage: Peak bytes, if measured
    """
    result = PerformanceValidationResult(calculation_time=calculation_time, memory_usage=memory_usage)

    timing_ok = is_finite_number(calculation_time) and calculation_time >= 0
    if not timing_ok:
        result.add_error(ValidationError(
            type=ValidationErrorType.TYPE, severity=ValidationSeverity.HIGH,
            message="Calculation time must be a non-negative number",
            field="calculationTime", value=calculation_time, expected_value="number >= 0",
        ))
    elif calculation_time > config.max_calculation_time:
        result.add_error(ValidationError(
            type=ValidationErrorType.PERFORMANCE, severity=ValidationSeverity.HIGH,
            message=(
                f"Calculation time ({calculation_time:g}ms) exceeds maximum allowed "
                f"({config.max_calculation_time:g}ms)"
            ),
            field="calculationTime", value=calculation_time, expected_value=f"<= {config.max_calculation_time:g}ms",
        ))

    if memory_usage is not None and not (is_finite_number(memory_usage) and memory_usage >= 0):
        result.add_error(ValidationError(
            type=ValidationErrorType.TYPE, severity=ValidationSeverity.MEDIUM,
            message="Memory usage must be a non-negative number of bytes",
            field="memoryUsage", value=memory_usage, expected_value="number >= 0",
        ))
    elif memory_usage is not None:
        limit = config.max_memory_usage_bytes
        if memory_usage > limit:
            result.add_warning(ValidationError(
                type=ValidationErrorType.PERFORMANCE, severity=ValidationSeverity.MEDIUM,
                message=(
                    f"Memory usage ({memory_usage / 1024 / 1024:.2f}MB) exceeds recommended limit "
                    f"({limit / 1024 / 1024:.2f}MB)"
                ),
                field="memoryUsage", value=memory_usage, expected_value=f"<= {limit} bytes",
            ))

    result.is_within_performance_threshold = timing_ok and calculation_time <= config.max_calculation_time
    return result


def perform_comprehensive_validation(
    discipline_level: float,
    tilt_control: float,
    emotional_data: Any,
    response_time: float,
    calculation_time: float,
    memory_usage: Optional[int] = None,
    response_data: Any = None,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> ComprehensiveValidationResult:
    """Run all four validators and union their findings. A missing payload is validated as {}."""
    psychological_metrics = validate_psychological_metrics(discipline_level, tilt_control, config)
    emotional = validate_emotional_data(emotional_data, config)
    api_response = validate_api_response(response_data if response_data is not None else {}, response_time, config)
    performance = validate_performance(calculation_time, memory_usage, config)

    overall = ValidationResult()
    for sub in (psychological_metrics, emotional, api_response, performance):
        overall.errors.extend(sub.errors)
        overall.warnings.extend(sub.warnings)
        overall.validation_errors.extend(sub.validation_errors)
    overall.is_valid = not overall.errors

    return ComprehensiveValidationResult(
        psychological_metrics=psychological_metrics,
        emotional_data=emotional,
        api_response=api_response,
        performance=performance,
        overall=overall,
    )


def _recommendations(results: ComprehensiveValidationResult) -> List[str]:
    recommendations = []
    if results.psychological_metrics.errors:
        recommendations.append(RECOMMEND_METRIC_ERRORS)
    if results.emotional_data.errors:
        recommendations.append(RECOMMEND_EMOTIONAL_DATA_ERRORS)
    if results.api_response.errors:
        recommendations.append(RECOMMEND_API_ERRORS)
    if results.performance.errors:
        recommendations.append(RECOMMEND_PERFORMANCE_ERRORS)
    if results.psychological_metrics.warnings:
        recommendations.append(RECOMMEND_METRIC_WARNINGS)
    return recommendations


def create_validation_report(
    context: ValidationContext,
    results: ComprehensiveValidationResult,
) -> ValidationReport:
    """Summarize a comprehensive result and attach recommendations."""
    overall = results.overall
    summary = ValidationSummary(
        total_errors=len(overall.errors),
        total_warnings=len(overall.warnings),
        critical_issues=sum(
            1 for f in overall.validation_errors if f.severity is ValidationSeverity.CRITICAL
        ),
        performance_issues=len(results.performance.errors) + len(results.performance.warnings),
        is_overall_valid=overall.is_valid,
    )
    return ValidationReport(
        context=context,
        results=results,
        summary=summary,
        recommendations=_recommendations(results),
    )


def log_validation_results(context: ValidationContext, results: ComprehensiveValidationResult) -> None:
    """Emit one structured log entry for the request. Observational only."""
    if not context.config.log_validation_failures:
        return

    report = create_validation_report(context, results)
    base = {"requestId": context.request_id, "userId": context.user_id, "timestamp": context.timestamp}

    if not results.overall.is_valid:
        logger.error(
            "[VALIDATION] Validation failed for request %s: %d error(s)",
            context.request_id, report.summary.total_errors,
            extra={"validation": {
                **base,
                "summary": report.summary.to_dict(),
                "errors": list(results.overall.errors),
                "recommendations": list(report.recommendations),
            }},
        )
    elif results.overall.warnings:
        logger.warning(
            "[VALIDATION] Validation completed with %d warning(s) for request %s",
            report.summary.total_warnings, context.request_id,
            extra={"validation": {**base, "warnings": list(results.overall.warnings)}},
        )
    else:
        logger.info(
            "[VALIDATION] Validation completed successfully for request %s (%.2f ms)",
            context.request_id, results.performance.calculation_time,
            extra={"validation": {
                **base,
                "performance": {
                    "calculationTime": results.performance.calculation_time,
                    "memoryUsage": results.performance.memory_usage,
                },
            }},
        )


def create_validation_context(
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> ValidationContext:
    """Create the per-request context. request_id defaults to a fresh UUID."""
    started = now_ms()
    return ValidationContext(
        request_id=request_id or new_request_id(),
        user_id=user_id,
        timestamp=started,
        config=config,
        performance_metrics=PerformanceMetrics(start_time=started),
    )


def finalize_validation_context(context: ValidationContext) -> ValidationContext:
    """Return a copy of context stamped with end time and elapsed ms. The input is untouched."""
    ended = now_ms()
    return replace(
        context,
        performance_metrics=replace(
            context.performance_metrics,
            end_time=ended,
            calculation_time=ended - context.performance_metrics.start_time,
        ),
    )
