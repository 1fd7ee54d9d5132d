"""
Psychological Metrics Consistency Validation

Checks a Discipline Level / Tilt Control pair for:
  - range: both must be within 0-100 (CRITICAL error)
  - deviation: |discipline - tilt| above max_deviation_between_metrics
    (CRITICAL error in strict mode, otherwise HIGH warning)
  - impossible states: >90 with <10 in either direction (CRITICAL error, always)
  - stability floor: PSI below min_psychological_stability_index (MEDIUM warning)

A metric that is not a number is a CRITICAL TYPE error; NaN or infinity is a
CRITICAL RANGE error. Either one skips the arithmetic checks, which otherwise
all run without short-circuiting each other. The reported discipline_level and
tilt_control are the inputs as given. When auto-correction is enabled and a
HIGH or CRITICAL finding was recorded, the rebalanced pair is attached as
corrected_data; adopting it is up to the caller.
"""

import numbers
from typing import Optional

import numpy as np

from utils.emotion_tags import is_finite_number
from utils.psychological_metrics import rebalance_deviation
from utils.validation_types import (
    DEFAULT_VALIDATION_CONFIG,
    CorrectedMetrics,
    PsychologicalMetricsValidationResult,
    ValidationConfig,
    ValidationError,
    ValidationErrorType,
    ValidationSeverity,
)

IMPOSSIBLE_HIGH_THRESHOLD = 90.0
IMPOSSIBLE_LOW_THRESHOLD = 10.0


def _in_range(value: float) -> bool:
    return 0.0 <= value <= 100.0


def is_impossible_state(discipline_level: float, tilt_control: float) -> Optional[str]:
    """Return a description of the impossible combination, or None."""
    if discipline_level > IMPOSSIBLE_HIGH_THRESHOLD and tilt_control < IMPOSSIBLE_LOW_THRESHOLD:
        return "Very high discipline with very low tilt control"
    if discipline_level < IMPOSSIBLE_LOW_THRESHOLD and tilt_control > IMPOSSIBLE_HIGH_THRESHOLD:
        return "Very low discipline with very high tilt control"
    return None


def auto_correct_metrics(
    discipline_level: float,
    tilt_control: float,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> CorrectedMetrics:
    """
    Clamp both metrics to 0-100, then pull the lower one up to within
    max_deviation_between_metrics of the higher one.

    Inputs that are not finite numbers are treated as 0 before clamping.
    """
    corrected_discipline = float(np.clip(discipline_level if is_finite_number(discipline_level) else 0.0, 0.0, 100.0))
    corrected_tilt = float(np.clip(tilt_control if is_finite_number(tilt_control) else 0.0, 0.0, 100.0))
    corrected_discipline, corrected_tilt = rebalance_deviation(
        corrected_discipline, corrected_tilt, config.max_deviation_between_metrics
    )
    return CorrectedMetrics(discipline_level=corrected_discipline, tilt_control=corrected_tilt)


def _check_metric(result: PsychologicalMetricsValidationResult, value: float, label: str, field: str) -> bool:
    """Record a CRITICAL finding for an unusable metric. True when the value can enter the arithmetic checks."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        result.add_error(ValidationError(
            type=ValidationErrorType.TYPE, severity=ValidationSeverity.CRITICAL,
            message=f"{label} must be a number",
            field=field, value=type(value).__name__, expected_value="number 0-100",
        ))
        return False
    if not is_finite_number(value) or not _in_range(value):
        result.add_error(ValidationError(
            type=ValidationErrorType.RANGE, severity=ValidationSeverity.CRITICAL,
            message=f"{label} must be between 0-100%",
            field=field, value=value, expected_value="0-100",
        ))
    return is_finite_number(value)


def validate_psychological_metrics(
    discipline_level: float,
    tilt_control: float,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> PsychologicalMetricsValidationResult:
    """
    Validate a metric pair for range, consistency and impossible states.

    Args:
        discipline_level: Discipline Level (expected 0-100)
        tilt_control: Tilt Control (expected 0-100)
        config: Thresholds and switches

    Returns:
        PsychologicalMetricsValidationResult; is_valid is False only when an error was recorded.
        When either metric is not a finite number, deviation and PSI are NaN and only the
        type/range findings are recorded.
    """
    result = PsychologicalMetricsValidationResult(
        discipline_level=discipline_level,
        tilt_control=tilt_control,
        psychological_stability_index=float("nan"),
        deviation=float("nan"),
    )

    discipline_ok = _check_metric(result, discipline_level, "Discipline Level", "disciplineLevel")
    tilt_ok = _check_metric(result, tilt_control, "Tilt Control", "tiltControl")
    if discipline_ok and tilt_ok:
        _check_consistency(result, discipline_level, tilt_control, config)

    if config.enable_auto_correction and result.findings_at_least(ValidationSeverity.HIGH):
        result.corrected_data = auto_correct_metrics(discipline_level, tilt_control, config)

    return result


def _check_consistency(
    result: PsychologicalMetricsValidationResult,
    discipline_level: float,
    tilt_control: float,
    config: ValidationConfig,
) -> None:
    deviation = abs(discipline_level - tilt_control)
    psi = (discipline_level + tilt_control) / 2
    result.deviation = deviation
    result.psychological_stability_index = psi

    max_deviation = config.max_deviation_between_metrics
    if deviation > max_deviation:
        finding = ValidationError(
            type=ValidationErrorType.CONSISTENCY,
            severity=ValidationSeverity.CRITICAL if config.strict_mode else ValidationSeverity.HIGH,
            message=(
                f"Large deviation ({deviation:.1f}%) detected between Discipline Level and Tilt Control. "
                f"Maximum allowed: {max_deviation:g}%"
            ),
            field="metrics",
            value={"disciplineLevel": discipline_level, "tiltControl": tilt_control, "deviation": deviation},
            expected_value=f"deviation <= {max_deviation:g}%",
        )
        if config.strict_mode:
            result.add_error(finding)
        else:
            result.add_warning(finding)

    impossible = is_impossible_state(discipline_level, tilt_control)
    if impossible:
        result.add_error(ValidationError(
            type=ValidationErrorType.CONSISTENCY, severity=ValidationSeverity.CRITICAL,
            message=f"Impossible psychological state detected: {impossible}",
            field="metrics",
            value={"disciplineLevel": discipline_level, "tiltControl": tilt_control},
            expected_value="consistent psychological state",
        ))

    floor = config.min_psychological_stability_index
    if psi < floor:
        result.add_warning(ValidationError(
            type=ValidationErrorType.CONSISTENCY, severity=ValidationSeverity.MEDIUM,
            message=f"Psychological Stability Index ({psi:.1f}%) is below minimum threshold ({floor:g}%)",
            field="psychologicalStabilityIndex", value=psi, expected_value=f">= {floor:g}%",
        ))
