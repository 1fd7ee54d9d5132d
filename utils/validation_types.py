"""
Validation Types

Data model shared by the emotion tag normalizer, the metric calculator, the
consistency validator and the report aggregator.

All scores are on a 0-100 scale:
- Discipline Level: rule adherence
- Tilt Control: emotional self-control
- Psychological Stability Index (PSI): average of the two, always derived

Every result type has a to_dict() that returns the camelCase payload handed to
the rendering layer and to structured logs.
"""

import dataclasses
import math
import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

import config


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class ValidationErrorType(Enum):
    """Category of a validation finding."""
    RANGE = "RANGE_ERROR"
    TYPE = "TYPE_ERROR"
    CONSISTENCY = "CONSISTENCY_ERROR"
    DATA_INTEGRITY = "DATA_INTEGRITY_ERROR"
    NULL_VALUE = "NULL_VALUE_ERROR"
    PERFORMANCE = "PERFORMANCE_ERROR"


class ValidationSeverity(Enum):
    """Severity of a validation finding. CRITICAL and HIGH outrank MEDIUM and LOW."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    ValidationSeverity.LOW: 0,
    ValidationSeverity.MEDIUM: 1,
    ValidationSeverity.HIGH: 2,
    ValidationSeverity.CRITICAL: 3,
}


@dataclass
class EmotionTag:
    """One recorded emotional state for a trade, as supplied by the data layer."""
    subject: str
    value: float
    full_mark: Optional[float] = None
    leaning: Optional[str] = None
    side: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"subject": self.subject, "value": self.value}
        if self.full_mark is not None:
            out["fullMark"] = self.full_mark
        if self.leaning is not None:
            out["leaning"] = self.leaning
        if self.side is not None:
            out["side"] = self.side
        return out


@dataclass(frozen=True)
class PsychologicalMetrics:
    """Discipline Level and Tilt Control, each 0-100."""
    discipline_level: float = 50.0
    tilt_control: float = 50.0

    @property
    def psychological_stability_index(self) -> float:
        return (self.discipline_level + self.tilt_control) / 2

    def to_dict(self) -> Dict[str, float]:
        return {"disciplineLevel": self.discipline_level, "tiltControl": self.tilt_control}


@dataclass(frozen=True)
class ValidationConfig:
    """
    Thresholds and switches for one validation request.

    Frozen: derive variants with dataclasses.replace() or with_overrides().
    DEFAULT_VALIDATION_CONFIG holds the documented defaults; from_env() reads
    the values from config.py instead.
    """
    max_deviation_between_metrics: float = 15.0
    min_psychological_stability_index: float = 20.0
    max_calculation_time: float = 2000.0  # ms
    enable_auto_correction: bool = False
    strict_mode: bool = False
    log_validation_failures: bool = True
    max_memory_usage_mb: float = 50.0

    def __post_init__(self):
        if not (0 <= self.max_deviation_between_metrics <= 100):
            raise ValueError(f"max_deviation_between_metrics must be 0-100, got {self.max_deviation_between_metrics}")
        if not (0 <= self.min_psychological_stability_index <= 100):
            raise ValueError(
                f"min_psychological_stability_index must be 0-100, got {self.min_psychological_stability_index}"
            )
        if not self.max_calculation_time > 0:
            raise ValueError(f"max_calculation_time must be positive, got {self.max_calculation_time}")
        if not self.max_memory_usage_mb > 0:
            raise ValueError(f"max_memory_usage_mb must be positive, got {self.max_memory_usage_mb}")

    @classmethod
    def from_env(cls) -> "ValidationConfig":
        return cls(**config.get_validation_config())

    def with_overrides(self, **changes: Any) -> "ValidationConfig":
        return replace(self, **changes)

    @property
    def max_memory_usage_bytes(self) -> int:
        return int(self.max_memory_usage_mb * 1024 * 1024)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "maxDeviationBetweenMetrics": self.max_deviation_between_metrics,
            "minPsychologicalStabilityIndex": self.min_psychological_stability_index,
            "maxCalculationTime": self.max_calculation_time,
            "enableAutoCorrection": self.enable_auto_correction,
            "strictMode": self.strict_mode,
            "logValidationFailures": self.log_validation_failures,
            "maxMemoryUsageMb": self.max_memory_usage_mb,
        }


DEFAULT_VALIDATION_CONFIG = ValidationConfig()


def _plain(value: Any) -> Any:
    """Make a finding's value JSON friendly (NaN/inf become strings)."""
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return repr(value)


@dataclass(frozen=True)
class ValidationError:
    """A single structured finding. Whether it blocks is decided by the validator that records it."""
    type: ValidationErrorType
    severity: ValidationSeverity
    message: str
    field: Optional[str] = None
    value: Any = None
    expected_value: Any = None
    timestamp: int = dataclasses.field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "field": self.field,
            "value": _plain(self.value),
            "expectedValue": _plain(self.expected_value),
            "timestamp": self.timestamp,
        }


@dataclass
class ValidationResult:
    """Base result: plain-string errors and warnings plus the structured findings behind them."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    validation_errors: List[ValidationError] = field(default_factory=list)

    def add_error(self, finding: ValidationError) -> None:
        self.errors.append(finding.message)
        self.validation_errors.append(finding)
        self.is_valid = False

    def add_warning(self, finding: ValidationError) -> None:
        self.warnings.append(finding.message)
        self.validation_errors.append(finding)

    def findings_at_least(self, severity: ValidationSeverity) -> List[ValidationError]:
        return [f for f in self.validation_errors if f.severity.rank >= severity.rank]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "validationErrors": [f.to_dict() for f in self.validation_errors],
        }


@dataclass
class EmotionalDataValidationResult(ValidationResult):
    valid_emotions: List[str] = field(default_factory=list)
    invalid_emotions: List[str] = field(default_factory=list)
    total_emotions: int = 0
    duplicate_emotions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out.update({
            "validEmotions": list(self.valid_emotions),
            "invalidEmotions": list(self.invalid_emotions),
            "totalEmotions": self.total_emotions,
            "duplicateEmotions": list(self.duplicate_emotions),
        })
        return out


@dataclass(frozen=True)
class CorrectedMetrics:
    discipline_level: float
    tilt_control: float

    @property
    def psychological_stability_index(self) -> float:
        return (self.discipline_level + self.tilt_control) / 2

    def to_dict(self) -> Dict[str, float]:
        return {
            "disciplineLevel": self.discipline_level,
            "tiltControl": self.tilt_control,
            "psychologicalStabilityIndex": self.psychological_stability_index,
        }


@dataclass
class PsychologicalMetricsValidationResult(ValidationResult):
    discipline_level: float = 0.0
    tilt_control: float = 0.0
    psychological_stability_index: float = 0.0
    deviation: float = 0.0
    corrected_data: Optional[CorrectedMetrics] = None

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out.update({
            "disciplineLevel": _plain(self.discipline_level),
            "tiltControl": _plain(self.tilt_control),
            "psychologicalStabilityIndex": _plain(self.psychological_stability_index),
            "deviation": _plain(self.deviation),
        })
        if self.corrected_data is not None:
            out["correctedData"] = self.corrected_data.to_dict()
        return out


@dataclass
class ApiResponseValidationResult(ValidationResult):
    response_time: float = 0.0
    data_size: Optional[int] = None
    timestamp: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["responseTime"] = _plain(self.response_time)
        if self.data_size is not None:
            out["dataSize"] = self.data_size
        if self.timestamp is not None:
            out["timestamp"] = self.timestamp
        return out


@dataclass
class PerformanceValidationResult(ValidationResult):
    calculation_time: float = 0.0
    memory_usage: Optional[int] = None
    is_within_performance_threshold: bool = True

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out.update({
            "calculationTime": _plain(self.calculation_time),
            "memoryUsage": _plain(self.memory_usage),
            "isWithinPerformanceThreshold": self.is_within_performance_threshold,
        })
        return out


@dataclass
class ComprehensiveValidationResult:
    psychological_metrics: PsychologicalMetricsValidationResult
    emotional_data: EmotionalDataValidationResult
    api_response: ApiResponseValidationResult
    performance: PerformanceValidationResult
    overall: ValidationResult

    def sub_results(self) -> List[ValidationResult]:
        return [self.psychological_metrics, self.emotional_data, self.api_response, self.performance]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "psychologicalMetrics": self.psychological_metrics.to_dict(),
            "emotionalData": self.emotional_data.to_dict(),
            "apiResponse": self.api_response.to_dict(),
            "performance": self.performance.to_dict(),
            "overall": self.overall.to_dict(),
        }


@dataclass(frozen=True)
class PerformanceMetrics:
    start_time: int
    end_time: Optional[int] = None
    calculation_time: Optional[int] = None  # ms

    def to_dict(self) -> Dict[str, Any]:
        return {"startTime": self.start_time, "endTime": self.end_time, "calculationTime": self.calculation_time}


@dataclass(frozen=True)
class ValidationContext:
    """Per-request context. Never shared between requests; finalizing returns a new instance."""
    request_id: str
    user_id: Optional[str]
    timestamp: int
    config: ValidationConfig
    performance_metrics: PerformanceMetrics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requestId": self.request_id,
            "userId": self.user_id,
            "timestamp": self.timestamp,
            "config": self.config.to_dict(),
            "performanceMetrics": self.performance_metrics.to_dict(),
        }


def new_request_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ValidationSummary:
    total_errors: int
    total_warnings: int
    critical_issues: int
    performance_issues: int
    is_overall_valid: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalErrors": self.total_errors,
            "totalWarnings": self.total_warnings,
            "criticalIssues": self.critical_issues,
            "performanceIssues": self.performance_issues,
            "isOverallValid": self.is_overall_valid,
        }


@dataclass
class ValidationReport:
    context: ValidationContext
    results: ComprehensiveValidationResult
    summary: ValidationSummary
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "context": self.context.to_dict(),
            "results": self.results.to_dict(),
            "summary": self.summary.to_dict(),
            "recommendations": list(self.recommendations),
        }
