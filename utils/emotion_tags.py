"""
Emotion Tag Normalizer

Parses and validates the emotional tags recorded against trades. Each raw entry
(a dict from the data layer, or an EmotionTag) is parsed into exactly one of:

  MalformedTag       - no usable subject; nothing downstream may read it
  UnknownEmotionTag  - well-formed, subject outside KNOWN_EMOTIONS
  KnownEmotionTag    - well-formed, subject in KNOWN_EMOTIONS

Subjects are normalized (trim + uppercase) at parse time, so "fomo " and "FOMO"
are the same emotion everywhere after this module.

validate_emotional_data() never raises; problems are returned as errors
(blocking) and warnings (advisory).
"""

import numbers
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, List, Optional, Union

import numpy as np

from utils.validation_types import (
    DEFAULT_VALIDATION_CONFIG,
    EmotionalDataValidationResult,
    ValidationConfig,
    ValidationError,
    ValidationErrorType,
    ValidationSeverity,
)

# Emotions offered by the trade form.
KNOWN_EMOTIONS = (
    "FOMO", "REVENGE", "TILT", "OVERRISK", "PATIENCE",
    "REGRET", "DISCIPLINE", "CONFIDENT", "ANXIOUS", "NEUTRAL",
)

MIN_TAG_VALUE = 0.0
MAX_TAG_VALUE = 100.0


@dataclass(frozen=True)
class MalformedTag:
    index: int
    raw_subject: Any


@dataclass(frozen=True)
class WellFormedTag:
    index: int
    subject: str
    value: Any
    full_mark: Any = None
    leaning: Any = None
    side: Any = None

    @property
    def has_finite_value(self) -> bool:
        return is_finite_number(self.value)

    @property
    def numeric_value(self) -> float:
        """Value as float; 0 when not a finite number. Out-of-range values are kept as given."""
        if not self.has_finite_value:
            return 0.0
        return float(self.value)


@dataclass(frozen=True)
class UnknownEmotionTag(WellFormedTag):
    pass


@dataclass(frozen=True)
class KnownEmotionTag(WellFormedTag):
    pass


ParsedTag = Union[MalformedTag, UnknownEmotionTag, KnownEmotionTag]


def is_finite_number(value: Any) -> bool:
    """True for real, finite numbers. bool is not a number here."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return bool(np.isfinite(float(value)))


def is_tag_sequence(data: Any) -> bool:
    """True if data is an ordered collection of tags (str/bytes/dicts don't count)."""
    return isinstance(data, Sequence) and not isinstance(data, (str, bytes, bytearray, Mapping))


def normalize_subject(subject: str) -> str:
    return subject.strip().upper()


def _read(raw: Any, *names: str) -> Any:
    """Read the first present field, accepting dicts (camelCase) and objects (snake_case)."""
    for name in names:
        if isinstance(raw, Mapping):
            if name in raw:
                return raw[name]
        elif hasattr(raw, name):
            return getattr(raw, name)
    return None


def parse_emotion_tag(index: int, raw: Any) -> ParsedTag:
    """Parse one raw entry into its tagged variant."""
    subject = _read(raw, "subject")
    if not isinstance(subject, str) or not subject.strip():
        return MalformedTag(index=index, raw_subject=subject)
    name = normalize_subject(subject)
    cls = KnownEmotionTag if name in KNOWN_EMOTIONS else UnknownEmotionTag
    return cls(
        index=index,
        subject=name,
        value=_read(raw, "value"),
        full_mark=_read(raw, "fullMark", "full_mark"),
        leaning=_read(raw, "leaning"),
        side=_read(raw, "side"),
    )


def parse_emotional_data(data: Any) -> List[ParsedTag]:
    """Parse a whole collection. Anything that is not a tag sequence parses to []."""
    if not is_tag_sequence(data):
        return []
    return [parse_emotion_tag(i, raw) for i, raw in enumerate(data)]


def _finding(type_, severity, message, field=None, value=None, expected=None) -> ValidationError:
    return ValidationError(
        type=type_, severity=severity, message=message,
        field=field, value=value, expected_value=expected,
    )


def validate_emotional_data(
    emotional_data: Any,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> EmotionalDataValidationResult:
    """
    Validate structure and values of an emotional data set.

    Args:
        emotional_data: Sequence of tags; None or other shapes are reported, not raised
        config: Validation config (accepted for a uniform signature; no threshold applies here)

    Returns:
        EmotionalDataValidationResult. is_valid is False only when an error was recorded;
        duplicates and unknown emotions produce warnings.
    """
    result = EmotionalDataValidationResult()

    if emotional_data is None:
        result.add_error(_finding(
            ValidationErrorType.NULL_VALUE, ValidationSeverity.CRITICAL,
            "Emotional data is null or undefined", "emotionalData",
        ))
        return result

    if not is_tag_sequence(emotional_data):
        result.add_error(_finding(
            ValidationErrorType.TYPE, ValidationSeverity.CRITICAL,
            "Emotional data must be an array", "emotionalData",
            type(emotional_data).__name__, "array",
        ))
        return result

    result.total_emotions = len(emotional_data)
    if result.total_emotions == 0:
        result.add_warning(_finding(
            ValidationErrorType.DATA_INTEGRITY, ValidationSeverity.MEDIUM,
            "Emotional data array is empty: no emotions recorded", "emotionalData",
        ))
        return result

    seen = set()
    for tag in parse_emotional_data(emotional_data):
        prefix = f"emotionalData[{tag.index}]"

        if isinstance(tag, MalformedTag):
            result.add_error(_finding(
                ValidationErrorType.DATA_INTEGRITY, ValidationSeverity.HIGH,
                f"Emotion at index {tag.index} has invalid or missing subject field",
                f"{prefix}.subject", tag.raw_subject, "string",
            ))
            continue

        name = tag.subject
        if name in seen:
            if name not in result.duplicate_emotions:
                result.duplicate_emotions.append(name)
            result.add_warning(_finding(
                ValidationErrorType.DATA_INTEGRITY, ValidationSeverity.MEDIUM,
                f"Duplicate emotion found: {name}", f"{prefix}.subject", name,
            ))
        else:
            seen.add(name)

        if isinstance(tag, KnownEmotionTag):
            result.valid_emotions.append(name)
        else:
            result.invalid_emotions.append(name)
            result.add_warning(_finding(
                ValidationErrorType.DATA_INTEGRITY, ValidationSeverity.LOW,
                f"Unknown emotion: {name}", f"{prefix}.subject", name, list(KNOWN_EMOTIONS),
            ))

        _check_value(result, tag, prefix)
        _check_optional_fields(result, tag, prefix)

    return result


def _check_value(result: EmotionalDataValidationResult, tag: WellFormedTag, prefix: str) -> None:
    if not tag.has_finite_value:
        result.add_error(_finding(
            ValidationErrorType.TYPE, ValidationSeverity.HIGH,
            f"Emotion {tag.subject} has invalid value: {tag.value}",
            f"{prefix}.value", tag.value, "number",
        ))
    elif not (MIN_TAG_VALUE <= tag.value <= MAX_TAG_VALUE):
        result.add_error(_finding(
            ValidationErrorType.RANGE, ValidationSeverity.HIGH,
            f"Emotion {tag.subject} value ({tag.value}) must be between 0-100",
            f"{prefix}.value", tag.value, "0-100",
        ))


def _check_optional_fields(result: EmotionalDataValidationResult, tag: WellFormedTag, prefix: str) -> None:
    full_mark: Optional[Any] = tag.full_mark
    if full_mark is not None and not (is_finite_number(full_mark) and full_mark > 0):
        result.add_error(_finding(
            ValidationErrorType.RANGE, ValidationSeverity.MEDIUM,
            f"Emotion {tag.subject} has invalid fullMark: {full_mark}",
            f"{prefix}.fullMark", full_mark, "positive number",
        ))
    if tag.leaning is not None and not isinstance(tag.leaning, str):
        result.add_warning(_finding(
            ValidationErrorType.TYPE, ValidationSeverity.LOW,
            f"Emotion {tag.subject} has invalid leaning type",
            f"{prefix}.leaning", type(tag.leaning).__name__, "string",
        ))
