"""
Utilities package for the Trading Psychology Metrics Engine.

This package contains the data model, the emotion tag normalizer, the metric
calculator and the consistency validator.
"""

from .validation_types import (
    DEFAULT_VALIDATION_CONFIG,
    EmotionTag,
    PsychologicalMetrics,
    ValidationConfig,
    ValidationError,
    ValidationErrorType,
    ValidationSeverity,
)
from .emotion_tags import KNOWN_EMOTIONS, validate_emotional_data
from .psychological_metrics import calculate_metrics
from .metrics_validation import auto_correct_metrics, validate_psychological_metrics

__all__ = [
    'DEFAULT_VALIDATION_CONFIG',
    'EmotionTag',
    'PsychologicalMetrics',
    'ValidationConfig',
    'ValidationError',
    'ValidationErrorType',
    'ValidationSeverity',
    'KNOWN_EMOTIONS',
    'validate_emotional_data',
    'calculate_metrics',
    'auto_correct_metrics',
    'validate_psychological_metrics',
]
