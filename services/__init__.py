"""
Services package for the Trading Psychology Metrics Engine.

- validation_report: API payload and performance validators, comprehensive
  validation, reports and structured logging
- metrics_pipeline: end-to-end calculate + validate for one request
"""

from .metrics_pipeline import MetricsAnalysis, analyze_emotional_data
from .validation_report import (
    create_validation_context,
    create_validation_report,
    finalize_validation_context,
    log_validation_results,
    perform_comprehensive_validation,
    validate_api_response,
    validate_performance,
)

__all__ = [
    'MetricsAnalysis',
    'analyze_emotional_data',
    'create_validation_context',
    'create_validation_report',
    'finalize_validation_context',
    'log_validation_results',
    'perform_comprehensive_validation',
    'validate_api_response',
    'validate_performance',
]
