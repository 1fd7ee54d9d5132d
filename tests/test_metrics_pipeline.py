"""
Metrics pipeline tests.

Runs analyze_emotional_data end to end with explicit configs so results do
not depend on the environment.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
import unittest
from unittest.mock import patch

from tests.fixtures.emotional_data import make_tag, make_valid_api_response, make_valid_emotional_data
from utils.psychological_metrics import calculate_metrics
from utils.validation_types import DEFAULT_VALIDATION_CONFIG, ValidationConfig

QUIET = DEFAULT_VALIDATION_CONFIG.with_overrides(log_validation_failures=False)


class TestAnalyzeEmotionalData(unittest.TestCase):
    """analyze_emotional_data."""

    def test_clean_request(self):
        from services.metrics_pipeline import analyze_emotional_data
        analysis = analyze_emotional_data(
            make_valid_emotional_data(),
            response_data=make_valid_api_response(),
            response_time=120,
            user_id="trader-7",
            request_id="req-clean",
            config_override=QUIET,
            track_memory=False,
        )
        self.assertAlmostEqual(analysis.metrics.discipline_level, 87.79, places=2)
        self.assertTrue(analysis.validation.overall.is_valid)
        self.assertEqual(analysis.report.summary.total_warnings, 0)
        self.assertEqual(analysis.context.request_id, "req-clean")
        self.assertEqual(analysis.context.user_id, "trader-7")
        self.assertIsNotNone(analysis.context.performance_metrics.end_time)
        self.assertIsNone(analysis.validation.performance.memory_usage)
        self.assertLess(analysis.validation.performance.calculation_time, QUIET.max_calculation_time)

    def test_null_data_still_returns_metrics(self):
        from services.metrics_pipeline import analyze_emotional_data
        analysis = analyze_emotional_data(
            None, response_data=make_valid_api_response(), config_override=QUIET, track_memory=False
        )
        self.assertEqual(analysis.metrics.to_dict(), {"disciplineLevel": 50, "tiltControl": 50})
        self.assertFalse(analysis.validation.overall.is_valid)
        self.assertEqual(analysis.validation.emotional_data.errors, ["Emotional data is null or undefined"])
        self.assertIn(
            "Validate emotional data input and ensure proper data structure",
            analysis.report.recommendations,
        )

    def test_memory_tracking(self):
        from services.metrics_pipeline import analyze_emotional_data
        analysis = analyze_emotional_data(
            make_valid_emotional_data(), response_data=make_valid_api_response(),
            config_override=QUIET, track_memory=True,
        )
        self.assertIsInstance(analysis.validation.performance.memory_usage, int)
        self.assertGreaterEqual(analysis.validation.performance.memory_usage, 0)

    def test_low_stability_warning_flows_through(self):
        from services.metrics_pipeline import analyze_emotional_data
        data = [make_tag("TILT", 100), make_tag("DISCIPLINE", 0)]
        analysis = analyze_emotional_data(
            data, response_data=make_valid_api_response(), config_override=QUIET, track_memory=False
        )
        self.assertTrue(analysis.validation.overall.is_valid)
        self.assertEqual(len(analysis.validation.psychological_metrics.warnings), 1)
        self.assertIn("Monitor psychological metrics consistency and user feedback", analysis.report.recommendations)

    def test_to_dict_is_json_serializable(self):
        from services.metrics_pipeline import analyze_emotional_data
        analysis = analyze_emotional_data(
            make_valid_emotional_data(), response_data=make_valid_api_response(),
            config_override=QUIET, track_memory=False,
        )
        payload = json.loads(json.dumps(analysis.to_dict()))
        self.assertEqual(payload["metrics"]["disciplineLevel"], analysis.metrics.discipline_level)
        self.assertIn("summary", payload)
        self.assertNotIn("correctedMetrics", payload)

    def test_defaults_to_env_config(self):
        from services import metrics_pipeline
        env_config = ValidationConfig(log_validation_failures=False, max_calculation_time=500)
        with patch.object(metrics_pipeline.ValidationConfig, "from_env", return_value=env_config) as mock_from_env:
            analysis = metrics_pipeline.analyze_emotional_data(
                [make_tag("NEUTRAL", 50)], response_data=make_valid_api_response(), track_memory=False
            )
        mock_from_env.assert_called_once()
        self.assertIs(analysis.context.config, env_config)

    def test_logs_once_per_request(self):
        from services.metrics_pipeline import analyze_emotional_data
        with self.assertLogs("services.validation_report", level="INFO") as logs:
            analyze_emotional_data(
                make_valid_emotional_data(), response_data=make_valid_api_response(),
                request_id="req-logged", config_override=DEFAULT_VALIDATION_CONFIG, track_memory=False,
            )
        self.assertEqual(len(logs.records), 1)
        self.assertEqual(logs.records[0].validation["requestId"], "req-logged")


class TestMeasureCalculation(unittest.TestCase):
    """measure_calculation timing helper."""

    def test_returns_metrics_and_timing(self):
        from services.metrics_pipeline import measure_calculation
        metrics, elapsed_ms, peak = measure_calculation([make_tag("DISCIPLINE", 100)])
        self.assertEqual(metrics.discipline_level, 100.0)
        self.assertGreaterEqual(elapsed_ms, 0.0)
        self.assertIsNone(peak)

    def test_stops_tracing_it_started(self):
        import tracemalloc
        from services.metrics_pipeline import measure_calculation
        self.assertFalse(tracemalloc.is_tracing())
        _, _, peak = measure_calculation([make_tag("DISCIPLINE", 100)], track_memory=True)
        self.assertIsNotNone(peak)
        self.assertFalse(tracemalloc.is_tracing())

    def test_overlapping_measurement_keeps_tracing(self):
        """An inner measurement finishing first must not stop tracing for the outer one."""
        import tracemalloc
        from services.metrics_pipeline import measure_calculation
        tracing_after_inner = []

        def calculator(data):
            inner_metrics, _, inner_peak = measure_calculation(data, track_memory=True)
            tracing_after_inner.append((tracemalloc.is_tracing(), inner_peak))
            return inner_metrics

        metrics, _, peak = measure_calculation(make_valid_emotional_data(), track_memory=True, calculator=calculator)
        self.assertAlmostEqual(metrics.discipline_level, 87.79, places=2)
        self.assertTrue(tracing_after_inner[0][0])
        self.assertGreater(tracing_after_inner[0][1], 0)
        self.assertGreater(peak, 0)
        self.assertFalse(tracemalloc.is_tracing())

    def test_concurrent_measurements(self):
        import threading
        import tracemalloc
        from services.metrics_pipeline import measure_calculation
        barrier = threading.Barrier(2, timeout=10)
        peaks = []

        def calculator(data):
            barrier.wait()
            metrics = calculate_metrics(data)
            barrier.wait()
            return metrics

        def worker():
            _, _, peak = measure_calculation(make_valid_emotional_data(), track_memory=True, calculator=calculator)
            peaks.append(peak)

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)
        self.assertEqual(len(peaks), 2)
        self.assertTrue(all(p > 0 for p in peaks))
        self.assertFalse(tracemalloc.is_tracing())


if __name__ == "__main__":
    unittest.main()
