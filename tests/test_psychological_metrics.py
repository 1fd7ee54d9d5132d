"""
Metric calculator tests.

Expected values are worked through the formula in utils/psychological_metrics.py:
bucket percentages -> ESS -> PSI -> coupling -> deviation clamp -> rounding.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest

from tests.fixtures.emotional_data import make_tag, make_valid_emotional_data


class TestCalculateMetrics(unittest.TestCase):
    """calculate_metrics end to end."""

    def setUp(self):
        from utils.psychological_metrics import calculate_metrics
        self.calculate = calculate_metrics

    def test_empty_returns_neutral(self):
        """[] gives exactly 50/50."""
        self.assertEqual(self.calculate([]).to_dict(), {"disciplineLevel": 50, "tiltControl": 50})

    def test_none_and_wrong_shapes_return_neutral(self):
        for bad in (None, "DISCIPLINE", {"subject": "DISCIPLINE", "value": 90}, 12):
            with self.subTest(bad=bad):
                metrics = self.calculate(bad)
                self.assertEqual(metrics.discipline_level, 50.0)
                self.assertEqual(metrics.tilt_control, 50.0)

    def test_full_tilt_with_zero_discipline(self):
        """negative 50%, ESS -75, PSI 12.5, coupled 19.0625 -> 19.06."""
        metrics = self.calculate([make_tag("TILT", 100), make_tag("DISCIPLINE", 0)])
        self.assertEqual(metrics.discipline_level, 19.06)
        self.assertEqual(metrics.tilt_control, 19.06)

    def test_all_positive_saturates(self):
        metrics = self.calculate([make_tag("DISCIPLINE", 100)])
        self.assertEqual(metrics.to_dict(), {"disciplineLevel": 100.0, "tiltControl": 100.0})

    def test_all_negative_floors(self):
        metrics = self.calculate([make_tag("TILT", 100)])
        self.assertEqual(metrics.to_dict(), {"disciplineLevel": 0.0, "tiltControl": 0.0})

    def test_neutral_bucket(self):
        """neutral 50 -> ESS 50 -> PSI 75 -> 75 + 11.25."""
        metrics = self.calculate([make_tag("NEUTRAL", 50)])
        self.assertEqual(metrics.discipline_level, 86.25)

    def test_unclassified_tags_dilute(self):
        """Unclassified emotions count toward the denominator only: PSI 50 -> 65."""
        self.assertEqual(self.calculate([make_tag("FOMO", 80)]).discipline_level, 65.0)

    def test_mixed_buckets(self):
        """positive 30, negative 10 -> ESS 45 -> PSI 72.5 -> 84.46."""
        metrics = self.calculate([make_tag("DISCIPLINE", 60), make_tag("TILT", 20)])
        self.assertAlmostEqual(metrics.discipline_level, 84.46, places=2)

    def test_valid_fixture(self):
        """CONFIDENT is in the tag vocabulary but not in the positive bucket (CONFIDENCE is)."""
        metrics = self.calculate(make_valid_emotional_data())
        self.assertAlmostEqual(metrics.discipline_level, 87.79, places=2)
        self.assertAlmostEqual(metrics.tilt_control, 87.79, places=2)

    def test_subjects_are_normalized(self):
        self.assertEqual(self.calculate([make_tag("  discipline ", 100)]).discipline_level, 100.0)

    def test_malformed_entries_count_but_contribute_nothing(self):
        """3 entries, only DISCIPLINE 100 usable: PSI 83.33 -> 91.67."""
        data = [None, {"value": 50}, make_tag("DISCIPLINE", 100)]
        self.assertAlmostEqual(self.calculate(data).discipline_level, 91.67, places=2)

    def test_bad_values_never_raise(self):
        for bad in ("abc", None, float("nan"), float("inf"), -float("inf"), True):
            with self.subTest(value=bad):
                metrics = self.calculate([make_tag("DISCIPLINE", bad), make_tag("TILT", bad)])
                self.assertGreaterEqual(metrics.discipline_level, 0.0)
                self.assertLessEqual(metrics.discipline_level, 100.0)

    def test_out_of_range_values_are_summed_as_given(self):
        """Only PSI and the final scores are clipped, not individual tag values."""
        # positive -50, neutral 25 -> ESS -75 -> PSI 12.5 -> 19.0625
        metrics = self.calculate([make_tag("DISCIPLINE", -100), make_tag("NEUTRAL", 50)])
        self.assertEqual(metrics.discipline_level, 19.06)
        # positive 75, negative 50 -> ESS 75 -> PSI 87.5 -> 94.0625
        metrics = self.calculate([make_tag("DISCIPLINE", 150), make_tag("TILT", 100)])
        self.assertEqual(metrics.discipline_level, 94.06)
        # negative -20 -> ESS 30 -> PSI 65 -> 78.65
        metrics = self.calculate([make_tag("REVENGE", -40), make_tag("NEUTRAL", 0)])
        self.assertAlmostEqual(metrics.discipline_level, 78.65, places=2)
        self.assertEqual(self.calculate([make_tag("DISCIPLINE", 150)]).discipline_level, 100.0)

    def test_overflowing_sums_stay_in_range(self):
        """inf - inf in the ESS falls back to the neutral PSI instead of NaN."""
        huge = 1e308
        data = [make_tag("DISCIPLINE", huge), make_tag("DISCIPLINE", huge),
                make_tag("TILT", huge), make_tag("TILT", huge)]
        metrics = self.calculate(data)
        self.assertEqual(metrics.discipline_level, 65.0)
        self.assertEqual(metrics.tilt_control, 65.0)

    def test_outputs_always_in_range_and_rounded(self):
        subjects = ["DISCIPLINE", "CONFIDENCE", "PATIENCE", "TILT", "REVENGE", "IMPATIENCE", "NEUTRAL", "FOMO"]
        for i, subject in enumerate(subjects):
            for value in (0, 13, 37, 50, 71, 99, 100):
                data = [make_tag(subject, value), make_tag(subjects[-1 - i], 100 - value)]
                metrics = self.calculate(data)
                for score in (metrics.discipline_level, metrics.tilt_control):
                    self.assertGreaterEqual(score, 0.0)
                    self.assertLessEqual(score, 100.0)
                    self.assertEqual(score, round(score, 2))

    def test_coupling_keeps_metrics_equal(self):
        """Both metrics come from the same PSI with the same adjustment."""
        for data in ([make_tag("DISCIPLINE", 80), make_tag("TILT", 60)], make_valid_emotional_data()):
            metrics = self.calculate(data)
            self.assertEqual(metrics.discipline_level, metrics.tilt_control)


class TestCalculatorSteps(unittest.TestCase):
    """Individual formula steps."""

    def test_ess_weights(self):
        from utils.psychological_metrics import emotional_stability_score
        self.assertEqual(emotional_stability_score(10, 20, 30), 10 * 2.0 + 30 * 1.0 - 20 * 1.5)

    def test_psi_is_clipped(self):
        from utils.psychological_metrics import stability_index_from_ess
        self.assertEqual(stability_index_from_ess(500), 100.0)
        self.assertEqual(stability_index_from_ess(-500), 0.0)
        self.assertEqual(stability_index_from_ess(0), 50.0)

    def test_coupled_score_fixed_points(self):
        from utils.psychological_metrics import coupled_score
        self.assertEqual(coupled_score(0), 0.0)
        self.assertEqual(coupled_score(100), 100.0)
        self.assertEqual(coupled_score(50), 65.0)

    def test_rebalance_raises_lower_metric(self):
        from utils.psychological_metrics import CALCULATOR_MAX_DEVIATION, rebalance_deviation
        self.assertEqual(rebalance_deviation(100, 40, CALCULATOR_MAX_DEVIATION), (100, 70))
        self.assertEqual(rebalance_deviation(20, 90, CALCULATOR_MAX_DEVIATION), (60, 90))
        self.assertEqual(rebalance_deviation(50, 70, CALCULATOR_MAX_DEVIATION), (50, 70))
        self.assertEqual(rebalance_deviation(10, 5, 2), (10, 8))

    def test_bucket_percentages(self):
        from utils.psychological_metrics import bucket_percentages
        pos, neg, neu = bucket_percentages([make_tag("DISCIPLINE", 60), make_tag("TILT", 20)])
        self.assertEqual((pos, neg, neu), (30.0, 10.0, 0.0))


class TestThresholdDisagreement(unittest.TestCase):
    """The calculator's 30-point clamp is looser than the validator's 15-point default."""

    def test_thresholds_are_distinct_constants(self):
        from utils.psychological_metrics import CALCULATOR_MAX_DEVIATION, DEFAULT_MAX_DEVIATION_BETWEEN_METRICS
        self.assertEqual(CALCULATOR_MAX_DEVIATION, 30.0)
        self.assertEqual(DEFAULT_MAX_DEVIATION_BETWEEN_METRICS, 15.0)

    def test_validator_flags_output_of_calculator_clamp(self):
        """A pair the calculator considers clamped still gets a HIGH deviation warning."""
        from utils.metrics_validation import validate_psychological_metrics
        from utils.psychological_metrics import finalize_scores
        from utils.validation_types import ValidationSeverity

        clamped = finalize_scores(100.0, 40.0)
        self.assertEqual(clamped.to_dict(), {"disciplineLevel": 100.0, "tiltControl": 70.0})
        result = validate_psychological_metrics(clamped.discipline_level, clamped.tilt_control)
        self.assertTrue(result.is_valid)
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("Large deviation (30.0%)", result.warnings[0])
        self.assertIs(result.validation_errors[0].severity, ValidationSeverity.HIGH)

    def test_tilt_vs_discipline_scenario(self):
        """TILT 100 / DISCIPLINE 0 yields equal metrics: only the stability floor fires."""
        from utils.metrics_validation import validate_psychological_metrics
        from utils.psychological_metrics import calculate_metrics

        metrics = calculate_metrics([make_tag("TILT", 100), make_tag("DISCIPLINE", 0)])
        result = validate_psychological_metrics(metrics.discipline_level, metrics.tilt_control)
        self.assertTrue(result.is_valid)
        self.assertEqual(result.deviation, 0.0)
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("Psychological Stability Index (19.1%)", result.warnings[0])


if __name__ == "__main__":
    unittest.main()
