"""
Psychological Metrics Calculator

Turns a trade's emotional tags into two 0-100 composite scores:

  Discipline Level - rule adherence
  Tilt Control     - emotional self-control

Mathematical logic
------------------
Tags are bucketed by normalized subject:

  POSITIVE: DISCIPLINE, CONFIDENCE, PATIENCE
  NEGATIVE: TILT, REVENGE, IMPATIENCE
  NEUTRAL:  NEUTRAL, ANALYTICAL

Every tag counts toward the denominator (tag_count x 100), including tags that
fall in no bucket, so unclassified emotions dilute the score.

  positive/negative/neutral = bucket_sum / (tag_count * 100) * 100   (raw values, not clipped)
  ESS (Emotional Stability Score) = positive*2.0 + neutral*1.0 - negative*1.5   (unbounded)
  PSI = clip((ESS + 100) / 2, 0, 100)
  base + base * 0.6 * (1 - base/100)  -> coupled score, applied to both metrics from PSI
  deviation clamp: the lower metric is raised to (higher - 30)
  final clip to [0, 100], rounded half-up to 2 decimals

Both metrics start from the same PSI and get the same coupling adjustment, so
the two scores come out equal. The 30-point clamp here is deliberately distinct
from the validator's 15-point default (CALCULATOR_MAX_DEVIATION vs
DEFAULT_MAX_DEVIATION_BETWEEN_METRICS); which one is authoritative is an open
question tracked in DESIGN.md.

calculate_metrics() is total: tags go through the emotion tag parser first,
malformed entries and non-finite values contribute nothing, out-of-range values
are summed as given and only PSI and the final scores are clipped. No exception
handling is needed.
"""

import math
from typing import Any, Tuple

import numpy as np

from utils.emotion_tags import WellFormedTag, is_tag_sequence, parse_emotional_data
from utils.validation_types import DEFAULT_VALIDATION_CONFIG, PsychologicalMetrics

POSITIVE_EMOTIONS = frozenset({"DISCIPLINE", "CONFIDENCE", "PATIENCE"})
NEGATIVE_EMOTIONS = frozenset({"TILT", "REVENGE", "IMPATIENCE"})
NEUTRAL_EMOTIONS = frozenset({"NEUTRAL", "ANALYTICAL"})

POSITIVE_WEIGHT = 2.0
NEUTRAL_WEIGHT = 1.0
NEGATIVE_WEIGHT = 1.5
COUPLING_FACTOR = 0.6

NEUTRAL_SCORE = 50.0
CALCULATOR_MAX_DEVIATION = 30.0
DEFAULT_MAX_DEVIATION_BETWEEN_METRICS = DEFAULT_VALIDATION_CONFIG.max_deviation_between_metrics

NEUTRAL_METRICS = PsychologicalMetrics(discipline_level=NEUTRAL_SCORE, tilt_control=NEUTRAL_SCORE)


def _clip_score(value: float) -> float:
    return float(np.clip(value, 0.0, 100.0))


def _round2(value: float) -> float:
    """Round half-up to 2 decimals (19.0625 -> 19.06, 0.125 -> 0.13)."""
    return math.floor(value * 100 + 0.5) / 100


def bucket_percentages(emotional_data: Any) -> Tuple[float, float, float]:
    """Return (positive, negative, neutral) as 0-100 percentages of the maximum possible sum."""
    tags = parse_emotional_data(emotional_data)
    if not tags:
        return 0.0, 0.0, 0.0
    positive = negative = neutral = 0.0
    for tag in tags:
        if not isinstance(tag, WellFormedTag):
            continue
        if tag.subject in POSITIVE_EMOTIONS:
            positive += tag.numeric_value
        elif tag.subject in NEGATIVE_EMOTIONS:
            negative += tag.numeric_value
        elif tag.subject in NEUTRAL_EMOTIONS:
            neutral += tag.numeric_value
    # bucket_sum / (tag_count * 100) * 100 == bucket_sum / tag_count
    count = len(tags)
    return positive / count, negative / count, neutral / count


def emotional_stability_score(positive: float, negative: float, neutral: float) -> float:
    return positive * POSITIVE_WEIGHT + neutral * NEUTRAL_WEIGHT - negative * NEGATIVE_WEIGHT


def stability_index_from_ess(ess: float) -> float:
    """PSI from ESS. An undefined ESS (inf - inf from overflowing bucket sums) maps to the neutral score."""
    if math.isnan(ess):
        return NEUTRAL_SCORE
    return _clip_score((ess + 100.0) / 2.0)


def coupled_score(base: float) -> float:
    """Apply the coupling adjustment to a PSI base; largest lift at mid-range, none at 0 and 100."""
    return _clip_score(base + base * COUPLING_FACTOR * (1.0 - base / 100.0))


def rebalance_deviation(discipline_level: float, tilt_control: float, max_deviation: float) -> Tuple[float, float]:
    """
    Raise the lower metric to (higher - max_deviation), floored at 0, when the gap exceeds max_deviation.

    The higher metric is never changed. Used by the calculator with CALCULATOR_MAX_DEVIATION
    and by the auto-corrector with the configured threshold.
    """
    if abs(discipline_level - tilt_control) > max_deviation:
        if discipline_level > tilt_control:
            tilt_control = max(0.0, discipline_level - max_deviation)
        else:
            discipline_level = max(0.0, tilt_control - max_deviation)
    return discipline_level, tilt_control


def finalize_scores(discipline_level: float, tilt_control: float) -> PsychologicalMetrics:
    """Calculator steps 7-8: deviation clamp, final clip, rounding."""
    discipline_level, tilt_control = rebalance_deviation(discipline_level, tilt_control, CALCULATOR_MAX_DEVIATION)
    return PsychologicalMetrics(
        discipline_level=_round2(_clip_score(discipline_level)),
        tilt_control=_round2(_clip_score(tilt_control)),
    )


def calculate_metrics(emotional_data: Any) -> PsychologicalMetrics:
    """
    Compute Discipline Level and Tilt Control from emotional tags.

    Args:
        emotional_data: Sequence of tags (dicts or EmotionTag). None, empty or
            non-sequence input yields the neutral 50/50 result.

    Returns:
        PsychologicalMetrics with both values in [0, 100], rounded to 2 decimals.
    """
    if not is_tag_sequence(emotional_data) or len(emotional_data) == 0:
        return NEUTRAL_METRICS

    positive, negative, neutral = bucket_percentages(emotional_data)
    psi = stability_index_from_ess(emotional_stability_score(positive, negative, neutral))

    discipline_level = coupled_score(psi)
    tilt_control = coupled_score(psi)
    return finalize_scores(discipline_level, tilt_control)
