"""
Scoring Engine
==============
Pure derivations over vendor metrics and vendor collections.

Overall Score =
    w1 × metric 1   (25%)
  + w2 × metric 2   (25%)
  + w3 × metric 3   (25%)
  + w4 × metric 4   (25%)

Risk Tiers:
    80–100 → Low       (good)
    60–79  → Medium    (fair)
    40–59  → High      (poor)
    0–39   → Critical  (poor)

Portfolio Aggregates:
    high-risk count  → vendors in High or Critical (empty → 0)
    average score    → mean overall score (empty → EmptyInputError)
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from .errors import EmptyInputError, ValidationError
from .models import CAMEL_CONFIG, CategoryMetrics, RiskTier, VendorRecord, VendorStatus

# (lower bound, tier), checked top-down
TIER_THRESHOLDS: List[Tuple[int, RiskTier]] = [
    (80, RiskTier.LOW),
    (60, RiskTier.MEDIUM),
    (40, RiskTier.HIGH),
    ( 0, RiskTier.CRITICAL),
]

DEFAULT_WEIGHTS: Tuple[float, float, float, float] = (0.25, 0.25, 0.25, 0.25)

HIGH_RISK_TIERS = frozenset({RiskTier.HIGH, RiskTier.CRITICAL})

# Scorecard bar colour bands
METRIC_BANDS = [
    (80, "good"),
    (60, "fair"),
]


def _check_score(score: float) -> None:
    if isinstance(score, bool):
        raise ValidationError("Score must be a number, not bool", {"score": score})
    if not 0 <= score <= 100:
        raise ValidationError(
            "Score must be within [0, 100]", {"score": score}
        )


def derive_risk_tier(
    score: int,
    thresholds: Sequence[Tuple[int, RiskTier]] = TIER_THRESHOLDS,
) -> RiskTier:
    """Map an overall score onto its risk tier."""
    _check_score(score)
    for lower, tier in thresholds:
        if score >= lower:
            return tier
    return RiskTier.CRITICAL


def derive_overall_score(
    metrics: CategoryMetrics,
    weights: Optional[Sequence[float]] = None,
) -> int:
    """Weighted mean of the four sub-scores, rounded to an integer."""
    weights = tuple(weights) if weights is not None else DEFAULT_WEIGHTS
    values = metrics.scores()
    if len(weights) != len(values):
        raise ValidationError(
            "Expected one weight per metric",
            {"weights": len(weights), "metrics": len(values)},
        )
    if abs(sum(weights) - 1.0) > 1e-6:
        raise ValidationError("Metric weights must sum to 1.0", {"weights": list(weights)})

    score = sum(w * v for w, v in zip(weights, values))
    return max(0, min(100, int(round(score))))


def score_metrics(
    metrics: CategoryMetrics,
    weights: Optional[Sequence[float]] = None,
) -> Tuple[int, RiskTier]:
    score = derive_overall_score(metrics, weights)
    return score, derive_risk_tier(score)


def metric_band(value: int) -> str:
    for lower, band in METRIC_BANDS:
        if value > lower:
            return band
    return "poor"


def metric_bands(metrics: CategoryMetrics) -> Dict[str, str]:
    """Bar colour band of each sub-score, keyed by its wire name."""
    return {
        name: metric_band(value)
        for name, value in zip(metrics.provider_fields(), metrics.scores())
    }


# ── Portfolio aggregates ──────────────────────────────────────
def aggregate_portfolio_risk(vendors: Iterable[VendorRecord]) -> int:
    """Number of vendors whose tier is High or Critical."""
    return sum(1 for v in vendors if v.risk_tier in HIGH_RISK_TIERS)


def average_score(vendors: Iterable[VendorRecord]) -> float:
    """
    Arithmetic mean of ``overall_score``.

    Raises EmptyInputError for an empty collection.
    """
    scores = [v.overall_score for v in vendors]
    if not scores:
        raise EmptyInputError("Cannot average the scores of an empty vendor collection")
    return sum(scores) / len(scores)


def pending_review_count(vendors: Iterable[VendorRecord]) -> int:
    return sum(1 for v in vendors if v.status == VendorStatus.PENDING)


def risk_distribution(vendors: Iterable[VendorRecord]) -> Dict[RiskTier, int]:
    counts = {tier: 0 for tier in RiskTier}
    for v in vendors:
        counts[v.risk_tier] += 1
    return counts


class PortfolioSummary(BaseModel):
    model_config = {**CAMEL_CONFIG}

    total_vendors:   int = 0
    average_score:   Optional[int] = None
    high_risk_count: int = 0
    pending_count:   int = 0
    distribution:    Dict[RiskTier, int] = {}


def portfolio_summary(vendors: Iterable[VendorRecord]) -> PortfolioSummary:
    vendors = list(vendors)
    try:
        avg: Optional[int] = int(round(average_score(vendors)))
    except EmptyInputError:
        avg = None

    return PortfolioSummary(
        total_vendors=len(vendors),
        average_score=avg,
        high_risk_count=aggregate_portfolio_risk(vendors),
        pending_count=pending_review_count(vendors),
        distribution=risk_distribution(vendors),
    )
