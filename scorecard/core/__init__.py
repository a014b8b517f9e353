"""
Scorecard Core
==============
Vendor records, risk scoring, status lifecycle and the AI assessment
merge protocol. Pure Python; no web framework dependencies.

Risk Tiers:
    80–100 → Low
    60–79  → Medium
    40–59  → High
    0–39   → Critical

Status Lifecycle:
    Pending QA → Approved | Rejected | On Hold
    On Hold    → Approved | Rejected
"""

from .assessment import AssessmentResult, RiskAssessor, merge_assessment, parse_assessment
from .lifecycle import VendorAction, apply_action
from .models import RiskTier, VendorRecord, VendorStatus, build_vendor
from .scoring import aggregate_portfolio_risk, average_score, derive_risk_tier
from .store import VendorStore

__all__ = [
    "AssessmentResult",
    "RiskAssessor",
    "merge_assessment",
    "parse_assessment",
    "VendorAction",
    "apply_action",
    "RiskTier",
    "VendorRecord",
    "VendorStatus",
    "build_vendor",
    "aggregate_portfolio_risk",
    "average_score",
    "derive_risk_tier",
    "VendorStore",
]
