"""
Shared fixtures and in-process fakes for the scorecard test suite.
"""

import asyncio
import json
from datetime import date
from typing import Optional

import pytest

from scorecard.core.assessment import RiskAssessor
from scorecard.core.models import SubcontractorMetrics, VendorRecord, build_vendor
from scorecard.session import ScorecardSession


VALID_RESPONSE = {
    "riskLevel": "High",
    "overallScore": 55,
    "financialHealth": 50,
    "safetyRecord": 45,
    "projectPerformance": 70,
    "compliance": 60,
    "summary": "Cash flow strained by expansion; two PPE infractions this quarter.",
}


class FakeProvider:
    """Stands in for the generative-AI provider; optionally blocks on ``gate``."""

    def __init__(self, response=None, error: Optional[BaseException] = None,
                 gate: Optional[asyncio.Event] = None):
        self.response = json.dumps(VALID_RESPONSE) if response is None else response
        self.error = error
        self.gate = gate
        self.calls = []

    async def assess(self, vendor_name, description, history_notes):
        self.calls.append((vendor_name, description, history_notes))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.response


def make_vendor(**overrides) -> VendorRecord:
    """Factory for a valid record — override specific fields per test."""
    defaults = {
        "id": "V-1042",
        "name": "Rapid Electrical Systems",
        "category": "Electrical",
        "description": "Mid-sized electrical contractor focusing on commercial fit-outs.",
        "status": "Pending QA",
        "risk_tier": "Medium",
        "overall_score": 74,
        "metrics": SubcontractorMetrics(
            financial_health=65, safety_record=75, project_performance=85, compliance=70
        ),
        "last_audit_date": date(2024, 1, 10),
    }
    defaults.update(overrides)
    return build_vendor(defaults)


def make_session(provider=None, seed: bool = True, timeout: float = 5.0) -> ScorecardSession:
    provider = provider if provider is not None else FakeProvider()
    session = ScorecardSession(
        assessor=RiskAssessor(provider, SubcontractorMetrics, timeout=timeout)
    )
    if seed:
        session.seed_demo()
    return session


@pytest.fixture
def vendor() -> VendorRecord:
    return make_vendor()


@pytest.fixture
def session() -> ScorecardSession:
    return make_session()
