"""
FastAPI Router — REST endpoints backing the vendor scorecard dashboard.
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from pydantic import BaseModel

from scorecard import __version__, config
from scorecard.core.lifecycle import VendorAction, allowed_actions, is_terminal
from scorecard.core.models import CAMEL_CONFIG, RiskTier, VendorCreate, VendorRecord, VendorStatus
from scorecard.core.scoring import PortfolioSummary, metric_bands
from scorecard.session import AssessmentOutcome, AssessmentState, ScorecardSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Vendor Scorecard"])


def get_session(request: Request) -> ScorecardSession:
    return request.app.state.session


# ──────────────────────────────────────────────
# Request / response models
# ──────────────────────────────────────────────
class TransitionRequest(BaseModel):
    action: VendorAction


class AssessmentRequest(BaseModel):
    model_config = {**CAMEL_CONFIG, "extra": "forbid"}

    history_notes: Optional[str] = None


class AssessmentStatus(BaseModel):
    model_config = {**CAMEL_CONFIG}

    vendor_id:       str
    state:           AssessmentState
    ai_narrative:    Optional[str] = None
    allowed_actions: List[VendorAction] = []
    terminal:        bool = False
    metric_bands:    Dict[str, str] = {}


# ━━━━━━━━━━ HEALTH ━━━━━━━━━━
@router.get("/health", summary="Health Check")
async def health_check() -> dict:
    return {
        "status": "healthy",
        "service": "Vendor Scorecard",
        "version": __version__,
        "variant": config.SCORECARD_VARIANT,
    }


# ━━━━━━━━━━ VENDORS ━━━━━━━━━━
@router.get("/vendors", response_model=List[VendorRecord], summary="List vendors")
async def list_vendors(
    status: Optional[VendorStatus] = Query(None, description="Pending QA, Approved, Rejected, On Hold"),
    risk_tier: Optional[RiskTier] = Query(None, description="Low, Medium, High, Critical"),
    q: Optional[str] = Query(None, description="Search by name, id or category"),
    session: ScorecardSession = Depends(get_session),
):
    return session.list_vendors(status=status, risk_tier=risk_tier, query=q)


@router.post("/vendors", response_model=VendorRecord, status_code=201, summary="Add a vendor")
async def add_vendor(payload: VendorCreate, session: ScorecardSession = Depends(get_session)):
    """Create a Pending QA vendor; overall score and risk tier are derived from its metrics."""
    return session.add_vendor(payload)


@router.get("/vendors/{vendor_id}", response_model=VendorRecord, summary="Get one vendor")
async def get_vendor(vendor_id: str, session: ScorecardSession = Depends(get_session)):
    return session.get_vendor(vendor_id)


@router.post(
    "/vendors/{vendor_id}/transition",
    response_model=VendorRecord,
    summary="Approve, reject or hold a vendor",
)
async def transition_vendor(
    vendor_id: str,
    payload: TransitionRequest,
    session: ScorecardSession = Depends(get_session),
):
    return session.transition(vendor_id, payload.action)


# ━━━━━━━━━━ AI ASSESSMENT ━━━━━━━━━━
@router.post(
    "/vendors/{vendor_id}/assessment",
    response_model=AssessmentOutcome,
    summary="Run an AI risk assessment",
    description=(
        "Requests a generative-AI assessment and merges its scores, tier and "
        "narrative into the vendor. Provider failures resolve to a medium-risk "
        "fallback; a second request for the same vendor while one is running "
        "is rejected with 409."
    ),
)
async def request_assessment(
    vendor_id: str,
    payload: Optional[AssessmentRequest] = Body(None),
    session: ScorecardSession = Depends(get_session),
):
    notes = payload.history_notes if payload else None
    return await session.assess_vendor(vendor_id, history_notes=notes)


@router.get(
    "/vendors/{vendor_id}/assessment",
    response_model=AssessmentStatus,
    summary="Assessment state of a vendor",
)
async def assessment_status(vendor_id: str, session: ScorecardSession = Depends(get_session)):
    vendor = session.get_vendor(vendor_id)
    return AssessmentStatus(
        vendor_id=vendor_id,
        state=session.assessment_state(vendor_id),
        ai_narrative=vendor.ai_narrative,
        allowed_actions=allowed_actions(vendor.status),
        terminal=is_terminal(vendor.status),
        metric_bands=metric_bands(vendor.metrics),
    )


# ━━━━━━━━━━ QA + PORTFOLIO ━━━━━━━━━━
@router.get("/qa/queue", response_model=List[VendorRecord], summary="Vendors awaiting QA")
async def qa_queue(session: ScorecardSession = Depends(get_session)):
    return session.qa_queue()


@router.get("/portfolio/summary", response_model=PortfolioSummary, summary="Portfolio aggregates")
async def portfolio(session: ScorecardSession = Depends(get_session)):
    return session.summary()
