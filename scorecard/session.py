"""
Scorecard session controller.

Owns the vendor store and the per-vendor assessment state for the lifetime
of one dashboard session. Assessment requests are guarded per vendor id:
one in flight per vendor, any number across vendors.
"""

import asyncio
import logging
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set, Type

from pydantic import BaseModel

from scorecard import config
from scorecard.core.assessment import (
    AssessmentProvider,
    AssessmentResult,
    RiskAssessor,
    merge_assessment,
)
from scorecard.core.errors import (
    AssessmentFailure,
    AssessmentInProgressError,
    NotFoundError,
    ValidationError,
)
from scorecard.core.lifecycle import VendorAction, apply_action
from scorecard.core.models import (
    CAMEL_CONFIG,
    CategoryMetrics,
    RiskTier,
    SubcontractorMetrics,
    VendorCreate,
    VendorRecord,
    VendorStatus,
    build_vendor,
)
from scorecard.core.scoring import PortfolioSummary, portfolio_summary, score_metrics
from scorecard.core.seed import demo_vendors
from scorecard.core.store import VendorStore

logger = logging.getLogger(__name__)


class AssessmentState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    SETTLED = "settled"
    FAILED = "failed"


class AssessmentOutcome(BaseModel):
    """What an assessment request ended in.

    ``applied`` is False when the response was discarded because the request
    was cancelled or the vendor was removed while it was in flight.
    """

    model_config = {**CAMEL_CONFIG, "frozen": True}

    vendor_id: str
    state:     AssessmentState
    applied:   bool
    result:    AssessmentResult
    vendor:    Optional[VendorRecord] = None


class ScorecardSession:

    def __init__(
        self,
        assessor: RiskAssessor,
        store: Optional[VendorStore] = None,
        metrics_model: Type[CategoryMetrics] = SubcontractorMetrics,
        weights: Optional[Sequence[float]] = None,
    ):
        self.assessor = assessor
        self.store = store if store is not None else VendorStore()
        self.metrics_model = metrics_model
        self.weights = weights
        self.selected_vendor_id: Optional[str] = None

        self._states: Dict[str, AssessmentState] = {}
        self._in_flight: Dict[str, object] = {}
        self._cancelled: Set[object] = set()

    @classmethod
    def from_env(cls) -> "ScorecardSession":
        metrics_model = config.metrics_model_for(config.SCORECARD_VARIANT)
        provider = AssessmentProvider(
            api_key=config.OPENAI_API_KEY,
            model=config.ASSESSMENT_MODEL,
            metrics_model=metrics_model,
            base_url=config.OPENAI_BASE_URL,
        )
        session = cls(
            assessor=RiskAssessor(provider, metrics_model, config.ASSESSMENT_TIMEOUT_SECONDS),
            metrics_model=metrics_model,
        )
        if config.SEED_DEMO_DATA:
            session.seed_demo()
        return session

    def seed_demo(self) -> int:
        vendors = demo_vendors(self.metrics_model)
        for record in vendors:
            self.store.add(record)
        logger.info("Seeded %d demo vendors (%s)", len(vendors), self.metrics_model.__name__)
        return len(vendors)

    async def aclose(self) -> None:
        for vendor_id in list(self._in_flight):
            self.cancel_assessment(vendor_id)
        await self.assessor.aclose()

    # ── Reads ─────────────────────────────────
    def get_vendor(self, vendor_id: str) -> VendorRecord:
        return self.store.require(vendor_id)

    def list_vendors(
        self,
        status: Optional[VendorStatus] = None,
        risk_tier: Optional[RiskTier] = None,
        query: Optional[str] = None,
    ) -> List[VendorRecord]:
        vendors = self.store.search(query) if query else self.store.list()
        if status is not None:
            vendors = [v for v in vendors if v.status == status]
        if risk_tier is not None:
            vendors = [v for v in vendors if v.risk_tier == risk_tier]
        return vendors

    def qa_queue(self) -> List[VendorRecord]:
        return self.store.filter_by_status(VendorStatus.PENDING)

    def summary(self) -> PortfolioSummary:
        return portfolio_summary(self.store.list())

    # ── Writes ────────────────────────────────
    def add_vendor(self, payload: VendorCreate) -> VendorRecord:
        if type(payload.metrics) is not self.metrics_model:
            raise ValidationError(
                "Metrics do not match the active vendor variant",
                {
                    "expected": self.metrics_model.provider_fields(),
                    "received": type(payload.metrics).__name__,
                },
            )

        score, tier = score_metrics(payload.metrics, self.weights)
        record = build_vendor({
            "id": payload.id or self.store.next_id(),
            "name": payload.name,
            "category": payload.category,
            "description": payload.description,
            "status": VendorStatus.PENDING,
            "risk_tier": tier,
            "overall_score": score,
            "metrics": payload.metrics,
            "last_audit_date": payload.last_audit_date or date.today(),
        })
        self.store.add(record)
        logger.info("Added vendor %s (%s): score %d, %s risk",
                    record.id, record.name, score, tier.value)
        return record

    def transition(self, vendor_id: str, action: VendorAction) -> VendorRecord:
        return self.store.update_with(vendor_id, lambda record: apply_action(record, action))

    def remove_vendor(self, vendor_id: str) -> VendorRecord:
        self.cancel_assessment(vendor_id)
        if self.selected_vendor_id == vendor_id:
            self.selected_vendor_id = None
        return self.store.remove(vendor_id)

    # ── Navigation ────────────────────────────
    def select(self, vendor_id: str) -> VendorRecord:
        """Open a vendor's scorecard; leaving another vendor cancels its request.

        Returning to a vendor whose request is still in flight takes that
        request back, so its response is applied.
        """
        record = self.store.require(vendor_id)
        if self.selected_vendor_id not in (None, vendor_id):
            self.cancel_assessment(self.selected_vendor_id)
        self.selected_vendor_id = vendor_id
        self._resume_assessment(vendor_id)
        return record

    def clear_selection(self) -> None:
        if self.selected_vendor_id is not None:
            self.cancel_assessment(self.selected_vendor_id)
        self.selected_vendor_id = None

    # ── Assessment ────────────────────────────
    def assessment_state(self, vendor_id: str) -> AssessmentState:
        self.store.require(vendor_id)
        return self._states.get(vendor_id, AssessmentState.IDLE)

    def is_assessing(self, vendor_id: str) -> bool:
        return vendor_id in self._in_flight

    def cancel_assessment(self, vendor_id: str) -> bool:
        """Mark the in-flight request for ``vendor_id`` so its response is dropped."""
        ticket = self._in_flight.get(vendor_id)
        if ticket is None:
            return False
        self._cancelled.add(ticket)
        logger.info("Assessment for %s cancelled; its response will be discarded", vendor_id)
        return True

    def _resume_assessment(self, vendor_id: str) -> None:
        ticket = self._in_flight.get(vendor_id)
        if ticket is not None and ticket in self._cancelled:
            self._cancelled.discard(ticket)
            logger.info("Assessment for %s resumed; its response will be applied", vendor_id)

    async def assess_vendor(
        self, vendor_id: str, history_notes: Optional[str] = None
    ) -> AssessmentOutcome:
        record = self.store.require(vendor_id)
        if vendor_id in self._in_flight:
            raise AssessmentInProgressError(
                f"Assessment already in progress for vendor {vendor_id}", {"id": vendor_id}
            )

        ticket = object()
        self._in_flight[vendor_id] = ticket
        self._states[vendor_id] = AssessmentState.REQUESTING
        logger.info("Requesting AI assessment for %s (%s)", vendor_id, record.name)

        try:
            try:
                result = await self.assessor.try_assess(
                    record.name, record.description, history_notes
                )
                state = AssessmentState.SETTLED
            except AssessmentFailure as exc:
                logger.warning("AI assessment failed for %s: %s %s; using fallback",
                               vendor_id, exc.message, exc.details)
                result = self.assessor.fallback()
                state = AssessmentState.FAILED
        except asyncio.CancelledError:
            self._states[vendor_id] = AssessmentState.IDLE
            raise
        finally:
            self._in_flight.pop(vendor_id, None)
            cancelled = ticket in self._cancelled
            self._cancelled.discard(ticket)

        if cancelled:
            return self._discard(vendor_id, state, result, "request cancelled")

        try:
            merged = self.store.update_with(
                vendor_id, lambda current: merge_assessment(current, result)
            )
        except NotFoundError:
            return self._discard(vendor_id, state, result, "vendor no longer exists")

        self._states[vendor_id] = state
        logger.info("Assessment %s for %s: score %d, %s risk",
                    state.value, vendor_id, merged.overall_score, merged.risk_tier.value)
        return AssessmentOutcome(
            vendor_id=vendor_id, state=state, applied=True, result=result, vendor=merged
        )

    def _discard(
        self, vendor_id: str, state: AssessmentState, result: AssessmentResult, reason: str
    ) -> AssessmentOutcome:
        self._states.pop(vendor_id, None)
        logger.info("Discarding assessment response for %s: %s", vendor_id, reason)
        return AssessmentOutcome(
            vendor_id=vendor_id,
            state=state,
            applied=False,
            result=result,
            vendor=self.store.get_by_id(vendor_id),
        )
