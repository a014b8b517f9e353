"""
Assessment Merge Protocol
==========================
Requests a synthetic risk assessment from a generative-AI provider and
merges it into a vendor record.

Pipeline:
    1. provider.assess()      → raw JSON text (may fail / time out)
    2. parse_assessment()     → AssessmentResult (strict schema check)
    3. merge_assessment()     → new VendorRecord (atomic overwrite of
                                metrics, score, tier and narrative)

Any failure in steps 1–2 resolves to the fallback assessment
(score 75, tier Medium). Callers always receive a result.
"""

import asyncio
import json
import logging
from typing import Annotated, Any, Dict, Optional, Type

from openai import AsyncOpenAI
from pydantic import BaseModel, StringConstraints
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import AssessmentFailure, ValidationError
from .models import (
    CAMEL_CONFIG,
    CategoryMetrics,
    Metrics,
    RiskTier,
    Score,
    SubcontractorMetrics,
    VendingMetrics,
    VendorRecord,
    pydantic_error_details,
    replace_fields,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0

DEFAULT_HISTORY_NOTES = (
    "Project A: Delayed by 2 weeks due to supply. "
    "Project B: Completed on time. "
    "1 Safety incident recorded in 2023."
)

FALLBACK_OVERALL_SCORE = 75
FALLBACK_RISK_TIER = RiskTier.MEDIUM
FALLBACK_METRIC_SCORES = (70, 80, 75, 75)
FALLBACK_NARRATIVE = (
    "AI Service unavailable. Defaulting to medium risk assessment "
    "based on generic fallback."
)

# (evaluating firm, vendor noun) per metrics variant
VARIANT_BRIEFS: Dict[Type[CategoryMetrics], tuple] = {
    SubcontractorMetrics: ("a construction management firm", "subcontractor"),
    VendingMetrics:       ("a vending operations company", "vending-machine provider"),
}

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class AssessmentResult(BaseModel):
    """Scores, tier and narrative from one assessment (real or fallback)."""

    model_config = {**CAMEL_CONFIG, "frozen": True, "extra": "forbid"}

    risk_tier:     RiskTier
    overall_score: Score
    metrics:       Metrics
    narrative:     NonBlank


class ProviderEnvelope(BaseModel):
    """Non-metric fields of a provider response, by their wire names."""

    model_config = {"alias_generator": to_camel, "extra": "ignore"}

    risk_level:    RiskTier
    overall_score: Score
    summary:       NonBlank


# ──────────────────────────────────────────────
# Response parsing / fallback
# ──────────────────────────────────────────────
def parse_assessment(payload: Any, metrics_model: Type[CategoryMetrics]) -> AssessmentResult:
    """
    Validate a provider response and convert it to an AssessmentResult.

    Raises AssessmentFailure when the body is empty, is not a JSON object,
    names an unknown tier, has a missing or out-of-range score, or has a
    blank summary.
    """
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")

    if payload is None or (isinstance(payload, str) and not payload.strip()):
        raise AssessmentFailure("Empty response from assessment provider")

    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise AssessmentFailure(
                "Assessment response is not valid JSON", {"reason": str(exc)}
            ) from exc

    if not isinstance(payload, dict):
        raise AssessmentFailure(
            "Assessment response is not a JSON object",
            {"type": type(payload).__name__},
        )

    try:
        envelope = ProviderEnvelope.model_validate(payload)
        metrics = metrics_model.model_validate(
            {key: payload.get(key) for key in metrics_model.provider_fields()}
        )
    except PydanticValidationError as exc:
        raise AssessmentFailure(
            "Assessment response failed schema validation",
            pydantic_error_details(exc),
        ) from exc

    return AssessmentResult(
        risk_tier=envelope.risk_level,
        overall_score=envelope.overall_score,
        metrics=metrics,
        narrative=envelope.summary,
    )


def fallback_assessment(metrics_model: Type[CategoryMetrics]) -> AssessmentResult:
    metrics = metrics_model(**dict(zip(metrics_model.model_fields, FALLBACK_METRIC_SCORES)))
    return AssessmentResult(
        risk_tier=FALLBACK_RISK_TIER,
        overall_score=FALLBACK_OVERALL_SCORE,
        metrics=metrics,
        narrative=FALLBACK_NARRATIVE,
    )


def merge_assessment(record: VendorRecord, result: AssessmentResult) -> VendorRecord:
    """
    Overwrite the scoring fields of ``record`` with ``result`` in one step.

    The provider's overall score and tier are taken as given; they are not
    re-derived from the new metrics. Status and identity are untouched.
    """
    if type(result.metrics) is not type(record.metrics):
        raise ValidationError(
            "Assessment metrics do not match the vendor's metric variant",
            {
                "vendor": type(record.metrics).__name__,
                "assessment": type(result.metrics).__name__,
            },
        )
    return replace_fields(
        record,
        metrics=result.metrics,
        overall_score=result.overall_score,
        risk_tier=result.risk_tier,
        ai_narrative=result.narrative,
    )


# ──────────────────────────────────────────────
# Provider
# ──────────────────────────────────────────────
def build_prompt(
    vendor_name: str,
    description: str,
    history_notes: str,
    metrics_model: Type[CategoryMetrics],
) -> str:
    firm, noun = VARIANT_BRIEFS[metrics_model]
    labels = ", ".join(name.replace("_", " ").title() for name in metrics_model.model_fields)
    keys = ", ".join(
        ["riskLevel", "overallScore", *metrics_model.provider_fields(), "summary"]
    )
    return (
        f"Act as a senior QA Risk Officer for {firm}.\n"
        f"Evaluate the following {noun} based on the provided description "
        f"and operational history notes.\n\n"
        f"Vendor Name: {vendor_name}\n"
        f"Description/Notes: {description}\n"
        f"Operational History: {history_notes}\n\n"
        f"Assign integer scores (0-100) for {labels}.\n"
        f"Determine an overall weighted score and a Risk Level "
        f"(Low, Medium, High, Critical).\n"
        f"Provide a concise summary justifying the assessment.\n\n"
        f"Return ONLY a JSON object with exactly these keys: {keys}."
    )


class AssessmentProvider:
    """OpenAI-compatible chat completion backend returning raw JSON text."""

    SYSTEM_PROMPT = (
        "You are a vendor risk analyst. Respond with a single JSON object and "
        "nothing else. riskLevel must be one of Low, Medium, High, Critical."
    )

    def __init__(
        self,
        api_key: str,
        model: str,
        metrics_model: Type[CategoryMetrics] = SubcontractorMetrics,
        base_url: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._metrics_model = metrics_model
        self._base_url = base_url
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    async def assess(self, vendor_name: str, description: str, history_notes: str) -> str:
        if self._client is None and not self._api_key:
            raise AssessmentFailure(
                "Assessment provider credentials not configured. "
                "Set OPENAI_API_KEY in .env"
            )

        response = await self._get_client().chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": build_prompt(
                        vendor_name, description, history_notes, self._metrics_model
                    ),
                },
            ],
            response_format={"type": "json_object"},
            temperature=0.2,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


class RiskAssessor:
    """
    Runs one provider call under a timeout and validates the response.

    ``provider`` is anything with an ``async assess(vendor_name, description,
    history_notes) -> str`` method.
    """

    def __init__(
        self,
        provider,
        metrics_model: Type[CategoryMetrics] = SubcontractorMetrics,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.provider = provider
        self.metrics_model = metrics_model
        self.timeout = timeout

    async def try_assess(
        self,
        vendor_name: str,
        description: str,
        history_notes: Optional[str] = None,
    ) -> AssessmentResult:
        """Like ``assess`` but raises AssessmentFailure instead of falling back."""
        notes = history_notes or DEFAULT_HISTORY_NOTES
        try:
            raw = await asyncio.wait_for(
                self.provider.assess(vendor_name, description, notes),
                timeout=self.timeout,
            )
        except AssessmentFailure:
            raise
        except asyncio.TimeoutError as exc:
            raise AssessmentFailure(
                f"Assessment provider timed out after {self.timeout:g}s"
            ) from exc
        except Exception as exc:
            raise AssessmentFailure(
                "Assessment provider call failed",
                {"reason": str(exc), "error_type": type(exc).__name__},
            ) from exc

        return parse_assessment(raw, self.metrics_model)

    def fallback(self) -> AssessmentResult:
        return fallback_assessment(self.metrics_model)

    async def assess(
        self,
        vendor_name: str,
        description: str,
        history_notes: Optional[str] = None,
    ) -> AssessmentResult:
        """Request an assessment; failures resolve to the fallback result."""
        try:
            return await self.try_assess(vendor_name, description, history_notes)
        except AssessmentFailure as exc:
            logger.warning(
                "AI assessment failed for %s: %s %s", vendor_name, exc.message, exc.details
            )
            return self.fallback()

    async def aclose(self) -> None:
        close = getattr(self.provider, "aclose", None)
        if close is not None:
            await close()
