"""
Tests for the assessment merge protocol: response validation, fallback,
merge semantics and the provider wrapper.
"""

import asyncio
import json
from types import SimpleNamespace

import pytest

from scorecard.core.assessment import (
    DEFAULT_HISTORY_NOTES,
    FALLBACK_NARRATIVE,
    AssessmentProvider,
    AssessmentResult,
    RiskAssessor,
    build_prompt,
    fallback_assessment,
    merge_assessment,
    parse_assessment,
)
from scorecard.core.errors import AssessmentFailure, ValidationError
from scorecard.core.models import RiskTier, SubcontractorMetrics, VendingMetrics, VendorStatus

from conftest import VALID_RESPONSE, FakeProvider, make_vendor


def _response(**overrides) -> dict:
    payload = dict(VALID_RESPONSE)
    payload.update(overrides)
    return payload


def _without(key) -> dict:
    return {k: v for k, v in VALID_RESPONSE.items() if k != key}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. RESPONSE VALIDATION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestParseAssessment:
    def test_valid_json_text(self):
        result = parse_assessment(json.dumps(VALID_RESPONSE), SubcontractorMetrics)
        assert result.risk_tier == RiskTier.HIGH
        assert result.overall_score == 55
        assert result.metrics == SubcontractorMetrics(
            financial_health=50, safety_record=45, project_performance=70, compliance=60
        )
        assert result.narrative.startswith("Cash flow strained")

    def test_valid_dict_and_bytes(self):
        from_dict = parse_assessment(VALID_RESPONSE, SubcontractorMetrics)
        from_bytes = parse_assessment(json.dumps(VALID_RESPONSE).encode(), SubcontractorMetrics)
        assert from_dict == from_bytes

    def test_integral_float_accepted(self):
        result = parse_assessment(_response(overallScore=74.0), SubcontractorMetrics)
        assert result.overall_score == 74

    def test_extra_keys_ignored(self):
        result = parse_assessment(_response(confidence="High"), SubcontractorMetrics)
        assert result.overall_score == 55

    def test_vending_variant(self):
        payload = {
            "riskLevel": "Low", "overallScore": 91, "uptime": 97, "restockRate": 88,
            "salesPerformance": 86, "customerSatisfaction": 91, "summary": "Reliable operator.",
        }
        result = parse_assessment(payload, VendingMetrics)
        assert isinstance(result.metrics, VendingMetrics)

    @pytest.mark.parametrize(
        "payload",
        [
            _response(riskLevel="Unknown"),
            _response(riskLevel="low"),
            _response(compliance=150),
            _response(safetyRecord=-5),
            _response(overallScore=101),
            _response(overallScore=74.5),
            _response(overallScore="80"),
            _response(overallScore=True),
            _response(financialHealth=None),
            _response(summary=""),
            _response(summary="   "),
            _without("summary"),
            _without("riskLevel"),
            _without("projectPerformance"),
        ],
    )
    def test_schema_violations_raise(self, payload):
        with pytest.raises(AssessmentFailure):
            parse_assessment(payload, SubcontractorMetrics)

    @pytest.mark.parametrize("raw", ["", "   ", None, "not json", "[1, 2, 3]", '"Low"', "NaN"])
    def test_unusable_bodies_raise(self, raw):
        with pytest.raises(AssessmentFailure):
            parse_assessment(raw, SubcontractorMetrics)

    def test_nan_score_raises(self):
        raw = json.dumps(VALID_RESPONSE).replace('"overallScore": 55', '"overallScore": NaN')
        with pytest.raises(AssessmentFailure):
            parse_assessment(raw, SubcontractorMetrics)

    def test_wrong_variant_raises(self):
        with pytest.raises(AssessmentFailure):
            parse_assessment(VALID_RESPONSE, VendingMetrics)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. FALLBACK
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestFallback:
    def test_medium_risk_defaults(self):
        result = fallback_assessment(SubcontractorMetrics)
        assert result.overall_score == 75
        assert result.risk_tier == RiskTier.MEDIUM
        assert result.metrics.scores() == [70, 80, 75, 75]
        assert result.narrative == FALLBACK_NARRATIVE

    def test_same_shape_as_real_result(self):
        assert isinstance(fallback_assessment(VendingMetrics), AssessmentResult)
        assert isinstance(fallback_assessment(VendingMetrics).metrics, VendingMetrics)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 3. MERGE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestMergeAssessment:
    def test_overwrites_scoring_fields_only(self, vendor):
        result = parse_assessment(VALID_RESPONSE, SubcontractorMetrics)
        merged = merge_assessment(vendor, result)

        assert merged.metrics == result.metrics
        assert merged.overall_score == result.overall_score
        assert merged.risk_tier == result.risk_tier
        assert merged.ai_narrative == result.narrative

        assert merged.id == vendor.id
        assert merged.name == vendor.name
        assert merged.category == vendor.category
        assert merged.description == vendor.description
        assert merged.status == vendor.status
        assert merged.last_audit_date == vendor.last_audit_date

    def test_provider_tier_is_trusted(self, vendor):
        # score 95 would derive Low; the provider's Critical is kept as given
        result = parse_assessment(_response(overallScore=95, riskLevel="Critical"), SubcontractorMetrics)
        merged = merge_assessment(vendor, result)
        assert merged.overall_score == 95
        assert merged.risk_tier == RiskTier.CRITICAL

    def test_never_changes_status(self):
        approved = make_vendor(status="Approved")
        merged = merge_assessment(approved, fallback_assessment(SubcontractorMetrics))
        assert merged.status == VendorStatus.APPROVED

    def test_variant_mismatch_rejected(self, vendor):
        with pytest.raises(ValidationError):
            merge_assessment(vendor, fallback_assessment(VendingMetrics))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 4. RISK ASSESSOR (request with fallback)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestRiskAssessor:
    def test_success(self):
        provider = FakeProvider()
        result = asyncio.run(RiskAssessor(provider).assess("Apex", "Steel framing", "On time."))
        assert result.overall_score == 55
        assert provider.calls == [("Apex", "Steel framing", "On time.")]

    def test_default_history_notes(self):
        provider = FakeProvider()
        asyncio.run(RiskAssessor(provider).assess("Apex", "Steel framing"))
        assert provider.calls[0][2] == DEFAULT_HISTORY_NOTES

    def test_transport_error_falls_back(self):
        provider = FakeProvider(error=ConnectionError("connection refused"))
        result = asyncio.run(RiskAssessor(provider).assess("Apex", "Steel framing"))
        assert result == fallback_assessment(SubcontractorMetrics)

    def test_malformed_response_falls_back(self):
        provider = FakeProvider(response=json.dumps(_response(riskLevel="Unknown")))
        result = asyncio.run(RiskAssessor(provider).assess("Apex", "Steel framing"))
        assert result == fallback_assessment(SubcontractorMetrics)

    def test_out_of_range_metric_falls_back(self):
        provider = FakeProvider(response=json.dumps(_response(compliance=150)))
        result = asyncio.run(RiskAssessor(provider).assess("Apex", "Steel framing"))
        assert result.narrative == FALLBACK_NARRATIVE

    def test_timeout_falls_back(self):
        async def scenario():
            provider = FakeProvider(gate=asyncio.Event())  # never released
            return await RiskAssessor(provider, timeout=0.05).assess("Apex", "Steel framing")

        assert asyncio.run(scenario()).narrative == FALLBACK_NARRATIVE

    def test_try_assess_raises(self):
        provider = FakeProvider(response="")
        with pytest.raises(AssessmentFailure):
            asyncio.run(RiskAssessor(provider).try_assess("Apex", "Steel framing"))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 5. PROVIDER
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class _FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _fake_client(content):
    completions = _FakeCompletions(content)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


class TestAssessmentProvider:
    def test_missing_credentials_fail_before_network(self):
        provider = AssessmentProvider(api_key="", model="gpt-4o-mini")
        with pytest.raises(AssessmentFailure):
            asyncio.run(provider.assess("Apex", "Steel framing", "On time."))

    def test_missing_credentials_resolve_to_fallback(self):
        assessor = RiskAssessor(AssessmentProvider(api_key="", model="gpt-4o-mini"))
        result = asyncio.run(assessor.assess("Apex", "Steel framing"))
        assert result == fallback_assessment(SubcontractorMetrics)

    def test_requests_json_and_returns_content(self):
        client, completions = _fake_client(json.dumps(VALID_RESPONSE))
        provider = AssessmentProvider(api_key="", model="gpt-4o-mini", client=client)
        raw = asyncio.run(provider.assess("Apex", "Steel framing", "On time."))

        assert json.loads(raw) == VALID_RESPONSE
        request = completions.requests[0]
        assert request["model"] == "gpt-4o-mini"
        assert request["response_format"] == {"type": "json_object"}
        assert "Apex" in request["messages"][1]["content"]

    def test_empty_content_becomes_empty_string(self):
        client, _ = _fake_client(None)
        provider = AssessmentProvider(api_key="", model="gpt-4o-mini", client=client)
        assert asyncio.run(provider.assess("Apex", "Steel framing", "On time.")) == ""


class TestBuildPrompt:
    def test_lists_variant_keys(self):
        prompt = build_prompt("Apex", "Steel framing", "On time.", SubcontractorMetrics)
        for key in ("riskLevel", "overallScore", "financialHealth", "safetyRecord",
                    "projectPerformance", "compliance", "summary"):
            assert key in prompt
        assert "construction management firm" in prompt

    def test_vending_prompt(self):
        prompt = build_prompt("FreshSnack", "Combo machines", "No outages.", VendingMetrics)
        assert "restockRate" in prompt
        assert "vending" in prompt
