"""
Pydantic models for vendor records and their category metrics.

Records are immutable values: every change produces a new, re-validated
record that callers substitute into the store by id.
"""

from datetime import date
from enum import Enum
from typing import Annotated, Any, Dict, List, Mapping, Optional, Type, Union

from pydantic import BaseModel, BeforeValidator, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError


class RiskTier(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def severity(self) -> int:
        """0 for Low up to 3 for Critical."""
        return list(RiskTier).index(self)


class VendorStatus(str, Enum):
    PENDING = "Pending QA"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    ON_HOLD = "On Hold"


def _reject_non_numeric(value: Any) -> Any:
    # pydantic's lax int mode would otherwise coerce "74" and True
    if isinstance(value, (bool, str, bytes)):
        raise ValueError("score must be a number, not %s" % type(value).__name__)
    return value


Score = Annotated[int, BeforeValidator(_reject_non_numeric), Field(ge=0, le=100)]


CAMEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
}


# ── Category metrics ──────────────────────────────────────────
class CategoryMetrics(BaseModel):
    """Four named sub-scores, each an integer in [0, 100]."""

    model_config = {**CAMEL_CONFIG, "frozen": True, "extra": "forbid"}

    @classmethod
    def provider_fields(cls) -> List[str]:
        """Wire names of the four sub-scores, in declaration order."""
        return [info.alias or to_camel(name) for name, info in cls.model_fields.items()]

    def scores(self) -> List[int]:
        return [getattr(self, name) for name in type(self).model_fields]


class SubcontractorMetrics(CategoryMetrics):
    financial_health:    Score
    safety_record:       Score
    project_performance: Score
    compliance:          Score


class VendingMetrics(CategoryMetrics):
    uptime:                Score
    restock_rate:          Score
    sales_performance:     Score
    customer_satisfaction: Score


Metrics = Union[SubcontractorMetrics, VendingMetrics]

METRICS_VARIANTS: Dict[str, Type[CategoryMetrics]] = {
    "subcontractor": SubcontractorMetrics,
    "vending":       VendingMetrics,
}


# ── Vendor record ─────────────────────────────────────────────
class VendorRecord(BaseModel):
    model_config = {**CAMEL_CONFIG, "frozen": True, "extra": "forbid"}

    id:              str = Field(..., min_length=1)
    name:            str = Field(..., min_length=1)
    category:        str = Field(..., min_length=1)
    description:     str
    status:          VendorStatus
    risk_tier:       RiskTier
    overall_score:   Score
    metrics:         Metrics
    last_audit_date: date
    ai_narrative:    Optional[str] = None


class VendorCreate(BaseModel):
    """Payload of the new-vendor form. Score and tier are derived on creation."""

    id:              Optional[str]  = Field(None, min_length=1)
    name:            str            = Field(..., min_length=1)
    category:        str            = Field(..., min_length=1)
    description:     str
    metrics:         Metrics
    last_audit_date: Optional[date] = None

    model_config = {
        **CAMEL_CONFIG,
        "extra": "forbid",
        "json_schema_extra": {
            "example": {
                "name": "Summit Glazing Co",
                "category": "Glazing",
                "description": "Curtain wall and storefront glazing contractor.",
                "metrics": {
                    "financialHealth": 78,
                    "safetyRecord": 84,
                    "projectPerformance": 80,
                    "compliance": 90,
                },
            }
        },
    }


def pydantic_error_details(exc: PydanticValidationError) -> dict:
    return {
        "errors": [
            {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
            for err in exc.errors()
        ]
    }


def build_vendor(data: Mapping[str, Any]) -> VendorRecord:
    """Construct a record, raising the domain ``ValidationError`` on bad input."""
    try:
        return VendorRecord.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ValidationError("Invalid vendor record", pydantic_error_details(exc)) from exc


def replace_fields(record: VendorRecord, **changes: Any) -> VendorRecord:
    """Return a re-validated copy of ``record`` with ``changes`` applied."""
    if "id" in changes and changes["id"] != record.id:
        raise ValidationError(
            "Vendor id is immutable", {"id": record.id, "attempted": changes["id"]}
        )
    fields = {name: getattr(record, name) for name in VendorRecord.model_fields}
    fields.update(changes)
    return build_vendor(fields)
