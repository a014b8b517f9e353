"""
config.py — environment-driven settings (a local .env file is honoured).
"""

import os
from typing import Type

from dotenv import load_dotenv

from scorecard.core.models import METRICS_VARIANTS, CategoryMetrics

load_dotenv()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "").strip() or None
ASSESSMENT_MODEL = os.getenv("ASSESSMENT_MODEL", "gpt-4o-mini").strip()
ASSESSMENT_TIMEOUT_SECONDS = float(os.getenv("ASSESSMENT_TIMEOUT_SECONDS", "20"))

SCORECARD_VARIANT = os.getenv("SCORECARD_VARIANT", "subcontractor").strip().lower()
SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "true").strip().lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
LOG_DATEFMT = "%H:%M:%S"


def metrics_model_for(variant: str) -> Type[CategoryMetrics]:
    try:
        return METRICS_VARIANTS[variant]
    except KeyError:
        raise ValueError(
            f"Unknown SCORECARD_VARIANT {variant!r}; "
            f"expected one of {sorted(METRICS_VARIANTS)}"
        ) from None
