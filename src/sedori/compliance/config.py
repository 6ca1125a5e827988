"""Explicit, read-only configuration for compliance evaluation.

Every evaluation entry point accepts a ``ComplianceConfig``; nothing reads
process-wide mutable state while a check runs.  ``load_config`` builds one
from ``SEDORI_*`` environment variables for deployments.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from sedori.compliance.risk import DEFAULT_RISK_SCORES, RiskLevel

# status value -> days until the next re-check; None means terminal
DEFAULT_RECHECK_DAYS: Mapping[str, Optional[int]] = MappingProxyType(
    {
        "prohibited": None,
        "non_compliant": 7,
        "needs_license": 7,
        "requires_review": 30,
        "compliant": 90,
    }
)
DEFAULT_RECHECK_FALLBACK_DAYS = 30


@dataclass(frozen=True)
class ComplianceConfig:
    """Thresholds and reference-data location used by the rule sets."""

    risk_scores: Mapping[RiskLevel, float] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_RISK_SCORES))
    )
    # scores strictly above this are flagged for manual review
    review_threshold: float = 0.3
    expiry_warning_days: int = 30
    recheck_days: Mapping[str, Optional[int]] = field(default_factory=lambda: DEFAULT_RECHECK_DAYS)
    recheck_fallback_days: int = DEFAULT_RECHECK_FALLBACK_DAYS
    tariff_currency: str = "JPY"
    data_root: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.review_threshold <= 1.0:
            raise ValueError(f"review_threshold must be within [0, 1], got {self.review_threshold}")
        if self.expiry_warning_days < 0:
            raise ValueError("expiry_warning_days must be non-negative")
        for level, score in self.risk_scores.items():
            if not 0.0 <= score <= 1.0:
                raise ValueError(f"risk score for {level.value} must be within [0, 1], got {score}")

    def score_for(self, level: RiskLevel) -> float:
        return self.risk_scores.get(level, 0.0)


DEFAULT_CONFIG = ComplianceConfig()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def load_config() -> ComplianceConfig:
    """Build a config from the environment, falling back to defaults."""

    return ComplianceConfig(
        review_threshold=_env_float("SEDORI_REVIEW_THRESHOLD", 0.3),
        expiry_warning_days=_env_int("SEDORI_EXPIRY_WARNING_DAYS", 30),
        tariff_currency=os.getenv("SEDORI_TARIFF_CURRENCY", "JPY").strip() or "JPY",
        data_root=os.getenv("SEDORI_DATA_ROOT") or None,
    )
