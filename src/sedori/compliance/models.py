from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sedori.compliance.risk import RiskLevel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _date_to_datetime(value: Any) -> Any:
    """Plain dates become midnight UTC; everything else is left to pydantic."""

    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    return value


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """The evaluation instant: ``now`` read as UTC when naive, else the current time."""

    if now is None:
        return utcnow()
    return _as_utc(now)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ComplianceStatus(str, Enum):
    COMPLIANT       = "compliant"
    NON_COMPLIANT   = "non_compliant"
    REQUIRES_REVIEW = "requires_review"
    NEEDS_LICENSE   = "needs_license"
    PROHIBITED      = "prohibited"
    PENDING         = "pending"


class CheckType(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL    = "manual"
    SCHEDULED = "scheduled"


class LicenseStatus(str, Enum):
    ACTIVE    = "active"
    EXPIRED   = "expired"
    SUSPENDED = "suspended"
    PENDING   = "pending"
    REVOKED   = "revoked"


class AntiqueDealerCategory(str, Enum):
    """Antique dealer license categories (the thirteen statutory classes, condensed)."""

    BOOKS          = "books"
    PAINTINGS      = "paintings"
    METAL_PRODUCTS = "metal_products"
    JEWELRY        = "jewelry"
    CLOTHING       = "clothing"
    MACHINERY      = "machinery"
    ELECTRONICS    = "electronics"
    PHOTOGRAPHS    = "photographs"
    LEATHER_GOODS  = "leather_goods"
    ALL_CATEGORIES = "all_categories"  # wildcard


class RegulationType(str, Enum):
    ANTIQUE_DEALER     = "antique_dealer"
    IMPORT_RESTRICTION = "import_restriction"
    EXPORT_RESTRICTION = "export_restriction"
    SAFETY_STANDARD    = "safety_standard"
    CUSTOMS            = "customs"
    TAX                = "tax"
    PHARMACEUTICAL     = "pharmaceutical"
    FOOD_SAFETY        = "food_safety"


class RuleStatus(str, Enum):
    ACTIVE     = "active"
    DEPRECATED = "deprecated"
    PENDING    = "pending"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class ProductModel(BaseModel):
    """Catalog product as seen by the compliance rules (read-only input)."""

    product_id: Optional[str] = None
    name: str
    description: str = ""
    category_name: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    retail_price: Optional[float] = Field(default=None, ge=0.0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("metadata", mode="before")
    @classmethod
    def _none_metadata(cls, value: Any) -> Any:
        return {} if value is None else value


class LicenseModel(BaseModel):
    """Antique dealer license held by a user."""

    license_id: Optional[str] = None
    user_id: Optional[str] = None
    license_number: str
    status: LicenseStatus = LicenseStatus.ACTIVE
    categories: List[AntiqueDealerCategory] = Field(default_factory=list)
    issued_at: Optional[datetime] = None
    expires_at: datetime
    issuing_authority: Optional[str] = None
    business_name: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("issued_at", "expires_at", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        return _date_to_datetime(value)

    @field_validator("issued_at", "expires_at")
    @classmethod
    def _normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    def is_expired(self, now: datetime | None = None) -> bool:
        return resolve_now(now) > self.expires_at

    def days_until_expiry(self, now: datetime | None = None) -> int:
        remaining = self.expires_at - resolve_now(now)
        return math.ceil(remaining.total_seconds() / 86400)

    def is_expiring_soon(self, now: datetime | None = None, window_days: int = 30) -> bool:
        now = resolve_now(now)
        return not self.is_expired(now) and self.days_until_expiry(now) <= window_days

    def is_usable(self, now: datetime | None = None) -> bool:
        return self.status == LicenseStatus.ACTIVE and not self.is_expired(now)

    def covers(self, categories: Iterable[AntiqueDealerCategory]) -> bool:
        held = set(self.categories)
        if AntiqueDealerCategory.ALL_CATEGORIES in held:
            return True
        return bool(held.intersection(categories))


class RegulationRuleModel(BaseModel):
    """Freeform regulation rule maintained outside the static tables."""

    rule_id: str
    type: RegulationType
    category: str = ""
    subcategory: str = ""
    title: str
    description: str = ""
    requirements: Optional[str] = None
    risk_level: RiskLevel = RiskLevel.LOW
    status: RuleStatus = RuleStatus.ACTIVE
    keywords: List[str] = Field(default_factory=list)
    required_documents: List[str] = Field(default_factory=list)
    required_licenses: List[str] = Field(default_factory=list)
    legal_basis: str = ""
    authority: str = ""
    effective_from: Optional[datetime] = None
    effective_until: Optional[datetime] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("effective_from", "effective_until", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        return _date_to_datetime(value)

    @field_validator("effective_from", "effective_until")
    @classmethod
    def _normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    def is_active(self, now: datetime | None = None) -> bool:
        now = resolve_now(now)
        if self.status != RuleStatus.ACTIVE:
            return False
        if self.effective_from and now < self.effective_from:
            return False
        if self.effective_until and now > self.effective_until:
            return False
        return True

    def matches_terms(self, terms: Iterable[str], corpus: str = "") -> bool:
        """True when a product term appears in a rule keyword or a keyword in the corpus."""

        keywords = [keyword.casefold() for keyword in self.keywords if keyword]
        for term in terms:
            folded = term.casefold()
            if any(folded in keyword for keyword in keywords):
                return True
        return bool(corpus) and any(keyword in corpus for keyword in keywords)


# ---------------------------------------------------------------------------
# Rule set outputs
# ---------------------------------------------------------------------------

class AntiqueComplianceResult(BaseModel):
    compliant: bool = True
    risk_level: RiskLevel = RiskLevel.LOW
    requires_license: bool = False
    has_valid_license: bool = False
    applicable_categories: List[AntiqueDealerCategory] = Field(default_factory=list)
    violations: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @property
    def license_missing(self) -> bool:
        return self.requires_license and not self.has_valid_license


class TariffEstimateModel(BaseModel):
    tariff_code: str
    rate: float
    amount: float
    currency: str = "JPY"

    model_config = ConfigDict(extra="forbid")


class ImportComplianceResult(BaseModel):
    compliant: bool = True
    risk_level: RiskLevel = RiskLevel.LOW
    matched_categories: List[str] = Field(default_factory=list)
    prohibited_reasons: List[str] = Field(default_factory=list)
    restricted_reasons: List[str] = Field(default_factory=list)
    required_documents: List[str] = Field(default_factory=list)
    required_licenses: List[str] = Field(default_factory=list)
    estimated_tariff: Optional[TariffEstimateModel] = None
    recommendations: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Combined verdict
# ---------------------------------------------------------------------------

class RuleResultModel(BaseModel):
    """Uniform view of one contributing rule."""

    rule_id: str
    rule_type: str
    rule_title: str
    matched: bool
    risk_level: RiskLevel
    details: str = ""
    required_actions: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class RequiredLicenseModel(BaseModel):
    type: str
    name: str
    required: bool = True
    possessed: bool = False
    authority: str = ""

    model_config = ConfigDict(extra="forbid")


class RequiredDocumentModel(BaseModel):
    type: str
    name: str
    required: bool = True
    uploaded: bool = False

    model_config = ConfigDict(extra="forbid")


class ProhibitedReasonModel(BaseModel):
    rule: str
    reason: str
    legal_basis: str
    penalty: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class RecommendationModel(BaseModel):
    type: Literal["action", "warning", "info"]
    message: str
    priority: Literal["high", "medium", "low"]
    action_required: bool

    model_config = ConfigDict(extra="forbid")


class ComplianceCheckResultModel(BaseModel):
    """Combiner output before it is stamped into a persisted record."""

    status: ComplianceStatus
    risk_score: float = Field(ge=0.0, le=1.0)
    rule_results: List[RuleResultModel] = Field(default_factory=list)
    required_licenses: List[RequiredLicenseModel] = Field(default_factory=list)
    required_documents: List[RequiredDocumentModel] = Field(default_factory=list)
    prohibited_reasons: List[ProhibitedReasonModel] = Field(default_factory=list)
    recommendations: List[RecommendationModel] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class ComplianceCheckRecord(BaseModel):
    """Immutable outcome of one evaluation for a product/user pair.

    Collections are stored as tuples. ``metadata`` stays a plain dict and is
    only shallowly frozen: treat it as read-only.
    """

    check_id: str
    product_id: Optional[str] = None
    user_id: str
    check_type: CheckType = CheckType.AUTOMATIC
    status: ComplianceStatus
    risk_score: float = Field(ge=0.0, le=1.0)
    rule_results: Tuple[RuleResultModel, ...] = ()
    required_licenses: Tuple[RequiredLicenseModel, ...] = ()
    required_documents: Tuple[RequiredDocumentModel, ...] = ()
    prohibited_reasons: Tuple[ProhibitedReasonModel, ...] = ()
    recommendations: Tuple[RecommendationModel, ...] = ()
    performed_at: datetime
    next_check_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("performed_at", "next_check_at")
    @classmethod
    def _normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @property
    def is_compliant(self) -> bool:
        return self.status == ComplianceStatus.COMPLIANT

    @property
    def is_prohibited(self) -> bool:
        return self.status == ComplianceStatus.PROHIBITED

    @property
    def requires_action(self) -> bool:
        return self.status in (
            ComplianceStatus.NON_COMPLIANT,
            ComplianceStatus.REQUIRES_REVIEW,
            ComplianceStatus.NEEDS_LICENSE,
        )

    @property
    def has_high_risk(self) -> bool:
        return self.risk_score >= 0.7

    @property
    def has_medium_risk(self) -> bool:
        return 0.4 <= self.risk_score < 0.7

    def needs_recheck(self, now: datetime | None = None) -> bool:
        if self.next_check_at is None:
            return False
        return resolve_now(now) >= self.next_check_at
