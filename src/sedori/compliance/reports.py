from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from sedori.compliance.models import (
    ComplianceCheckRecord,
    ComplianceStatus,
    LicenseModel,
    LicenseStatus,
    resolve_now,
)

RECENT_CHECKS_LIMIT = 10
UPCOMING_EXPIRATIONS_LIMIT = 5
EXPIRY_WINDOW_DAYS = 30


class LicenseStatsModel(BaseModel):
    total: int
    active: int
    expiring: int
    expired: int

    model_config = ConfigDict(extra="forbid")


class ProductStatsModel(BaseModel):
    total: int
    compliant: int
    non_compliant: int
    prohibited: int
    needs_review: int

    model_config = ConfigDict(extra="forbid")


class ComplianceDashboardModel(BaseModel):
    licenses: LicenseStatsModel
    products: ProductStatsModel
    recent_checks: List[ComplianceCheckRecord] = Field(default_factory=list)
    upcoming_expirations: List[LicenseModel] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class ReportSummaryModel(BaseModel):
    date_from: datetime
    date_to: datetime
    license_count: int
    checks_performed: int
    compliance_rate: float
    risk_products: int

    model_config = ConfigDict(extra="forbid")


class LicenseStatusRowModel(BaseModel):
    license_number: str
    business_name: Optional[str] = None
    status: LicenseStatus
    expires_at: datetime
    days_until_expiry: int
    is_expiring_soon: bool

    model_config = ConfigDict(extra="forbid")


class CheckRowModel(BaseModel):
    product_id: Optional[str] = None
    status: ComplianceStatus
    risk_score: float
    performed_at: datetime
    issues_count: int
    recommendations_count: int

    model_config = ConfigDict(extra="forbid")


class ComplianceReportModel(BaseModel):
    summary: ReportSummaryModel
    license_status: List[LicenseStatusRowModel] = Field(default_factory=list)
    compliance_checks: List[CheckRowModel] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


def _newest_first(checks: Sequence[ComplianceCheckRecord]) -> List[ComplianceCheckRecord]:
    return sorted(checks, key=lambda check: check.performed_at, reverse=True)


def _count(checks: Sequence[ComplianceCheckRecord], status: ComplianceStatus) -> int:
    return sum(1 for check in checks if check.status == status)


def compliance_dashboard(
    licenses: Sequence[LicenseModel],
    checks: Sequence[ComplianceCheckRecord],
    *,
    now: datetime | None = None,
) -> ComplianceDashboardModel:
    """License and product statistics over the most recent checks."""

    now = resolve_now(now)
    recent = _newest_first(checks)[:RECENT_CHECKS_LIMIT]

    license_stats = LicenseStatsModel(
        total=len(licenses),
        active=sum(1 for held in licenses if held.is_usable(now)),
        expiring=sum(1 for held in licenses if held.is_expiring_soon(now, EXPIRY_WINDOW_DAYS)),
        expired=sum(1 for held in licenses if held.is_expired(now)),
    )
    product_stats = ProductStatsModel(
        total=len(recent),
        compliant=_count(recent, ComplianceStatus.COMPLIANT),
        non_compliant=_count(recent, ComplianceStatus.NON_COMPLIANT),
        prohibited=_count(recent, ComplianceStatus.PROHIBITED),
        needs_review=_count(recent, ComplianceStatus.REQUIRES_REVIEW),
    )
    horizon = now + timedelta(days=EXPIRY_WINDOW_DAYS)
    upcoming = sorted(
        (held for held in licenses if not held.is_expired(now) and held.expires_at <= horizon),
        key=lambda held: held.expires_at,
    )[:UPCOMING_EXPIRATIONS_LIMIT]

    return ComplianceDashboardModel(
        licenses=license_stats,
        products=product_stats,
        recent_checks=recent,
        upcoming_expirations=upcoming,
    )


def report_recommendations(
    licenses: Sequence[LicenseModel],
    checks: Sequence[ComplianceCheckRecord],
    *,
    now: datetime | None = None,
) -> List[str]:
    now = resolve_now(now)
    expired = sum(1 for held in licenses if held.is_expired(now))
    expiring = sum(1 for held in licenses if held.is_expiring_soon(now, EXPIRY_WINDOW_DAYS))
    prohibited = _count(checks, ComplianceStatus.PROHIBITED)
    high_risk = sum(1 for check in checks if check.has_high_risk)

    recommendations: List[str] = []
    if expired:
        recommendations.append(f"{expired} licenses have expired. Renew them immediately.")
    if expiring:
        recommendations.append(f"{expiring} licenses are due for renewal soon. Start the procedure early.")
    if prohibited:
        recommendations.append(
            f"{prohibited} products carry legal risk. Stop selling them and seek legal advice."
        )
    if high_risk:
        recommendations.append(f"{high_risk} products are high risk and need a detailed review.")
    if not recommendations:
        recommendations.append("Compliance is in good shape. Keep checking regularly.")
    return recommendations


def compliance_report(
    licenses: Sequence[LicenseModel],
    checks: Sequence[ComplianceCheckRecord],
    *,
    date_from: datetime,
    date_to: datetime,
    now: datetime | None = None,
) -> ComplianceReportModel:
    """Compliance report for checks performed within ``[date_from, date_to]``."""

    date_from = resolve_now(date_from)
    date_to = resolve_now(date_to)
    if date_from > date_to:
        raise ValueError("date_from must not be after date_to")
    now = resolve_now(now)
    in_period = _newest_first(
        [check for check in checks if date_from <= check.performed_at <= date_to]
    )

    compliance_rate = (
        _count(in_period, ComplianceStatus.COMPLIANT) / len(in_period) * 100
        if in_period
        else 100.0
    )
    summary = ReportSummaryModel(
        date_from=date_from,
        date_to=date_to,
        license_count=len(licenses),
        checks_performed=len(in_period),
        compliance_rate=compliance_rate,
        risk_products=sum(1 for check in in_period if check.has_high_risk),
    )
    license_rows = [
        LicenseStatusRowModel(
            license_number=held.license_number,
            business_name=held.business_name,
            status=held.status,
            expires_at=held.expires_at,
            days_until_expiry=held.days_until_expiry(now),
            is_expiring_soon=held.is_expiring_soon(now, EXPIRY_WINDOW_DAYS),
        )
        for held in licenses
    ]
    check_rows = [
        CheckRowModel(
            product_id=check.product_id,
            status=check.status,
            risk_score=check.risk_score,
            performed_at=check.performed_at,
            issues_count=len(check.prohibited_reasons),
            recommendations_count=len(check.recommendations),
        )
        for check in in_period
    ]
    return ComplianceReportModel(
        summary=summary,
        license_status=license_rows,
        compliance_checks=check_rows,
        recommendations=report_recommendations(licenses, in_period, now=now),
    )
