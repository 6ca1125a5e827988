"""Alert payload builders for license expiry and compliance follow-up.

These functions only build payloads; delivery (email, in-app, push) and the
schedule that triggers them belong to the notification service.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from sedori.compliance.models import (
    ComplianceCheckRecord,
    ComplianceStatus,
    LicenseModel,
    LicenseStatus,
    resolve_now,
)

logger = logging.getLogger(__name__)

URGENT_EXPIRY_DAYS = 7
EXPIRY_NOTICE_DAYS = 30
SUMMARY_WINDOW_DAYS = 7


class AlertModel(BaseModel):
    user_id: str
    title: str
    message: str
    category: str
    priority: Literal["high", "medium", "low"]
    data: Dict[str, Any] = Field(default_factory=dict)
    action_url: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class AlertSummary(BaseModel):
    total_alerts: int = 0
    expiring_licenses: int = 0
    non_compliant_products: int = 0
    prohibited_products: int = 0
    review_required: int = 0

    model_config = ConfigDict(extra="forbid")


def license_expiration_alert(
    license_model: LicenseModel, *, now: datetime | None = None
) -> Optional[AlertModel]:
    """Alert for an expired or soon-expiring license, or None when not due."""

    now = resolve_now(now)
    days = license_model.days_until_expiry(now)
    expired = license_model.is_expired(now)

    if expired:
        title = "Antique dealer license has expired"
        message = (
            f"Antique dealer license {license_model.license_number} has expired. "
            "Renew it to keep trading second-hand goods."
        )
        priority = "high"
    elif days <= URGENT_EXPIRY_DAYS:
        title = "Antique dealer license expires soon (urgent)"
        message = (
            f"Antique dealer license {license_model.license_number} expires in {days} days. "
            "Start the renewal immediately."
        )
        priority = "high"
    elif days <= EXPIRY_NOTICE_DAYS:
        title = "Antique dealer license renewal reminder"
        message = (
            f"Antique dealer license {license_model.license_number} expires in {days} days. "
            "Start the renewal procedure."
        )
        priority = "medium"
    else:
        return None

    return AlertModel(
        user_id=license_model.user_id or "",
        title=title,
        message=message,
        category="compliance_license",
        priority=priority,
        data={
            "license_id": license_model.license_id,
            "license_number": license_model.license_number,
            "expires_at": license_model.expires_at.isoformat(),
            "days_until_expiry": days,
            "is_expired": expired,
        },
        action_url="/compliance/licenses",
    )


def license_expiration_alerts(
    licenses: Iterable[LicenseModel], *, now: datetime | None = None
) -> List[AlertModel]:
    """Alerts for every active license that is expired or within the notice window."""

    now = resolve_now(now)
    alerts = []
    for held in licenses:
        if held.status != LicenseStatus.ACTIVE:
            continue
        alert = license_expiration_alert(held, now=now)
        if alert is not None:
            alerts.append(alert)
    logger.info("Built %d license expiration alerts", len(alerts))
    return alerts


def group_checks_by_user(
    checks: Iterable[ComplianceCheckRecord],
) -> Dict[str, List[ComplianceCheckRecord]]:
    grouped: Dict[str, List[ComplianceCheckRecord]] = defaultdict(list)
    for check in checks:
        grouped[check.user_id].append(check)
    return dict(grouped)


def _count(checks: Sequence[ComplianceCheckRecord], status: ComplianceStatus) -> int:
    return sum(1 for check in checks if check.status == status)


def compliance_review_alert(
    user_id: str, checks: Sequence[ComplianceCheckRecord]
) -> Optional[AlertModel]:
    """One alert per user; the worst status present decides the priority."""

    prohibited = _count(checks, ComplianceStatus.PROHIBITED)
    non_compliant = _count(checks, ComplianceStatus.NON_COMPLIANT)
    needs_license = _count(checks, ComplianceStatus.NEEDS_LICENSE)
    needs_review = _count(checks, ComplianceStatus.REQUIRES_REVIEW)

    if prohibited:
        title = "Prohibited products detected (urgent)"
        message = f"{prohibited} products carry legal risk. Stop selling them immediately."
        priority = "high"
    elif non_compliant:
        title = "Possible compliance violations"
        message = f"{non_compliant} products have compliance issues."
        priority = "high"
    elif needs_license:
        title = "Products require an additional license"
        message = f"{needs_license} products require an additional license."
        priority = "medium"
    elif needs_review:
        title = "Compliance review required"
        message = f"{needs_review} products need a compliance review."
        priority = "low"
    else:
        return None

    return AlertModel(
        user_id=user_id,
        title=title,
        message=f"{message} Review the details.",
        category="compliance_review",
        priority=priority,
        data={
            "total_products": len(checks),
            "prohibited": prohibited,
            "non_compliant": non_compliant,
            "needs_review": needs_review,
            "needs_license": needs_license,
        },
        action_url="/compliance/products",
    )


def review_alerts(
    checks: Iterable[ComplianceCheckRecord], *, now: datetime | None = None
) -> List[AlertModel]:
    """Review alerts for checks that are due and still need attention."""

    now = resolve_now(now)
    due = [
        check
        for check in checks
        if check.needs_recheck(now)
        and check.status in (ComplianceStatus.REQUIRES_REVIEW, ComplianceStatus.NON_COMPLIANT)
    ]
    alerts = []
    for user_id, user_checks in group_checks_by_user(due).items():
        alert = compliance_review_alert(user_id, user_checks)
        if alert is not None:
            alerts.append(alert)
    logger.info("Built compliance review alerts for %d users", len(alerts))
    return alerts


def weekly_summary(
    user_id: str,
    licenses: Iterable[LicenseModel],
    checks: Iterable[ComplianceCheckRecord],
    *,
    now: datetime | None = None,
    window_days: int = EXPIRY_NOTICE_DAYS,
) -> AlertSummary:
    now = resolve_now(now)
    since = now - timedelta(days=SUMMARY_WINDOW_DAYS)

    expiring = sum(
        1
        for held in licenses
        if held.user_id == user_id
        and held.status == LicenseStatus.ACTIVE
        and held.is_expiring_soon(now, window_days)
    )
    recent = [
        check
        for check in checks
        if check.user_id == user_id and check.performed_at >= since
    ]
    summary = AlertSummary(
        expiring_licenses=expiring,
        non_compliant_products=_count(recent, ComplianceStatus.NON_COMPLIANT),
        prohibited_products=_count(recent, ComplianceStatus.PROHIBITED),
        review_required=_count(recent, ComplianceStatus.REQUIRES_REVIEW),
    )
    return summary.model_copy(
        update={
            "total_alerts": summary.expiring_licenses
            + summary.non_compliant_products
            + summary.prohibited_products
            + summary.review_required
        }
    )


def weekly_summary_alert(
    user_id: str, summary: AlertSummary, *, now: datetime | None = None
) -> Optional[AlertModel]:
    if summary.total_alerts == 0:
        return None
    now = resolve_now(now)
    message = "\n".join(
        [
            "This week's compliance status:",
            f"- Licenses nearing expiry: {summary.expiring_licenses}",
            f"- Products to check: {summary.non_compliant_products}",
            f"- Prohibited products: {summary.prohibited_products}",
            f"- Reviews required: {summary.review_required}",
        ]
    )
    return AlertModel(
        user_id=user_id,
        title="Weekly compliance summary",
        message=message,
        category="compliance_summary",
        priority="low",
        data={**summary.model_dump(), "week_of": now.isoformat()},
        action_url="/compliance/dashboard",
    )


def regulatory_update_alerts(
    user_ids: Iterable[str],
    title: str,
    description: str,
    effective_date: date,
    affected_categories: Sequence[str],
) -> List[AlertModel]:
    message = (
        f"{title}\n\n{description}\n\n"
        f"Effective: {effective_date.isoformat()}\n"
        f"Affected categories: {', '.join(affected_categories)}"
    )
    return [
        AlertModel(
            user_id=user_id,
            title="Regulatory update",
            message=message,
            category="regulatory_update",
            priority="medium",
            data={
                "update_title": title,
                "effective_date": effective_date.isoformat(),
                "affected_categories": list(affected_categories),
            },
            action_url="/compliance/regulations",
        )
        for user_id in user_ids
    ]
