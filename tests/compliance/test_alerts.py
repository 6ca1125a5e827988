from __future__ import annotations

from datetime import date, timedelta

import pytest

from sedori.compliance.alerts import (
    AlertSummary,
    compliance_review_alert,
    group_checks_by_user,
    license_expiration_alert,
    license_expiration_alerts,
    regulatory_update_alerts,
    review_alerts,
    weekly_summary,
    weekly_summary_alert,
)
from sedori.compliance.models import (
    ComplianceCheckRecord,
    ComplianceStatus,
    LicenseModel,
    LicenseStatus,
)


def _license(now, days: float, **overrides) -> LicenseModel:
    base = {
        "license_id": "lic-1",
        "user_id": "user-1",
        "license_number": "301234567890",
        "expires_at": now + timedelta(days=days),
    }
    base.update(overrides)
    return LicenseModel(**base)


def _check(now, status: ComplianceStatus, user_id: str = "user-1", **overrides) -> ComplianceCheckRecord:
    base = {
        "check_id": f"{user_id}-{status.value}-{overrides.get('performed_at', now).isoformat()}",
        "user_id": user_id,
        "status": status,
        "risk_score": 0.5,
        "performed_at": now,
    }
    base.update(overrides)
    return ComplianceCheckRecord(**base)


class TestLicenseExpirationAlert:
    @pytest.mark.parametrize(
        "days,priority",
        [(-1, "high"), (3, "high"), (7, "high"), (8, "medium"), (30, "medium")],
    )
    def test_priority_by_remaining_days(self, now, days, priority):
        alert = license_expiration_alert(_license(now, days), now=now)
        assert alert is not None
        assert alert.priority == priority
        assert alert.category == "compliance_license"
        assert alert.data["license_number"] == "301234567890"

    def test_distant_expiry_needs_no_alert(self, now):
        assert license_expiration_alert(_license(now, 31), now=now) is None

    def test_expired_flag(self, now):
        alert = license_expiration_alert(_license(now, -5), now=now)
        assert alert.data["is_expired"] is True
        assert "expired" in alert.title

    def test_batch_skips_inactive_licenses(self, now):
        licenses = [
            _license(now, 5),
            _license(now, 5, license_number="x", status=LicenseStatus.REVOKED),
            _license(now, 200, license_number="y"),
        ]
        alerts = license_expiration_alerts(licenses, now=now)
        assert [a.data["license_number"] for a in alerts] == ["301234567890"]


class TestComplianceReviewAlert:
    def test_worst_status_sets_priority(self, now):
        checks = [
            _check(now, ComplianceStatus.REQUIRES_REVIEW),
            _check(now, ComplianceStatus.PROHIBITED),
        ]
        alert = compliance_review_alert("user-1", checks)
        assert alert.priority == "high"
        assert alert.data["prohibited"] == 1
        assert alert.data["total_products"] == 2

    @pytest.mark.parametrize(
        "status,priority",
        [
            (ComplianceStatus.NON_COMPLIANT, "high"),
            (ComplianceStatus.NEEDS_LICENSE, "medium"),
            (ComplianceStatus.REQUIRES_REVIEW, "low"),
        ],
    )
    def test_single_status(self, now, status, priority):
        assert compliance_review_alert("user-1", [_check(now, status)]).priority == priority

    def test_nothing_to_report(self, now):
        assert compliance_review_alert("user-1", [_check(now, ComplianceStatus.COMPLIANT)]) is None
        assert compliance_review_alert("user-1", []) is None

    def test_review_alerts_group_due_checks_by_user(self, now):
        past = now - timedelta(days=1)
        checks = [
            _check(now, ComplianceStatus.NON_COMPLIANT, next_check_at=past),
            _check(now, ComplianceStatus.REQUIRES_REVIEW, "user-2", next_check_at=past),
            _check(now, ComplianceStatus.REQUIRES_REVIEW, "user-3", next_check_at=now + timedelta(days=5)),
            _check(now, ComplianceStatus.COMPLIANT, "user-4", next_check_at=past),
        ]
        assert set(group_checks_by_user(checks)) == {"user-1", "user-2", "user-3", "user-4"}

        alerts = review_alerts(checks, now=now)
        assert {(a.user_id, a.priority) for a in alerts} == {("user-1", "high"), ("user-2", "low")}


def test_weekly_summary_counts_recent_activity(now):
    licenses = [
        _license(now, 10),
        _license(now, 120, license_number="far"),
        _license(now, 10, license_number="other-user", user_id="user-9"),
    ]
    checks = [
        _check(now, ComplianceStatus.PROHIBITED),
        _check(now - timedelta(days=2), ComplianceStatus.NON_COMPLIANT, performed_at=now - timedelta(days=2)),
        _check(now, ComplianceStatus.REQUIRES_REVIEW, performed_at=now - timedelta(days=30)),
        _check(now, ComplianceStatus.COMPLIANT),
    ]

    summary = weekly_summary("user-1", licenses, checks, now=now)

    assert summary == AlertSummary(
        total_alerts=3,
        expiring_licenses=1,
        non_compliant_products=1,
        prohibited_products=1,
        review_required=0,
    )
    alert = weekly_summary_alert("user-1", summary, now=now)
    assert alert.category == "compliance_summary"
    assert "Prohibited products: 1" in alert.message
    assert weekly_summary_alert("user-1", AlertSummary(), now=now) is None


def test_weekly_summary_ignores_lapsed_licenses_still_marked_active(now):
    lapsed = _license(now, -200, status=LicenseStatus.ACTIVE)
    summary = weekly_summary("user-1", [lapsed], [], now=now)
    assert summary == AlertSummary()
    assert weekly_summary_alert("user-1", summary, now=now) is None


def test_weekly_summary_accepts_naive_now(now):
    summary = weekly_summary("user-1", [_license(now, 10)], [], now=now.replace(tzinfo=None))
    assert summary.expiring_licenses == 1


def test_regulatory_update_alerts_one_per_user():
    alerts = regulatory_update_alerts(
        ["user-1", "user-2"],
        "Antique Dealings Act amendment",
        "Online listings must show the license number.",
        date(2025, 10, 1),
        ["books", "jewelry"],
    )
    assert [a.user_id for a in alerts] == ["user-1", "user-2"]
    assert "2025-10-01" in alerts[0].message
    assert alerts[0].data["affected_categories"] == ["books", "jewelry"]
