from __future__ import annotations

from datetime import timedelta

import pytest

from sedori.compliance.models import (
    ComplianceCheckRecord,
    ComplianceStatus,
    LicenseModel,
    LicenseStatus,
    ProhibitedReasonModel,
)
from sedori.compliance.reports import compliance_dashboard, compliance_report


def _license(now, number: str, days: int, **overrides) -> LicenseModel:
    return LicenseModel(
        license_number=number,
        user_id="user-1",
        expires_at=now + timedelta(days=days),
        **overrides,
    )


def _check(now, check_id: str, status: ComplianceStatus, score: float, **overrides) -> ComplianceCheckRecord:
    return ComplianceCheckRecord(
        check_id=check_id,
        product_id=f"p-{check_id}",
        user_id="user-1",
        status=status,
        risk_score=score,
        performed_at=overrides.pop("performed_at", now),
        **overrides,
    )


def test_dashboard_statistics(now):
    licenses = [
        _license(now, "ok", 200),
        _license(now, "soon", 12),
        _license(now, "gone", -3),
        _license(now, "suspended", 300, status=LicenseStatus.SUSPENDED),
    ]
    checks = [
        _check(now - timedelta(hours=i), f"c{i}", ComplianceStatus.COMPLIANT, 0.2) for i in range(12)
    ] + [_check(now + timedelta(minutes=1), "bad", ComplianceStatus.PROHIBITED, 1.0)]

    dashboard = compliance_dashboard(licenses, checks, now=now)

    assert dashboard.licenses.model_dump() == {"total": 4, "active": 2, "expiring": 1, "expired": 1}
    assert dashboard.products.total == 10
    assert dashboard.products.prohibited == 1
    assert dashboard.products.compliant == 9
    assert dashboard.recent_checks[0].check_id == "bad"
    assert [lic.license_number for lic in dashboard.upcoming_expirations] == ["soon"]


class TestComplianceReport:
    def test_empty_period_reports_full_compliance(self, now):
        report = compliance_report([], [], date_from=now - timedelta(days=30), date_to=now, now=now)
        assert report.summary.compliance_rate == 100.0
        assert report.summary.checks_performed == 0
        assert report.recommendations == ["Compliance is in good shape. Keep checking regularly."]

    def test_rate_and_risk_counts_within_period(self, now):
        checks = [
            _check(now, "a", ComplianceStatus.COMPLIANT, 0.2),
            _check(now, "b", ComplianceStatus.NEEDS_LICENSE, 0.8),
            _check(
                now,
                "c",
                ComplianceStatus.PROHIBITED,
                1.0,
                prohibited_reasons=[
                    ProhibitedReasonModel(rule="Import restrictions", reason="weapons", legal_basis="x")
                ],
            ),
            _check(now, "d", ComplianceStatus.COMPLIANT, 0.2),
            _check(now, "outside", ComplianceStatus.PROHIBITED, 1.0, performed_at=now - timedelta(days=90)),
        ]
        licenses = [_license(now, "gone", -1), _license(now, "soon", 5)]

        report = compliance_report(
            licenses, checks, date_from=now - timedelta(days=30), date_to=now, now=now
        )

        assert report.summary.checks_performed == 4
        assert report.summary.compliance_rate == pytest.approx(50.0)
        assert report.summary.risk_products == 2
        rows = {row.product_id: row for row in report.compliance_checks}
        assert rows["p-c"].issues_count == 1
        assert "p-outside" not in rows
        assert [row.days_until_expiry for row in report.license_status] == [-1, 5]
        assert len(report.recommendations) == 4

    def test_inverted_period_is_rejected(self, now):
        with pytest.raises(ValueError):
            compliance_report([], [], date_from=now, date_to=now - timedelta(days=1), now=now)

    def test_naive_period_and_now_are_read_as_utc(self, now):
        naive = now.replace(tzinfo=None)
        checks = [_check(now, "a", ComplianceStatus.COMPLIANT, 0.2)]

        report = compliance_report(
            [_license(now, "soon", 5)],
            checks,
            date_from=naive - timedelta(days=30),
            date_to=naive,
            now=naive,
        )

        assert report.summary.checks_performed == 1
        assert report.summary.date_to == now
        assert report.license_status[0].days_until_expiry == 5
