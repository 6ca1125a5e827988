from datetime import timedelta

import pytest

from sedori.compliance.config import ComplianceConfig
from sedori.compliance.models import ComplianceStatus
from sedori.compliance.scheduling import next_check_at, recheck_delay_days


@pytest.mark.parametrize(
    "status,days",
    [
        (ComplianceStatus.NON_COMPLIANT, 7),
        (ComplianceStatus.NEEDS_LICENSE, 7),
        (ComplianceStatus.REQUIRES_REVIEW, 30),
        (ComplianceStatus.COMPLIANT, 90),
        (ComplianceStatus.PENDING, 30),
    ],
)
def test_recheck_table(now, status, days):
    assert next_check_at(status, now=now) == now + timedelta(days=days)


def test_prohibited_is_terminal(now):
    assert recheck_delay_days(ComplianceStatus.PROHIBITED) is None
    assert next_check_at(ComplianceStatus.PROHIBITED, now=now) is None


def test_unknown_status_uses_fallback():
    assert recheck_delay_days("archived") == 30


def test_table_is_configurable(now):
    config = ComplianceConfig(recheck_days={"compliant": 180}, recheck_fallback_days=14)
    assert next_check_at(ComplianceStatus.COMPLIANT, now=now, config=config) == now + timedelta(days=180)
    assert recheck_delay_days(ComplianceStatus.PROHIBITED, config) == 14
