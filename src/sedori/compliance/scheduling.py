from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from sedori.compliance.config import DEFAULT_CONFIG, ComplianceConfig
from sedori.compliance.models import ComplianceStatus, resolve_now


def recheck_delay_days(
    status: ComplianceStatus | str, config: ComplianceConfig | None = None
) -> Optional[int]:
    """Days until the next check for ``status``; None when the status is terminal."""

    config = config or DEFAULT_CONFIG
    key = status.value if isinstance(status, ComplianceStatus) else str(status)
    if key in config.recheck_days:
        return config.recheck_days[key]
    return config.recheck_fallback_days


def next_check_at(
    status: ComplianceStatus | str,
    *,
    now: datetime | None = None,
    config: ComplianceConfig | None = None,
) -> Optional[datetime]:
    """When an external scheduler should re-queue the product.

    Prohibited products are never re-checked automatically.
    """

    days = recheck_delay_days(status, config)
    if days is None:
        return None
    return resolve_now(now) + timedelta(days=days)
