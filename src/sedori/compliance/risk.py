"""Ordinal risk levels shared by every compliance rule set.

Risk levels form a total order::

    none < low < medium < high < prohibited

so "raise to at least X" is ``max(current, X)`` and a verdict can never be
downgraded by a later, milder finding.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Mapping


class RiskLevel(str, Enum):
    """Severity of a single rule outcome, declared in ascending order."""

    NONE       = "none"
    LOW        = "low"
    MEDIUM     = "medium"
    HIGH       = "high"
    PROHIBITED = "prohibited"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


_RANK = {level: index for index, level in enumerate(RiskLevel)}


DEFAULT_RISK_SCORES: Mapping[RiskLevel, float] = {
    RiskLevel.PROHIBITED: 1.0,
    RiskLevel.HIGH: 0.8,
    RiskLevel.MEDIUM: 0.5,
    RiskLevel.LOW: 0.2,
    RiskLevel.NONE: 0.0,
}


def escalate(current: RiskLevel, floor: RiskLevel) -> RiskLevel:
    """Return ``current`` raised to at least ``floor``."""

    return max(current, floor)


def worst(levels: Iterable[RiskLevel]) -> RiskLevel:
    """Highest level in ``levels`` (``NONE`` for an empty iterable)."""

    return max(levels, default=RiskLevel.NONE)


def risk_score(
    levels: Iterable[RiskLevel],
    scores: Mapping[RiskLevel, float] | None = None,
) -> float:
    """Ceiling score over ``levels``; many mild findings never dilute a severe one."""

    scale = scores or DEFAULT_RISK_SCORES
    return max((scale.get(level, 0.0) for level in levels), default=0.0)
