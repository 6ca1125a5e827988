"""Repositories mapping compliance models onto the SQLAlchemy tables.

Compliance checks are append-only: ``ComplianceCheckRepository.add`` inserts
and nothing in this module updates or deletes a check row.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy.orm import sessionmaker

from sedori.compliance.models import (
    ComplianceCheckRecord,
    ComplianceStatus,
    LicenseModel,
    LicenseStatus,
    RegulationRuleModel,
    resolve_now,
)
from sedori.db.models import AntiqueLicenseRow, ComplianceCheckRow, RegulationRuleRow
from sedori.db.session import get_standalone_session, make_session_factory

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 200
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _clamp(limit: int) -> int:
    return max(1, min(limit, MAX_LIST_LIMIT))


# ---------------------------------------------------------------------------
# Compliance checks
# ---------------------------------------------------------------------------

def _check_to_row(record: ComplianceCheckRecord) -> ComplianceCheckRow:
    payload = record.model_dump(mode="json")
    return ComplianceCheckRow(
        check_id=record.check_id,
        product_id=record.product_id,
        user_id=record.user_id,
        check_type=record.check_type.value,
        status=record.status.value,
        risk_score=record.risk_score,
        rule_results=payload["rule_results"],
        required_licenses=payload["required_licenses"],
        required_documents=payload["required_documents"],
        prohibited_reasons=payload["prohibited_reasons"],
        recommendations=payload["recommendations"],
        performed_at=record.performed_at,
        next_check_at=record.next_check_at,
        metadata_json=payload["metadata"],
    )


def _row_to_check(row: ComplianceCheckRow) -> ComplianceCheckRecord:
    return ComplianceCheckRecord(
        check_id=row.check_id,
        product_id=row.product_id,
        user_id=row.user_id,
        check_type=row.check_type,
        status=row.status,
        risk_score=row.risk_score,
        rule_results=row.rule_results or [],
        required_licenses=row.required_licenses or [],
        required_documents=row.required_documents or [],
        prohibited_reasons=row.prohibited_reasons or [],
        recommendations=row.recommendations or [],
        performed_at=row.performed_at,
        next_check_at=row.next_check_at,
        metadata=row.metadata_json or {},
    )


class ComplianceCheckRepository:
    """Append-only store of compliance verdicts."""

    def __init__(self, session_factory: sessionmaker | None = None):
        self._factory = session_factory or make_session_factory()

    def add(self, record: ComplianceCheckRecord) -> ComplianceCheckRecord:
        with get_standalone_session(self._factory) as session:
            session.add(_check_to_row(record))
        logger.info("Stored compliance check %s (%s)", record.check_id, record.status.value)
        return record

    def get(self, check_id: str, user_id: str | None = None) -> Optional[ComplianceCheckRecord]:
        with get_standalone_session(self._factory) as session:
            query = session.query(ComplianceCheckRow).filter_by(check_id=check_id)
            if user_id is not None:
                query = query.filter_by(user_id=user_id)
            row = query.first()
            return _row_to_check(row) if row else None

    def latest_for_product(self, product_id: str) -> Optional[ComplianceCheckRecord]:
        with get_standalone_session(self._factory) as session:
            row = (
                session.query(ComplianceCheckRow)
                .filter_by(product_id=product_id)
                .order_by(ComplianceCheckRow.performed_at.desc(), ComplianceCheckRow.id.desc())
                .first()
            )
            return _row_to_check(row) if row else None

    def latest_status(self, product_id: str) -> Optional[ComplianceStatus]:
        record = self.latest_for_product(product_id)
        return record.status if record else None

    def list_for_user(
        self,
        user_id: str,
        status: ComplianceStatus | None = None,
        limit: int = 50,
    ) -> List[ComplianceCheckRecord]:
        with get_standalone_session(self._factory) as session:
            query = session.query(ComplianceCheckRow).filter_by(user_id=user_id)
            if status is not None:
                query = query.filter_by(status=status.value)
            rows = (
                query.order_by(ComplianceCheckRow.performed_at.desc(), ComplianceCheckRow.id.desc())
                .limit(_clamp(limit))
                .all()
            )
            return [_row_to_check(row) for row in rows]

    def due_for_recheck(
        self,
        now: datetime | None = None,
        statuses: Iterable[ComplianceStatus] | None = None,
    ) -> List[ComplianceCheckRecord]:
        """Checks whose ``next_check_at`` has passed; terminal checks never appear."""

        now = resolve_now(now)
        with get_standalone_session(self._factory) as session:
            query = session.query(ComplianceCheckRow).filter(
                ComplianceCheckRow.next_check_at.isnot(None),
                ComplianceCheckRow.next_check_at <= now,
            )
            if statuses is not None:
                query = query.filter(ComplianceCheckRow.status.in_([s.value for s in statuses]))
            rows = query.order_by(ComplianceCheckRow.next_check_at, ComplianceCheckRow.id).all()
            return [_row_to_check(row) for row in rows]


# ---------------------------------------------------------------------------
# Licenses
# ---------------------------------------------------------------------------

def _row_to_license(row: AntiqueLicenseRow) -> LicenseModel:
    return LicenseModel(
        license_id=row.license_id,
        user_id=row.user_id,
        license_number=row.license_number,
        status=row.status,
        categories=row.categories or [],
        issued_at=row.issued_at,
        expires_at=row.expires_at,
        issuing_authority=row.issuing_authority,
        business_name=row.business_name,
    )


class LicenseRepository:
    """Read side of the license-management tables, plus seeding helpers."""

    def __init__(self, session_factory: sessionmaker | None = None):
        self._factory = session_factory or make_session_factory()

    def add(self, license_model: LicenseModel) -> LicenseModel:
        if not license_model.user_id:
            raise ValueError("license must belong to a user")
        stored = license_model.model_copy(
            update={"license_id": license_model.license_id or uuid.uuid4().hex}
        )
        with get_standalone_session(self._factory) as session:
            session.add(
                AntiqueLicenseRow(
                    license_id=stored.license_id,
                    user_id=stored.user_id,
                    license_number=stored.license_number,
                    status=stored.status.value,
                    categories=[category.value for category in stored.categories],
                    issued_at=stored.issued_at,
                    expires_at=stored.expires_at,
                    issuing_authority=stored.issuing_authority,
                    business_name=stored.business_name,
                )
            )
        return stored

    def list_for_user(self, user_id: str) -> List[LicenseModel]:
        with get_standalone_session(self._factory) as session:
            rows = (
                session.query(AntiqueLicenseRow)
                .filter_by(user_id=user_id)
                .order_by(AntiqueLicenseRow.expires_at)
                .all()
            )
            return [_row_to_license(row) for row in rows]

    def active_for_user(self, user_id: str) -> List[LicenseModel]:
        with get_standalone_session(self._factory) as session:
            rows = (
                session.query(AntiqueLicenseRow)
                .filter_by(user_id=user_id, status=LicenseStatus.ACTIVE.value)
                .order_by(AntiqueLicenseRow.expires_at)
                .all()
            )
            return [_row_to_license(row) for row in rows]

    def mark_expired(self, now: datetime | None = None) -> int:
        """Flip active licenses past their expiry to ``expired``; returns the count."""

        now = resolve_now(now)
        with get_standalone_session(self._factory) as session:
            count = (
                session.query(AntiqueLicenseRow)
                .filter(
                    AntiqueLicenseRow.status == LicenseStatus.ACTIVE.value,
                    AntiqueLicenseRow.expires_at < now,
                )
                .update({AntiqueLicenseRow.status: LicenseStatus.EXPIRED.value}, synchronize_session=False)
            )
        logger.info("Marked %d licenses as expired", count)
        return count


# ---------------------------------------------------------------------------
# Regulation rules
# ---------------------------------------------------------------------------

def _row_to_rule(row: RegulationRuleRow) -> RegulationRuleModel:
    return RegulationRuleModel(
        rule_id=row.rule_id,
        type=row.type,
        category=row.category or "",
        subcategory=row.subcategory or "",
        title=row.title,
        description=row.description or "",
        requirements=row.requirements,
        risk_level=row.risk_level,
        status=row.status,
        keywords=row.keywords or [],
        required_documents=row.required_documents or [],
        required_licenses=row.required_licenses or [],
        legal_basis=row.legal_basis or "",
        authority=row.authority or "",
        effective_from=row.effective_from,
        effective_until=row.effective_until,
    )


class RegulationRuleRepository:
    def __init__(self, session_factory: sessionmaker | None = None):
        self._factory = session_factory or make_session_factory()

    def add(self, rule: RegulationRuleModel) -> RegulationRuleModel:
        payload = rule.model_dump(mode="json")
        with get_standalone_session(self._factory) as session:
            session.add(
                RegulationRuleRow(
                    rule_id=rule.rule_id,
                    type=rule.type.value,
                    category=rule.category,
                    subcategory=rule.subcategory,
                    title=rule.title,
                    description=rule.description,
                    requirements=rule.requirements,
                    risk_level=rule.risk_level.value,
                    status=rule.status.value,
                    keywords=payload["keywords"],
                    required_documents=payload["required_documents"],
                    required_licenses=payload["required_licenses"],
                    legal_basis=rule.legal_basis,
                    authority=rule.authority,
                    effective_from=rule.effective_from,
                    effective_until=rule.effective_until,
                )
            )
        return rule

    def list_active(
        self,
        now: datetime | None = None,
        *,
        category: str | None = None,
        rule_type: str | None = None,
    ) -> List[RegulationRuleModel]:
        """Active rules, newest effective date first."""

        with get_standalone_session(self._factory) as session:
            query = session.query(RegulationRuleRow).filter_by(status="active")
            if category:
                query = query.filter_by(category=category)
            if rule_type:
                query = query.filter_by(type=rule_type)
            rows = query.order_by(RegulationRuleRow.rule_id).all()
            rules = [_row_to_rule(row) for row in rows]
        rules = [rule for rule in rules if rule.is_active(now)]
        rules.sort(key=lambda rule: rule.effective_from or _EPOCH, reverse=True)
        return rules
