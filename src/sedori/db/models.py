"""SQLAlchemy models for the compliance tables.

- Antique dealer licenses (read by the checker, managed elsewhere)
- Freeform regulation rules (keyword-selected per product)
- Compliance checks (append-only verdict history)
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class AntiqueLicenseRow(Base):
    """Antique dealer license held by a user."""

    __tablename__ = "antique_licenses"

    license_id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    license_number = Column(String(64), nullable=False, unique=True)
    status = Column(String(16), nullable=False, default="active")  # active | expired | suspended | pending | revoked
    categories = Column(JSONType, nullable=False, default=list)
    issued_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    issuing_authority = Column(String(255), nullable=True)
    business_name = Column(String(255), nullable=True)


class RegulationRuleRow(Base):
    """Freeform regulation rule maintained by compliance staff."""

    __tablename__ = "regulation_rules"

    rule_id = Column(String(64), primary_key=True)
    type = Column(String(32), nullable=False, index=True)
    category = Column(String(64), nullable=False, default="", index=True)
    subcategory = Column(String(64), nullable=False, default="")
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    requirements = Column(Text, nullable=True)
    risk_level = Column(String(16), nullable=False, default="low")
    status = Column(String(16), nullable=False, default="active", index=True)
    keywords = Column(JSONType, nullable=False, default=list)
    required_documents = Column(JSONType, nullable=False, default=list)
    required_licenses = Column(JSONType, nullable=False, default=list)
    legal_basis = Column(String(255), nullable=False, default="")
    authority = Column(String(255), nullable=False, default="")
    effective_from = Column(DateTime(timezone=True), nullable=True)
    effective_until = Column(DateTime(timezone=True), nullable=True)


class ComplianceCheckRow(Base):
    """One immutable compliance verdict for a product/user pair.

    Rows are only ever inserted; a new evaluation creates a new row.
    """

    __tablename__ = "compliance_checks"

    # surrogate key doubles as insertion order for "latest" lookups
    id = Column(Integer, primary_key=True, autoincrement=True)
    check_id = Column(String(64), nullable=False, unique=True)
    product_id = Column(String(255), nullable=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    check_type = Column(String(16), nullable=False, default="automatic")
    status = Column(String(32), nullable=False, index=True)
    risk_score = Column(Float, nullable=False)

    rule_results = Column(JSONType, nullable=False, default=list)
    required_licenses = Column(JSONType, nullable=False, default=list)
    required_documents = Column(JSONType, nullable=False, default=list)
    prohibited_reasons = Column(JSONType, nullable=False, default=list)
    recommendations = Column(JSONType, nullable=False, default=list)

    performed_at = Column(DateTime(timezone=True), nullable=False, index=True)
    next_check_at = Column(DateTime(timezone=True), nullable=True, index=True)
    metadata_json = Column(JSONType, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_check_product_performed", "product_id", "performed_at"),
        Index("idx_check_user_status", "user_id", "status"),
    )
