"""Database layer for compliance persistence."""

from sedori.db.models import AntiqueLicenseRow, Base, ComplianceCheckRow, RegulationRuleRow
from sedori.db.session import (
    create_db_engine,
    get_engine,
    get_standalone_session,
    init_db,
    make_session_factory,
)

__all__ = [
    "AntiqueLicenseRow",
    "Base",
    "ComplianceCheckRow",
    "RegulationRuleRow",
    "create_db_engine",
    "get_engine",
    "get_standalone_session",
    "init_db",
    "make_session_factory",
]
