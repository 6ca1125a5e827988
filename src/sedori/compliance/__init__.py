"""Product compliance checks for reseller listings.

Combines the antique dealer rules and import restrictions, plus keyword
selected freeform regulation rules, into a single verdict per product.
"""
from .antique_rules import evaluate_antique
from .checker import ProductComplianceChecker
from .combiner import combine, decide_status
from .config import DEFAULT_CONFIG, ComplianceConfig, load_config
from .import_rules import evaluate_import, load_restriction_table
from .models import (
    AntiqueDealerCategory,
    CheckType,
    ComplianceCheckRecord,
    ComplianceCheckResultModel,
    ComplianceStatus,
    LicenseModel,
    LicenseStatus,
    ProductModel,
    RegulationRuleModel,
)
from .risk import RiskLevel
from .scheduling import next_check_at

__all__ = [
    "evaluate_antique",
    "evaluate_import",
    "load_restriction_table",
    "combine",
    "decide_status",
    "next_check_at",
    "ProductComplianceChecker",
    "ComplianceConfig",
    "DEFAULT_CONFIG",
    "load_config",
    "RiskLevel",
    "AntiqueDealerCategory",
    "CheckType",
    "ComplianceStatus",
    "LicenseStatus",
    "ProductModel",
    "LicenseModel",
    "RegulationRuleModel",
    "ComplianceCheckResultModel",
    "ComplianceCheckRecord",
]
