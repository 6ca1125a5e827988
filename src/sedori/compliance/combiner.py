"""Merge rule-set outcomes into a single compliance verdict.

Status priority (first match wins):

  1. any contributing rule is prohibited         -> prohibited
  2. a sub-result fails and a license is missing -> needs_license
  3. a sub-result fails                          -> non_compliant
  4. risk score above the review threshold       -> requires_review
  5. otherwise                                   -> compliant

The risk score is the maximum, not the average, of the per-rule scores.
"""

from __future__ import annotations

from typing import List, Sequence

from sedori.compliance.config import DEFAULT_CONFIG, ComplianceConfig
from sedori.compliance.models import (
    AntiqueComplianceResult,
    ComplianceCheckResultModel,
    ComplianceStatus,
    ImportComplianceResult,
    ProhibitedReasonModel,
    RecommendationModel,
    RegulationRuleModel,
    RequiredDocumentModel,
    RequiredLicenseModel,
    RuleResultModel,
)
from sedori.compliance.risk import RiskLevel, risk_score

ANTIQUE_RULE_ID = "antique-dealer"
IMPORT_RULE_ID = "import-restriction"

ANTIQUE_RULE_TITLE = "Antique Dealings Act (古物営業法)"
IMPORT_RULE_TITLE = "Import restrictions"


def build_rule_results(
    antique: AntiqueComplianceResult,
    import_result: ImportComplianceResult,
    rules: Sequence[RegulationRuleModel] = (),
) -> List[RuleResultModel]:
    results = [
        RuleResultModel(
            rule_id=ANTIQUE_RULE_ID,
            rule_type="antique_dealer",
            rule_title=ANTIQUE_RULE_TITLE,
            matched=antique.requires_license,
            risk_level=antique.risk_level,
            details="; ".join(antique.violations),
            required_actions=["Obtain an antique dealer license"] if antique.license_missing else [],
            warnings=list(antique.warnings),
        ),
        RuleResultModel(
            rule_id=IMPORT_RULE_ID,
            rule_type="import_restriction",
            rule_title=IMPORT_RULE_TITLE,
            matched=bool(import_result.prohibited_reasons or import_result.restricted_reasons),
            risk_level=import_result.risk_level,
            details="; ".join([*import_result.prohibited_reasons, *import_result.restricted_reasons]),
            required_actions=list(import_result.required_documents),
            warnings=list(import_result.recommendations),
        ),
    ]
    # freeform rules arrive already keyword-selected, so they always count as matched
    for rule in rules:
        results.append(
            RuleResultModel(
                rule_id=rule.rule_id,
                rule_type=rule.type.value,
                rule_title=rule.title,
                matched=True,
                risk_level=rule.risk_level,
                details=rule.description,
                required_actions=list(rule.required_documents),
                warnings=[rule.requirements] if rule.requirements else [],
            )
        )
    return results


def compute_risk_score(
    rule_results: Sequence[RuleResultModel], config: ComplianceConfig | None = None
) -> float:
    config = config or DEFAULT_CONFIG
    return risk_score((result.risk_level for result in rule_results), config.risk_scores)


def license_missing(
    antique: AntiqueComplianceResult, import_result: ImportComplianceResult
) -> bool:
    return antique.license_missing or bool(import_result.required_licenses)


def decide_status(
    antique: AntiqueComplianceResult,
    import_result: ImportComplianceResult,
    risk_score: float,
    *,
    rules: Sequence[RegulationRuleModel] = (),
    config: ComplianceConfig | None = None,
) -> ComplianceStatus:
    """Coarse status gate; also used on its own for quick checks."""

    config = config or DEFAULT_CONFIG
    levels = [antique.risk_level, import_result.risk_level, *(rule.risk_level for rule in rules)]
    if RiskLevel.PROHIBITED in levels:
        return ComplianceStatus.PROHIBITED
    if not antique.compliant or not import_result.compliant:
        if license_missing(antique, import_result):
            return ComplianceStatus.NEEDS_LICENSE
        return ComplianceStatus.NON_COMPLIANT
    if risk_score > config.review_threshold:
        return ComplianceStatus.REQUIRES_REVIEW
    return ComplianceStatus.COMPLIANT


def _required_licenses(
    antique: AntiqueComplianceResult, import_result: ImportComplianceResult
) -> List[RequiredLicenseModel]:
    licenses: List[RequiredLicenseModel] = []
    if antique.requires_license:
        licenses.append(
            RequiredLicenseModel(
                type="antique_dealer",
                name="Antique dealer license (古物商許可証)",
                possessed=antique.has_valid_license,
                authority="Prefectural Public Safety Commission",
            )
        )
    licenses.extend(
        RequiredLicenseModel(type="import_license", name=name, authority="Competent ministry")
        for name in import_result.required_licenses
    )
    return licenses


def _prohibited_reasons(
    antique: AntiqueComplianceResult, import_result: ImportComplianceResult
) -> List[ProhibitedReasonModel]:
    reasons = [
        ProhibitedReasonModel(
            rule=ANTIQUE_RULE_TITLE,
            reason=reason,
            legal_basis="Antique Dealings Act",
            penalty="Imprisonment or fine",
        )
        for reason in antique.violations
    ]
    reasons.extend(
        ProhibitedReasonModel(
            rule=IMPORT_RULE_TITLE,
            reason=reason,
            legal_basis="Applicable import regulations",
            penalty="Confiscation or fine",
        )
        for reason in import_result.prohibited_reasons
    )
    return reasons


def _recommendations(
    antique: AntiqueComplianceResult, import_result: ImportComplianceResult
) -> List[RecommendationModel]:
    recommendations = [
        RecommendationModel(type="action", message=message, priority="medium", action_required=True)
        for message in antique.recommendations
    ]
    recommendations.extend(
        RecommendationModel(type="info", message=message, priority="low", action_required=False)
        for message in import_result.recommendations
    )
    return recommendations


def combine(
    antique: AntiqueComplianceResult,
    import_result: ImportComplianceResult,
    rules: Sequence[RegulationRuleModel] = (),
    *,
    config: ComplianceConfig | None = None,
) -> ComplianceCheckResultModel:
    """Combine both rule sets and any freeform rules into one verdict."""

    config = config or DEFAULT_CONFIG
    rule_results = build_rule_results(antique, import_result, rules)
    score = compute_risk_score(rule_results, config)
    status = decide_status(antique, import_result, score, rules=rules, config=config)

    return ComplianceCheckResultModel(
        status=status,
        risk_score=score,
        rule_results=rule_results,
        required_licenses=_required_licenses(antique, import_result),
        required_documents=[
            RequiredDocumentModel(type="import_document", name=name)
            for name in import_result.required_documents
        ],
        prohibited_reasons=_prohibited_reasons(antique, import_result),
        recommendations=_recommendations(antique, import_result),
    )
