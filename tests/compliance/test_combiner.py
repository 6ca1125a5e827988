"""Tests for verdict combination: dominance, scoring and consolidation."""

from __future__ import annotations

import pytest

from sedori.compliance.combiner import (
    ANTIQUE_RULE_ID,
    IMPORT_RULE_ID,
    combine,
    compute_risk_score,
    decide_status,
)
from sedori.compliance.config import ComplianceConfig
from sedori.compliance.models import (
    AntiqueComplianceResult,
    AntiqueDealerCategory,
    ComplianceStatus,
    ImportComplianceResult,
    RegulationRuleModel,
    RegulationType,
)
from sedori.compliance.risk import RiskLevel


def _antique(**overrides) -> AntiqueComplianceResult:
    return AntiqueComplianceResult(**overrides)


def _import(**overrides) -> ImportComplianceResult:
    return ImportComplianceResult(**overrides)


def _rule(level: RiskLevel, rule_id: str = "R-1") -> RegulationRuleModel:
    return RegulationRuleModel(
        rule_id=rule_id,
        type=RegulationType.SAFETY_STANDARD,
        title="Electrical Appliance and Material Safety Act",
        risk_level=level,
        keywords=["battery"],
        required_documents=["PSE certificate"],
        requirements="PSE mark required",
    )


class TestStatusDecision:
    def test_prohibited_dominates_everything(self):
        antique = _antique(compliant=False, risk_level=RiskLevel.PROHIBITED, requires_license=True)
        import_result = _import(compliant=False, risk_level=RiskLevel.HIGH, required_licenses=["L"])
        assert decide_status(antique, import_result, 1.0) is ComplianceStatus.PROHIBITED

    def test_prohibited_freeform_rule_dominates(self):
        status = decide_status(_antique(), _import(), 1.0, rules=[_rule(RiskLevel.PROHIBITED)])
        assert status is ComplianceStatus.PROHIBITED

    def test_missing_antique_license(self):
        antique = _antique(compliant=False, risk_level=RiskLevel.HIGH, requires_license=True)
        assert decide_status(antique, _import(), 0.8) is ComplianceStatus.NEEDS_LICENSE

    def test_missing_import_license(self):
        import_result = _import(compliant=False, risk_level=RiskLevel.HIGH, required_licenses=["Permit"])
        assert decide_status(_antique(), import_result, 0.8) is ComplianceStatus.NEEDS_LICENSE

    def test_non_compliant_without_license_gap(self):
        import_result = _import(compliant=False, risk_level=RiskLevel.HIGH, restricted_reasons=["x"])
        assert decide_status(_antique(), import_result, 0.8) is ComplianceStatus.NON_COMPLIANT

    def test_review_threshold_is_strict(self):
        assert decide_status(_antique(), _import(), 0.3) is ComplianceStatus.COMPLIANT
        assert decide_status(_antique(), _import(), 0.31) is ComplianceStatus.REQUIRES_REVIEW

    def test_review_threshold_follows_config(self):
        config = ComplianceConfig(review_threshold=0.6)
        assert decide_status(_antique(), _import(), 0.5, config=config) is ComplianceStatus.COMPLIANT


class TestCombine:
    def test_clean_product(self):
        result = combine(_antique(), _import())
        assert result.status is ComplianceStatus.COMPLIANT
        assert result.risk_score == pytest.approx(0.2)
        assert [r.rule_id for r in result.rule_results] == [ANTIQUE_RULE_ID, IMPORT_RULE_ID]
        assert result.required_licenses == []
        assert result.prohibited_reasons == []

    def test_score_is_maximum_over_rules(self):
        antique = _antique(risk_level=RiskLevel.MEDIUM)
        result = combine(antique, _import(), [_rule(RiskLevel.LOW), _rule(RiskLevel.HIGH, "R-2")])
        assert result.risk_score == pytest.approx(0.8)
        assert result.status is ComplianceStatus.REQUIRES_REVIEW
        assert len(result.rule_results) == 4
        assert all(r.matched for r in result.rule_results[2:])

    @pytest.mark.parametrize(
        "level", [RiskLevel.NONE, RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.PROHIBITED]
    )
    def test_adding_a_rule_never_lowers_the_score(self, level):
        antique = _antique(risk_level=RiskLevel.MEDIUM)
        base = combine(antique, _import(), [_rule(RiskLevel.HIGH)])
        extended = combine(antique, _import(), [_rule(RiskLevel.HIGH), _rule(level, "R-2")])
        assert extended.risk_score >= base.risk_score

    def test_license_consolidation(self):
        antique = _antique(
            compliant=False,
            risk_level=RiskLevel.HIGH,
            requires_license=True,
            has_valid_license=False,
            applicable_categories=[AntiqueDealerCategory.ALL_CATEGORIES],
            violations=["license required"],
            recommendations=["apply for a license"],
        )
        import_result = _import(
            compliant=False,
            risk_level=RiskLevel.HIGH,
            restricted_reasons=["food"],
            required_documents=["Food import notification"],
            required_licenses=["Food import business permit"],
            recommendations=["consult a broker"],
        )

        result = combine(antique, import_result)

        assert result.status is ComplianceStatus.NEEDS_LICENSE
        assert [(lic.type, lic.possessed) for lic in result.required_licenses] == [
            ("antique_dealer", False),
            ("import_license", False),
        ]
        assert [doc.name for doc in result.required_documents] == ["Food import notification"]
        assert result.prohibited_reasons[0].legal_basis == "Antique Dealings Act"
        assert [(rec.type, rec.priority, rec.action_required) for rec in result.recommendations] == [
            ("action", "medium", True),
            ("info", "low", False),
        ]

    def test_held_license_is_marked_possessed(self):
        antique = _antique(requires_license=True, has_valid_license=True)
        result = combine(antique, _import())
        assert result.required_licenses[0].possessed is True
        assert result.rule_results[0].required_actions == []


def test_compute_risk_score_empty_is_zero():
    assert compute_risk_score([]) == 0.0
