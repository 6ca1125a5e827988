import pytest

from sedori.compliance.config import DEFAULT_CONFIG, ComplianceConfig, load_config
from sedori.compliance.risk import RiskLevel


def test_defaults():
    assert DEFAULT_CONFIG.review_threshold == 0.3
    assert DEFAULT_CONFIG.expiry_warning_days == 30
    assert DEFAULT_CONFIG.tariff_currency == "JPY"
    assert DEFAULT_CONFIG.score_for(RiskLevel.PROHIBITED) == 1.0
    assert DEFAULT_CONFIG.score_for(RiskLevel.NONE) == 0.0
    assert DEFAULT_CONFIG.recheck_days["prohibited"] is None


def test_load_config_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("SEDORI_REVIEW_THRESHOLD", "0.5")
    monkeypatch.setenv("SEDORI_EXPIRY_WARNING_DAYS", "60")
    monkeypatch.setenv("SEDORI_TARIFF_CURRENCY", "USD")
    monkeypatch.setenv("SEDORI_DATA_ROOT", str(tmp_path))

    config = load_config()

    assert config.review_threshold == 0.5
    assert config.expiry_warning_days == 60
    assert config.tariff_currency == "USD"
    assert config.data_root == str(tmp_path)


def test_load_config_falls_back_to_defaults(monkeypatch):
    for name in (
        "SEDORI_REVIEW_THRESHOLD",
        "SEDORI_EXPIRY_WARNING_DAYS",
        "SEDORI_TARIFF_CURRENCY",
        "SEDORI_DATA_ROOT",
    ):
        monkeypatch.delenv(name, raising=False)
    assert load_config() == ComplianceConfig()


@pytest.mark.parametrize(
    "name,value",
    [
        ("SEDORI_REVIEW_THRESHOLD", "not-a-number"),
        ("SEDORI_REVIEW_THRESHOLD", "1.5"),
        ("SEDORI_EXPIRY_WARNING_DAYS", "soon"),
        ("SEDORI_EXPIRY_WARNING_DAYS", "-1"),
    ],
)
def test_invalid_environment_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        load_config()


def test_out_of_range_risk_score_rejected():
    with pytest.raises(ValueError):
        ComplianceConfig(risk_scores={RiskLevel.HIGH: 1.2})
