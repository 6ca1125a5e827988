"""Import restriction rules for goods sourced from abroad.

Restrictions live in ``data/import_restrictions.json`` (or under
``SEDORI_DATA_ROOT``): each entry lists the keywords that select it, whether
it prohibits or merely restricts the goods, and the documents, licenses and
tariff it brings. A product may match several entries; the first entry with a
tariff sets the estimate. Sanctioned origins prohibit outright; watch-listed
origins only add a sourcing recommendation.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from sedori.compliance.config import DEFAULT_CONFIG, ComplianceConfig
from sedori.compliance.keywords import build_corpus, matches_any
from sedori.compliance.models import ImportComplianceResult, ProductModel, TariffEstimateModel
from sedori.compliance.risk import RiskLevel, escalate

logger = logging.getLogger(__name__)

TABLE_FILENAME = "import_restrictions.json"

SANCTIONED_ORIGIN_REASON = (
    "Imports from countries under economic sanctions are prohibited "
    "(Foreign Exchange and Foreign Trade Act)"
)
WATCHLIST_RECOMMENDATION = (
    "Obtain a certificate of origin and confirm the supplier's quality control."
)
GENERAL_RECOMMENDATIONS: Tuple[str, ...] = (
    "Consult a licensed customs broker or trade specialist.",
    "Consider an advance ruling consultation with Japan Customs before importing.",
    "Prepare the commercial invoice, packing list and bill of lading.",
)


@dataclass(frozen=True)
class ImportRestriction:
    """One import regulation: keywords plus the paperwork it demands."""

    category: str
    keywords: Tuple[str, ...]
    prohibited: bool
    restricted: bool
    documents: Tuple[str, ...]
    licenses: Tuple[str, ...]
    description: str
    authority: str
    tariff_code: Optional[str] = None
    tariff_rate: Optional[float] = None

    @property
    def reason(self) -> str:
        return f"{self.description} (authority: {self.authority})"

    @property
    def carries_tariff(self) -> bool:
        return bool(self.tariff_code) and self.tariff_rate is not None


@dataclass(frozen=True)
class OriginList:
    names: Tuple[str, ...] = ()
    codes: Tuple[str, ...] = ()

    def matches(self, origin_country: str) -> bool:
        folded = origin_country.strip().casefold()
        if not folded:
            return False
        if folded.upper() in self.codes:
            return True
        return any(name.casefold() in folded for name in self.names)


@dataclass(frozen=True)
class RestrictionTable:
    restrictions: Tuple[ImportRestriction, ...]
    sanctioned_origins: OriginList
    origin_watchlist: OriginList


def _data_root(base_path: str | None = None) -> Path:
    if base_path:
        return Path(base_path)
    return Path(__file__).resolve().parent / "data"


def _parse_restriction(entry: Dict[str, Any]) -> ImportRestriction:
    rate = entry.get("tariff_rate")
    return ImportRestriction(
        category=str(entry.get("category") or "unknown"),
        keywords=tuple(str(keyword) for keyword in entry.get("keywords", [])),
        prohibited=bool(entry.get("prohibited", False)),
        restricted=bool(entry.get("restricted", False)),
        documents=tuple(str(doc) for doc in entry.get("documents", [])),
        licenses=tuple(str(lic) for lic in entry.get("licenses", [])),
        description=str(entry.get("description") or ""),
        authority=str(entry.get("authority") or ""),
        tariff_code=str(entry["tariff_code"]) if entry.get("tariff_code") else None,
        tariff_rate=float(rate) if rate is not None else None,
    )


def _parse_origin_list(payload: Any) -> OriginList:
    if not isinstance(payload, dict):
        return OriginList()
    return OriginList(
        names=tuple(str(name) for name in payload.get("names", [])),
        codes=tuple(str(code).upper() for code in payload.get("codes", [])),
    )


@lru_cache(maxsize=None)
def _load_table(base_path: str | None) -> RestrictionTable:
    path = _data_root(base_path) / TABLE_FILENAME
    if not path.exists():
        raise FileNotFoundError(f"Import restriction table not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    entries = payload.get("restrictions") or []
    table = RestrictionTable(
        restrictions=tuple(_parse_restriction(entry) for entry in entries if isinstance(entry, dict)),
        sanctioned_origins=_parse_origin_list(payload.get("sanctioned_origins")),
        origin_watchlist=_parse_origin_list(payload.get("origin_watchlist")),
    )
    logger.info("Loaded %d import restrictions from %s", len(table.restrictions), path)
    return table


def load_restriction_table(data_root: str | None = None) -> RestrictionTable:
    """Return the (cached, immutable) restriction table for ``data_root``."""

    return _load_table(data_root)


def _dedupe(values: List[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def match_restrictions(corpus: str, table: RestrictionTable) -> List[ImportRestriction]:
    """Every restriction with at least one keyword in ``corpus``, in table order."""

    return [entry for entry in table.restrictions if matches_any(corpus, entry.keywords)]


def evaluate_import(
    product: ProductModel,
    origin_country: str | None = None,
    *,
    config: ComplianceConfig | None = None,
    table: RestrictionTable | None = None,
) -> ImportComplianceResult:
    """Evaluate ``product`` against import restrictions and origin sanctions.

    A product can match several restriction categories at once.  Prohibition
    is terminal for the risk level; restricted entries still contribute their
    documents and licenses.  Only the first tariff-bearing match is used for
    the tariff estimate.
    """

    config = config or DEFAULT_CONFIG
    table = table or load_restriction_table(config.data_root)
    corpus = build_corpus(product)
    matched = match_restrictions(corpus, table)

    risk_level = RiskLevel.LOW
    prohibited_reasons: List[str] = []
    restricted_reasons: List[str] = []
    documents: List[str] = []
    licenses: List[str] = []
    estimated_tariff: Optional[TariffEstimateModel] = None
    recommendations: List[str] = []

    for entry in matched:
        if entry.prohibited:
            prohibited_reasons.append(entry.reason)
            risk_level = RiskLevel.PROHIBITED
        elif entry.restricted:
            restricted_reasons.append(entry.reason)
            documents.extend(entry.documents)
            licenses.extend(entry.licenses)
            risk_level = escalate(risk_level, RiskLevel.HIGH)

        if (
            estimated_tariff is None
            and entry.carries_tariff
            and product.retail_price
        ):
            estimated_tariff = TariffEstimateModel(
                tariff_code=entry.tariff_code,
                rate=entry.tariff_rate,
                amount=product.retail_price * entry.tariff_rate / 100,
                currency=config.tariff_currency,
            )

    documents = _dedupe(documents)
    licenses = _dedupe(licenses)

    if origin_country:
        if table.sanctioned_origins.matches(origin_country):
            prohibited_reasons.append(SANCTIONED_ORIGIN_REASON)
            risk_level = RiskLevel.PROHIBITED
        if table.origin_watchlist.matches(origin_country):
            recommendations.append(WATCHLIST_RECOMMENDATION)

    if not matched:
        recommendations.append(
            "No specific import restriction detected, but customs may still inspect the goods in detail."
        )
    if documents:
        recommendations.append(
            "Prepare the required documents in advance and check the latest regulations."
        )
    if licenses:
        recommendations.append(
            "Permits and licenses can take time to obtain; start the procedures early."
        )
    if estimated_tariff is not None:
        recommendations.append(
            f"Estimated tariff: {estimated_tariff.amount:,.0f} {estimated_tariff.currency} "
            f"(rate {estimated_tariff.rate:g}%)"
        )
    recommendations.extend(GENERAL_RECOMMENDATIONS)

    compliant = not prohibited_reasons and not restricted_reasons
    if compliant:
        risk_level = RiskLevel.LOW

    return ImportComplianceResult(
        compliant=compliant,
        risk_level=risk_level,
        matched_categories=[entry.category for entry in matched],
        prohibited_reasons=prohibited_reasons,
        restricted_reasons=restricted_reasons,
        required_documents=documents,
        required_licenses=licenses,
        estimated_tariff=estimated_tariff,
        recommendations=recommendations,
    )


# ---------------------------------------------------------------------------
# Table lookups
# ---------------------------------------------------------------------------

def restriction_categories(table: RestrictionTable | None = None) -> List[str]:
    table = table or load_restriction_table()
    return _dedupe([entry.category for entry in table.restrictions])


def restrictions_by_category(
    category: str, table: RestrictionTable | None = None
) -> List[ImportRestriction]:
    table = table or load_restriction_table()
    return [entry for entry in table.restrictions if entry.category == category]


def tariff_estimate(
    product: ProductModel,
    *,
    config: ComplianceConfig | None = None,
    table: RestrictionTable | None = None,
) -> Optional[TariffEstimateModel]:
    """Tariff for the first tariff-bearing restriction matching ``product``.

    Unlike ``evaluate_import`` this reports the rate even without a price
    (amount 0.0).
    """

    config = config or DEFAULT_CONFIG
    table = table or load_restriction_table(config.data_root)
    corpus = build_corpus(product)
    for entry in match_restrictions(corpus, table):
        if entry.carries_tariff:
            price = product.retail_price or 0.0
            return TariffEstimateModel(
                tariff_code=entry.tariff_code,
                rate=entry.tariff_rate,
                amount=price * entry.tariff_rate / 100,
                currency=config.tariff_currency,
            )
    return None


def requires_import_license(
    product: ProductModel,
    *,
    table: RestrictionTable | None = None,
) -> bool:
    table = table or load_restriction_table()
    corpus = build_corpus(product)
    return any(entry.licenses for entry in match_restrictions(corpus, table))
