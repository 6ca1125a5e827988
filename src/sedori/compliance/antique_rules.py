"""Antique dealer (古物営業法) rules for second-hand and antique listings.

Anyone who buys and resells used goods as a business in Japan needs an
antique dealer license (古物商許可) from the prefectural Public Safety
Commission, issued per category of goods.  This module answers three
questions for a listing:

  1. Is it second-hand / antique at all?  If not, the Act does not apply.
  2. Is it something nobody may trade (firearms, narcotics, ivory, ...)?
  3. Does the seller hold an active license covering its category?

All keyword tables below are immutable reference data; the evaluation itself
is a pure function of the product, the licenses and the config.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple

from sedori.compliance.config import DEFAULT_CONFIG, ComplianceConfig
from sedori.compliance.keywords import build_corpus, matched_keywords, matches_any
from sedori.compliance.models import (
    AntiqueComplianceResult,
    AntiqueDealerCategory,
    LicenseModel,
    ProductModel,
    resolve_now,
)
from sedori.compliance.risk import RiskLevel, escalate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reference tables
# ---------------------------------------------------------------------------

ANTIQUE_KEYWORDS: Tuple[str, ...] = (
    "古物", "中古", "骨董", "古美術", "アンティーク", "ヴィンテージ",
    "古書", "古着", "古道具", "古家具", "古写真", "古絵画",
    "used", "antique", "vintage", "secondhand", "second-hand", "pre-owned",
)

CATEGORY_KEYWORDS: Mapping[AntiqueDealerCategory, Tuple[str, ...]] = MappingProxyType({
    AntiqueDealerCategory.BOOKS: (
        "本", "書籍", "古書", "雑誌", "文庫", "単行本", "漫画", "コミック", "book", "magazine",
    ),
    AntiqueDealerCategory.PAINTINGS: (
        "絵画", "掛軸", "屏風", "浮世絵", "美術品", "版画", "書道", "墨絵", "painting",
    ),
    AntiqueDealerCategory.METAL_PRODUCTS: (
        "金属", "鉄器", "銅器", "真鍮", "刀剣", "甲冑", "仏具", "茶道具", "metal",
    ),
    AntiqueDealerCategory.JEWELRY: (
        "宝石", "貴金属", "指輪", "ネックレス", "時計", "jewelry", "jewellery", "watch",
    ),
    AntiqueDealerCategory.CLOTHING: (
        "衣類", "着物", "洋服", "clothing", "fashion", "dress", "kimono", "textile",
    ),
    AntiqueDealerCategory.MACHINERY: (
        "機械", "工具", "計器", "machine", "equipment", "tool", "instrument",
    ),
    AntiqueDealerCategory.ELECTRONICS: (
        "電化製品", "電子機器", "electronics", "radio", "camera", "television", "audio",
    ),
    AntiqueDealerCategory.PHOTOGRAPHS: (
        "写真", "古写真", "photograph", "photo", "camera", "vintage photo",
    ),
    AntiqueDealerCategory.LEATHER_GOODS: (
        "革製品", "leather", "bag", "belt", "shoes", "wallet", "handbag",
    ),
})

# Items that may not be traded even with a license
PROHIBITED_ITEMS: Tuple[str, ...] = (
    "拳銃", "銃砲", "刀剣類", "麻薬", "覚醒剤", "偽造品", "盗品", "模倣品",
    "象牙", "ivory", "鼈甲", "tortoiseshell", "熊胆", "虎骨", "犀角",
    "医薬品", "medicine", "化粧品", "cosmetics", "食品", "food",
)

CATEGORY_DISPLAY_NAMES: Mapping[AntiqueDealerCategory, str] = MappingProxyType({
    AntiqueDealerCategory.BOOKS: "書籍類",
    AntiqueDealerCategory.PAINTINGS: "美術品類",
    AntiqueDealerCategory.METAL_PRODUCTS: "金属製品類",
    AntiqueDealerCategory.JEWELRY: "宝飾品類",
    AntiqueDealerCategory.CLOTHING: "衣類",
    AntiqueDealerCategory.MACHINERY: "機械器具類",
    AntiqueDealerCategory.ELECTRONICS: "電化製品類",
    AntiqueDealerCategory.PHOTOGRAPHS: "写真類",
    AntiqueDealerCategory.LEATHER_GOODS: "皮革製品類",
    AntiqueDealerCategory.ALL_CATEGORIES: "全カテゴリ",
})

LICENSE_REQUIRED_VIOLATION = (
    "An antique dealer license (古物商許可証) covering this category is required."
)
LICENSE_EXPIRING_WARNING = (
    "The antique dealer license covering this item expires soon; start the renewal procedure."
)


@dataclass(frozen=True)
class LicenseCoverage:
    has_valid_license: bool
    expiring_soon: bool


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------

def is_antique_item(corpus: str) -> bool:
    return matches_any(corpus, ANTIQUE_KEYWORDS)


def determine_categories(corpus: str) -> List[AntiqueDealerCategory]:
    """Matching dealer categories; never empty for an antique item."""

    categories = [
        category
        for category, keywords in CATEGORY_KEYWORDS.items()
        if matches_any(corpus, keywords)
    ]
    return categories or [AntiqueDealerCategory.ALL_CATEGORIES]


def find_prohibited_items(corpus: str) -> List[str]:
    return matched_keywords(corpus, PROHIBITED_ITEMS)


def check_license_coverage(
    required_categories: Sequence[AntiqueDealerCategory],
    licenses: Optional[Sequence[LicenseModel]],
    *,
    now: datetime | None = None,
    window_days: int = 30,
) -> LicenseCoverage:
    """Whether an active, unexpired license covers any required category.

    ``expiring_soon`` is only reported for licenses that actually provide
    coverage; an unrelated license nearing expiry is irrelevant here.
    """

    now = resolve_now(now)
    covering = [
        held
        for held in licenses or ()
        if held.is_usable(now) and held.covers(required_categories)
    ]
    if not covering:
        return LicenseCoverage(has_valid_license=False, expiring_soon=False)
    expiring = any(held.is_expiring_soon(now, window_days) for held in covering)
    return LicenseCoverage(has_valid_license=True, expiring_soon=expiring)


def _recommendations(
    categories: Sequence[AntiqueDealerCategory], has_valid_license: bool
) -> List[str]:
    recommendations: List[str] = []
    if not has_valid_license:
        recommendations.append(
            "Apply for an antique dealer license at the prefectural Public Safety Commission."
        )
    recommendations.append(
        "Transactions must be recorded in the antique ledger (古物台帳); keep records for three years."
    )
    if len(categories) > 1:
        recommendations.append(
            "The item may fall under several license categories; confirm which ones your license covers."
        )
    if AntiqueDealerCategory.JEWELRY in categories:
        recommendations.append(
            "For precious metals and jewelry, verify hallmarks and certificates of authenticity."
        )
    if AntiqueDealerCategory.BOOKS in categories:
        recommendations.append("For second-hand books, also check copyright restrictions.")
    return recommendations


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def evaluate_antique(
    product: ProductModel,
    licenses: Optional[Sequence[LicenseModel]] = None,
    *,
    config: ComplianceConfig | None = None,
    now: datetime | None = None,
) -> AntiqueComplianceResult:
    """Evaluate ``product`` against the antique dealer rules."""

    config = config or DEFAULT_CONFIG
    corpus = build_corpus(product)

    if not is_antique_item(corpus):
        return AntiqueComplianceResult()

    categories = determine_categories(corpus)

    prohibited = find_prohibited_items(corpus)
    if prohibited:
        logger.debug("Prohibited antique terms for %r: %s", product.name, prohibited)
        return AntiqueComplianceResult(
            compliant=False,
            risk_level=RiskLevel.PROHIBITED,
            requires_license=True,
            applicable_categories=categories,
            violations=[
                f"Possible prohibited item: {term}. Trading this item may be illegal."
                for term in prohibited
            ],
        )

    coverage = check_license_coverage(
        categories, licenses, now=now, window_days=config.expiry_warning_days
    )

    compliant = True
    risk_level = RiskLevel.LOW
    violations: List[str] = []
    warnings: List[str] = []

    if not coverage.has_valid_license:
        compliant = False
        risk_level = RiskLevel.HIGH
        violations.append(LICENSE_REQUIRED_VIOLATION)
    elif coverage.expiring_soon:
        warnings.append(LICENSE_EXPIRING_WARNING)
        risk_level = escalate(risk_level, RiskLevel.MEDIUM)

    return AntiqueComplianceResult(
        compliant=compliant,
        risk_level=risk_level,
        requires_license=True,
        has_valid_license=coverage.has_valid_license,
        applicable_categories=categories,
        violations=violations,
        warnings=warnings,
        recommendations=_recommendations(categories, coverage.has_valid_license),
    )


def all_categories() -> List[AntiqueDealerCategory]:
    return list(AntiqueDealerCategory)


def category_display_name(category: AntiqueDealerCategory) -> str:
    return CATEGORY_DISPLAY_NAMES[category]
