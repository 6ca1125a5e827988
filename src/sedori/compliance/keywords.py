"""Permissive keyword matching over product text.

Matching is a plain case-folded substring test: no tokenization, stemming or
word boundaries, so compound and inflected terms (and unsegmented Japanese
text) still match.  Every rule set consumes the same corpus.
"""

from __future__ import annotations

from typing import Any, Iterable, List

from sedori.compliance.models import ProductModel


def _stringify(value: Any) -> str:
    if isinstance(value, (list, tuple, set)):
        return " ".join(_stringify(item) for item in value if item is not None)
    if isinstance(value, dict):
        return " ".join(_stringify(item) for item in value.values() if item is not None)
    return str(value)


def build_corpus(product: ProductModel) -> str:
    """Case-folded name, description, category and metadata values."""

    parts = [product.name, product.description, product.category_name or ""]
    parts.extend(_stringify(value) for value in product.metadata.values() if value is not None)
    return " ".join(part for part in parts if part).casefold()


def matches_any(corpus: str, keywords: Iterable[str]) -> bool:
    return any(keyword and keyword.casefold() in corpus for keyword in keywords)


def matched_keywords(corpus: str, keywords: Iterable[str]) -> List[str]:
    """Every keyword found in ``corpus``, in table order."""

    return [keyword for keyword in keywords if keyword and keyword.casefold() in corpus]


def product_terms(product: ProductModel, min_length: int = 3) -> List[str]:
    """Whitespace-split terms of the product text used to pre-filter freeform rules."""

    text = " ".join(part for part in (product.name, product.description, product.category_name or "") if part)
    seen: List[str] = []
    for term in text.casefold().split():
        if len(term) >= min_length and term not in seen:
            seen.append(term)
    return seen
