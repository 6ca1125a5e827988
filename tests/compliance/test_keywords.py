from sedori.compliance.keywords import build_corpus, matched_keywords, matches_any, product_terms
from sedori.compliance.models import ProductModel


def test_corpus_includes_metadata_and_is_casefolded():
    product = ProductModel(
        name="Vintage CAMERA",
        description=None,
        category_name="Electronics",
        metadata={"brand": "Nikon", "tags": ["Film", None], "specs": {"lens": "50mm"}, "note": None},
    )
    corpus = build_corpus(product)
    assert corpus == "vintage camera electronics nikon film 50mm"


def test_matches_are_plain_substrings():
    corpus = build_corpus(ProductModel(name="アンティーク掛軸セット"))
    assert matches_any(corpus, ["掛軸"])
    assert matches_any("handbag", ["BAG"])
    assert not matches_any(corpus, ["", "painting"])


def test_matched_keywords_keeps_table_order():
    corpus = "used leather wallet and belt"
    assert matched_keywords(corpus, ["belt", "leather", "shoes", "wallet"]) == ["belt", "leather", "wallet"]


def test_product_terms_skip_short_and_duplicate_words():
    product = ProductModel(name="An old old Sword", description="of steel")
    assert product_terms(product) == ["old", "sword", "steel"]
