"""Orchestrates a compliance check for one product listing.

The checker evaluates both rule sets plus any keyword-selected freeform rules,
stamps the combined verdict into an immutable ``ComplianceCheckRecord`` and,
when a repository is attached, appends it to the check history.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from sedori.compliance.antique_rules import evaluate_antique
from sedori.compliance.combiner import build_rule_results, combine, compute_risk_score, decide_status
from sedori.compliance.config import DEFAULT_CONFIG, ComplianceConfig
from sedori.compliance.import_rules import RestrictionTable, evaluate_import
from sedori.compliance.keywords import build_corpus, product_terms
from sedori.compliance.models import (
    CheckType,
    ComplianceCheckRecord,
    ComplianceCheckResultModel,
    ComplianceStatus,
    LicenseModel,
    ProductModel,
    RegulationRuleModel,
    resolve_now,
)
from sedori.compliance.scheduling import next_check_at
from sedori.compliance.store import ComplianceCheckRepository
from sedori.observability import check_run, log_event

logger = logging.getLogger(__name__)

CHECK_VERSION = "1.0"


class ProductComplianceChecker:
    """Runs complete, quick and batch compliance checks."""

    def __init__(
        self,
        config: ComplianceConfig | None = None,
        repository: ComplianceCheckRepository | None = None,
        table: RestrictionTable | None = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.repository = repository
        self.table = table

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def select_applicable_rules(
        self,
        product: ProductModel,
        rules: Iterable[RegulationRuleModel],
        now: datetime | None = None,
    ) -> List[RegulationRuleModel]:
        """Active freeform rules whose keywords overlap the product text."""

        terms = product_terms(product)
        corpus = build_corpus(product)
        return [
            rule
            for rule in rules
            if rule.is_active(now) and rule.matches_terms(terms, corpus)
        ]

    def evaluate(
        self,
        product: ProductModel,
        licenses: Optional[Sequence[LicenseModel]] = None,
        *,
        rules: Iterable[RegulationRuleModel] = (),
        origin_country: str | None = None,
        now: datetime | None = None,
    ) -> ComplianceCheckResultModel:
        now = resolve_now(now)
        applicable = self.select_applicable_rules(product, rules, now)
        antique = evaluate_antique(product, licenses, config=self.config, now=now)
        import_result = evaluate_import(
            product, origin_country, config=self.config, table=self.table
        )
        return combine(antique, import_result, applicable, config=self.config)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def perform_complete_check(
        self,
        product: ProductModel,
        user_id: str,
        *,
        licenses: Optional[Sequence[LicenseModel]] = None,
        rules: Iterable[RegulationRuleModel] = (),
        origin_country: str | None = None,
        check_type: CheckType = CheckType.AUTOMATIC,
        now: datetime | None = None,
    ) -> ComplianceCheckRecord:
        """Evaluate ``product`` for ``user_id`` and record the verdict.

        Evaluation failures never escape: they are logged and recorded as a
        ``pending`` check so the product is picked up again later.  Errors
        from the repository itself do propagate.
        """

        now = resolve_now(now)
        with check_run() as run_id:
            metadata = {
                "product_name": product.name,
                "product_category": product.category_name,
                "check_version": CHECK_VERSION,
                "run_id": run_id,
            }
            if origin_country:
                metadata["origin_country"] = origin_country

            try:
                result = self.evaluate(
                    product,
                    licenses,
                    rules=rules,
                    origin_country=origin_country,
                    now=now,
                )
            except Exception as exc:
                logger.exception("Compliance check failed for product %s", product.product_id)
                record = ComplianceCheckRecord(
                    check_id=str(uuid.uuid4()),
                    product_id=product.product_id,
                    user_id=user_id,
                    check_type=check_type,
                    status=ComplianceStatus.PENDING,
                    risk_score=0.0,
                    performed_at=now,
                    next_check_at=now + timedelta(days=self.config.recheck_fallback_days),
                    metadata={**metadata, "error": str(exc)},
                )
            else:
                record = ComplianceCheckRecord(
                    check_id=str(uuid.uuid4()),
                    product_id=product.product_id,
                    user_id=user_id,
                    check_type=check_type,
                    status=result.status,
                    risk_score=result.risk_score,
                    rule_results=result.rule_results,
                    required_licenses=result.required_licenses,
                    required_documents=result.required_documents,
                    prohibited_reasons=result.prohibited_reasons,
                    recommendations=result.recommendations,
                    performed_at=now,
                    next_check_at=next_check_at(result.status, now=now, config=self.config),
                    metadata=metadata,
                )

            log_event(
                "compliance.check.completed",
                check_id=record.check_id,
                product_id=record.product_id,
                status=record.status.value,
                risk_score=record.risk_score,
            )
            if self.repository is not None:
                self.repository.add(record)
            return record

    def perform_quick_check(
        self,
        product: ProductModel,
        licenses: Optional[Sequence[LicenseModel]] = None,
        *,
        origin_country: str | None = None,
        now: datetime | None = None,
    ) -> ComplianceStatus:
        """Status-only gate check: no record, no freeform rules."""

        try:
            antique = evaluate_antique(product, licenses, config=self.config, now=now)
            import_result = evaluate_import(
                product, origin_country, config=self.config, table=self.table
            )
            score = compute_risk_score(build_rule_results(antique, import_result), self.config)
            return decide_status(antique, import_result, score, config=self.config)
        except Exception:
            logger.exception("Quick compliance check failed for product %s", product.product_id)
            return ComplianceStatus.PENDING

    def check_multiple(
        self,
        products: Iterable[ProductModel],
        user_id: str,
        *,
        licenses: Optional[Sequence[LicenseModel]] = None,
        rules: Sequence[RegulationRuleModel] = (),
        origin_country: str | None = None,
        check_type: CheckType = CheckType.AUTOMATIC,
        now: datetime | None = None,
    ) -> List[ComplianceCheckRecord]:
        records = [
            self.perform_complete_check(
                product,
                user_id,
                licenses=licenses,
                rules=rules,
                origin_country=origin_country,
                check_type=check_type,
                now=now,
            )
            for product in products
        ]
        logger.info("Checked %d products for user %s", len(records), user_id)
        return records
