"""Command-line interface for the Sedori compliance engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List

import click
from pydantic import ValidationError

from ..compliance.antique_rules import all_categories, category_display_name
from ..compliance.checker import ProductComplianceChecker
from ..compliance.config import load_config
from ..compliance.import_rules import load_restriction_table
from ..compliance.models import LicenseModel, ProductModel


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"{path} is not valid JSON: {exc}") from exc


def _load_licenses(path: Path | None) -> List[LicenseModel]:
    if path is None:
        return []
    payload = _read_json(path)
    if not isinstance(payload, list):
        raise click.ClickException(f"{path} must contain a JSON list of licenses")
    return [LicenseModel.model_validate(entry) for entry in payload]


@click.group()
def cli() -> None:
    """Sedori product compliance tools."""


@cli.command("check")
@click.argument("product_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--licenses",
    "licenses_json",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON list of antique dealer licenses held by the seller.",
)
@click.option("--origin", "origin_country", default=None, help="Country of origin (name or ISO code).")
@click.option("--user-id", default="cli", show_default=True, help="User the check is recorded for.")
@click.option("--quick", is_flag=True, default=False, help="Only print the coarse status.")
def check(
    product_json: Path,
    licenses_json: Path | None,
    origin_country: str | None,
    user_id: str,
    quick: bool,
) -> None:
    """Evaluate PRODUCT_JSON and emit the verdict as JSON."""

    try:
        config = load_config()
        product = ProductModel.model_validate(_read_json(product_json))
        licenses = _load_licenses(licenses_json)
    except (ValidationError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    checker = ProductComplianceChecker(config=config)
    if quick:
        status = checker.perform_quick_check(product, licenses, origin_country=origin_country)
        payload = {"status": status.value}
    else:
        record = checker.perform_complete_check(
            product, user_id, licenses=licenses, origin_country=origin_country
        )
        payload = record.model_dump(mode="json")

    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@cli.command("categories")
def categories() -> None:
    """List antique dealer license categories."""

    for category in all_categories():
        click.echo(f"{category.value}\t{category_display_name(category)}")


@cli.command("restrictions")
def restrictions() -> None:
    """Dump the import restriction table as JSON."""

    try:
        table = load_restriction_table(load_config().data_root)
    except (FileNotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    payload = [
        {
            "category": entry.category,
            "prohibited": entry.prohibited,
            "restricted": entry.restricted,
            "keywords": list(entry.keywords),
            "documents": list(entry.documents),
            "licenses": list(entry.licenses),
            "tariff_code": entry.tariff_code,
            "tariff_rate": entry.tariff_rate,
            "authority": entry.authority,
        }
        for entry in table.restrictions
    ]
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
