"""Console report and CSV export of ranked products."""

import csv
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, TextIO

from offers.db import get_all_products
from offers.models import Product, RankingResult

__all__ = [
    "format_product_line",
    "format_ranking",
    "print_report",
    "export_db_to_csv",
    "CSV_FIELDNAMES",
]

CSV_FIELDNAMES = [
    "id",
    "name",
    "volume_ml",
    "current_price",
    "price_per_100ml",
    "deal_type",
    "best_deal",
    "created_at",
    "updated_at",
]


def format_product_line(rank: int, product: Product) -> str:
    """One report line: rank, name, price, volume and price per 100ml."""
    return (
        f"{rank}. {product.display_name} | "
        f"${product.current_price:.2f} | "
        f"{product.volume_ml} mL | "
        f"${product.price_per_100ml:.2f}/100mL"
    )


def format_ranking(products: Sequence[Product], limit: Optional[int] = None) -> List[str]:
    """Format ranked products, best value first."""
    shown = products[:limit] if limit is not None else products
    return [format_product_line(i, p) for i, p in enumerate(shown, start=1)]


def print_report(
    result: RankingResult,
    limit: Optional[int] = None,
    out: Optional[TextIO] = None,
) -> None:
    """Print the ranked list followed by the advisory section."""
    def emit(line: str = "") -> None:
        print(line, file=out)

    emit(f"\n{'='*60}")
    emit(f"Best value offers ({len(result.ranked)} products)")
    emit(f"{'='*60}")
    if not result.ranked:
        emit("No products found.")
    for line in format_ranking(result.ranked, limit):
        emit(line)

    if result.advisory is not None:
        emit("\nLLM Analysis:")
        emit(result.advisory)
    elif result.advisory_error is not None:
        emit(f"\nLLM Analysis unavailable: {result.advisory_error}")
    emit()


def _export_row(product: Dict[str, Any]) -> Dict[str, Any]:
    deal = product.get("best_deal") or {}
    row = {key: product.get(key) for key in CSV_FIELDNAMES}
    row["best_deal"] = deal.get("details") or ""
    return row


def export_db_to_csv(db_path: str, output_path: str) -> int:
    """Export all stored products to CSV, returning the number of rows written."""
    products: Iterable[Dict[str, Any]] = get_all_products(db_path)
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDNAMES)
        writer.writeheader()
        for product in products:
            writer.writerow(_export_row(product))
            count += 1

    print(f"Exported {count} products to {output_path}")
    return count
