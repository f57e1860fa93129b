"""Value ranking of normalized products."""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from offers.logging_config import get_logger, log_offers_event
from offers.models import Product, RankingResult

__all__ = ["Advisor", "rank", "rank_with_advice"]

logger = get_logger("ranking")


class Advisor(Protocol):
    """Collaborator that comments on a batch of products in free-form text."""

    def explain(self, products: Sequence[Product]) -> str:
        ...


def _value_key(product: Product) -> Tuple[Decimal, str, str]:
    return (product.price_per_100ml, product.display_name, product.id)


def rank(products: Iterable[Product]) -> List[Product]:
    """Order products from best to worst value.

    Sorted ascending by price per 100ml, then display name, then id, so the
    result is the same for the same input regardless of its order.
    """
    return sorted(products, key=_value_key)


def rank_with_advice(
    products: Iterable[Product],
    advisor: Optional[Advisor] = None,
) -> RankingResult:
    """Rank products and attach advisory commentary when available.

    The deterministic ranking is always computed first. The advisor is called
    at most once, over the whole batch, and only when there is something to
    rank; any failure is reported in ``advisory_error`` and never affects the
    ranking.
    """
    ranked = rank(products)
    result = RankingResult(ranked=ranked)

    if advisor is None or not ranked:
        return result

    try:
        result.advisory = advisor.explain(ranked)
    except Exception as e:
        result.advisory_error = str(e) or e.__class__.__name__
        logger.warning(f"Advisory ranking unavailable: {result.advisory_error}")
        log_offers_event("advisory_unavailable", {
            "error": result.advisory_error,
            "products": len(ranked),
        }, level=logging.DEBUG, logger_name="ranking")

    return result
