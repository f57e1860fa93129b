"""End-to-end offers workflow: fetch, normalize, persist and rank."""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from offers.db import CatalogStore, persist_products
from offers.logging_config import get_logger, log_offers_event
from offers.models import PersistenceReport, Product, RankingResult, RawItem
from offers.normalizer import normalize_all
from offers.ranking import Advisor, rank_with_advice

__all__ = ["Source", "WorkflowResult", "run_offers_workflow"]

logger = get_logger("workflows")


class Source(Protocol):
    """Supplies the raw tiles of one offers page."""

    def fetch(self) -> List[RawItem]:
        ...


@dataclass
class WorkflowResult:
    """Everything a single run produced."""

    raw_count: int = 0
    products: List[Product] = field(default_factory=list)
    ranking: RankingResult = field(default_factory=RankingResult)
    persistence: Optional[PersistenceReport] = None


def run_offers_workflow(
    source: Source,
    store: Optional[CatalogStore] = None,
    advisor: Optional[Advisor] = None,
    max_workers: Optional[int] = None,
) -> WorkflowResult:
    """Run one scrape of the offers page.

    Persistence and ranking both work from the same normalized batch and do not
    depend on each other: store failures are reported per product and an
    unavailable advisor only removes the commentary.

    Args:
        source: Page source (raises SourceUnavailable if it cannot fetch)
        store: Catalog store; None skips persistence
        advisor: Advisory LLM; None skips the commentary
        max_workers: Threads for concurrent upserts (default: sequential)

    Returns:
        WorkflowResult with products, ranking and persistence report
    """
    raw_items = source.fetch()
    products = normalize_all(raw_items)
    if raw_items and not products:
        logger.warning(f"None of the {len(raw_items)} tiles had id, name, volume and price")

    result = WorkflowResult(raw_count=len(raw_items), products=products)

    if store is not None:
        result.persistence = persist_products(products, store, max_workers=max_workers)

    result.ranking = rank_with_advice(products, advisor)

    log_offers_event("run_complete", {
        "message": f"Run complete: {len(products)} products ranked",
        "tiles": len(raw_items),
        "products": len(products),
        "persist_failures": len(result.persistence.failures) if result.persistence else 0,
        "advisory": result.ranking.advisory is not None,
    }, logger_name="workflows")
    return result
