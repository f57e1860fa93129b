"""Promotions page scraper with unit-price ranking and price history."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from offers.config import DB_PATH, OFFERS_URL
from offers.db import CatalogStore, SQLiteCatalogStore, persist_products
from offers.errors import AdvisoryUnavailable, CatalogStoreError, OffersError, SourceUnavailable
from offers.models import (
    Deal,
    PersistenceReport,
    PriceParts,
    Product,
    PromotionMarkers,
    RankingResult,
    RawItem,
    UpsertFailure,
)
from offers.normalizer import normalize, normalize_all
from offers.parsers import compose_display_name, parse_price, parse_volume_ml
from offers.promotions import classify
from offers.ranking import rank, rank_with_advice
from offers.workflows import run_offers_workflow

__all__ = [
    # Version
    "__version__",
    # Config
    "DB_PATH",
    "OFFERS_URL",
    # Models
    "RawItem",
    "PriceParts",
    "PromotionMarkers",
    "Deal",
    "Product",
    "UpsertFailure",
    "PersistenceReport",
    "RankingResult",
    # Errors
    "OffersError",
    "SourceUnavailable",
    "CatalogStoreError",
    "AdvisoryUnavailable",
    # Core functions
    "parse_volume_ml",
    "parse_price",
    "compose_display_name",
    "classify",
    "normalize",
    "normalize_all",
    "rank",
    "rank_with_advice",
    "CatalogStore",
    "SQLiteCatalogStore",
    "persist_products",
    "run_offers_workflow",
]
