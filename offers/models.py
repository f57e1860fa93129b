"""Data models for raw tiles, normalized products and run reports."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Union

__all__ = [
    "DEAL_MULTI_BUY",
    "DEAL_PRICE_DROP",
    "PriceParts",
    "PromotionMarkers",
    "RawItem",
    "Deal",
    "Product",
    "UpsertFailure",
    "PersistenceReport",
    "RankingResult",
]

DEAL_MULTI_BUY = "multi-buy"
DEAL_PRICE_DROP = "price-drop"


@dataclass(frozen=True)
class PriceParts:
    """Currency displayed as separate dollar and cent components."""

    whole: Optional[str] = None
    fractional: Optional[str] = None


@dataclass(frozen=True)
class PromotionMarkers:
    """Text of the promotional badges found on a tile (None when absent)."""

    multi_buy_text: Optional[str] = None
    was_price_text: Optional[str] = None


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass(frozen=True)
class RawItem:
    """One scraped product tile before normalization.

    Field presence is reported as found on the page: ``None`` for a missing
    element, empty string for an element without text.
    """

    identifier: Optional[str] = None
    brand_text: str = ""
    name_text: str = ""
    price_text: Union[PriceParts, str, None] = None
    promotion_markers: PromotionMarkers = field(default_factory=PromotionMarkers)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RawItem":
        """Create from a JSON-shaped dict (e.g. a saved extraction)."""
        price = _first(data, "price", "price_text", "priceText")
        if isinstance(price, Mapping):
            price = PriceParts(
                whole=price.get("whole"),
                fractional=price.get("fractional"),
            )

        markers = _first(data, "markers", "promotion_markers", "promotionMarkers") or {}
        if isinstance(markers, Mapping):
            markers = PromotionMarkers(
                multi_buy_text=_first(markers, "multi_buy", "multiBuy", "multi_buy_text"),
                was_price_text=_first(markers, "was_price", "wasPrice", "was_price_text"),
            )

        identifier = _first(data, "id", "identifier")
        return cls(
            identifier=str(identifier) if identifier is not None else None,
            brand_text=_first(data, "brand", "brand_text", "brandText") or "",
            name_text=_first(data, "name", "name_text", "nameText") or "",
            price_text=price,
            promotion_markers=markers,
        )


@dataclass(frozen=True)
class Deal:
    """Promotion mechanism detected on a tile."""

    type: Optional[str] = None
    details: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"type": self.type, "details": self.details}


@dataclass(frozen=True)
class Product:
    """Canonical product record produced by normalization.

    ``price_per_100ml`` is derived from ``current_price`` and ``volume_ml`` on
    every access, so it can never go stale. Construction raises ValueError for
    an empty id, a non-positive volume or a negative price.
    """

    id: str
    display_name: str
    volume_ml: int
    current_price: Decimal
    deal: Deal
    observed_at: datetime

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Product id must not be empty")
        if self.volume_ml <= 0:
            raise ValueError(f"Product {self.id}: volume_ml must be positive, got {self.volume_ml}")
        if not self.current_price.is_finite() or self.current_price < 0:
            raise ValueError(f"Product {self.id}: invalid current_price {self.current_price}")

    @property
    def price_per_100ml(self) -> Decimal:
        return (self.current_price / self.volume_ml) * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dict (decimals as strings)."""
        return {
            "id": self.id,
            "name": self.display_name,
            "volume_ml": self.volume_ml,
            "current_price": str(self.current_price),
            "price_per_100ml": str(self.price_per_100ml),
            "best_deal": self.deal.to_dict(),
            "observed_at": self.observed_at.isoformat(),
        }


@dataclass(frozen=True)
class UpsertFailure:
    """A single product the store could not persist."""

    product_id: str
    reason: str


@dataclass
class PersistenceReport:
    """Outcome of persisting one batch of products."""

    saved: List[str] = field(default_factory=list)
    failures: List[UpsertFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class RankingResult:
    """Deterministic ranking plus optional advisory commentary.

    ``advisory`` is None when no advisor was used or it failed; in the latter
    case ``advisory_error`` carries the reason.
    """

    ranked: List[Product] = field(default_factory=list)
    advisory: Optional[str] = None
    advisory_error: Optional[str] = None
