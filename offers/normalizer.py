"""Normalization of raw tiles into canonical Product records."""

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from offers.logging_config import get_logger, log_offers_event
from offers.models import Product, RawItem
from offers.parsers import compose_display_name, parse_price, parse_volume_ml
from offers.promotions import classify

__all__ = ["normalize", "normalize_all"]

logger = get_logger("normalizer")

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize(raw: RawItem, now: Optional[Clock] = None) -> Optional[Product]:
    """Build a Product from one raw tile, or return None if it is incomplete.

    A tile is kept only when it has a non-empty identifier, a non-empty display
    name, a positive millilitre volume and a parseable price. No partially
    filled Product is ever returned.

    Args:
        raw: Tile fields as extracted from the page.
        now: Optional clock used for ``observed_at`` (default: UTC now).

    Returns:
        The normalized Product, or None when a required field is missing.
    """
    display_name = compose_display_name(raw.brand_text, raw.name_text)
    volume_ml = parse_volume_ml(raw.name_text)
    current_price = parse_price(raw.price_text)
    deal = classify(raw.promotion_markers)

    identifier = raw.identifier.strip() if isinstance(raw.identifier, str) else ""

    reason = None
    if not identifier:
        reason = "missing_id"
    elif not display_name:
        reason = "missing_name"
    elif not volume_ml:
        reason = "missing_volume"
    elif current_price is None:
        reason = "missing_price"

    if reason:
        log_offers_event("item_dropped", {
            "message": f"Dropping tile {raw.identifier!r} ({reason})",
            "identifier": raw.identifier,
            "reason": reason,
            "name": display_name,
        }, level=logging.DEBUG, logger_name="normalizer")
        return None

    return Product(
        id=identifier,
        display_name=display_name,
        volume_ml=volume_ml,
        current_price=current_price,
        deal=deal,
        observed_at=(now or _utc_now)(),
    )


def normalize_all(raws: Iterable[RawItem], now: Optional[Clock] = None) -> List[Product]:
    """Normalize a batch, dropping incomplete tiles and keeping input order."""
    products: List[Product] = []
    dropped = 0
    for raw in raws:
        product = normalize(raw, now=now)
        if product is None:
            dropped += 1
            continue
        products.append(product)

    if dropped:
        logger.info(f"Normalized {len(products)} products ({dropped} incomplete tiles dropped)")
    return products
