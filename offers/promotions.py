"""Promotion classification for product tiles."""

from typing import Optional

from offers.models import DEAL_MULTI_BUY, DEAL_PRICE_DROP, Deal, PromotionMarkers

__all__ = ["classify"]


def _marker_text(text: Optional[str]) -> Optional[str]:
    if not isinstance(text, str):
        return None
    text = text.strip()
    return text or None


def classify(markers: Optional[PromotionMarkers]) -> Deal:
    """Assign a deal type and description from a tile's promotional markers.

    Multi-buy is checked first and price-drop second, so when a tile carries
    both a pack discount and a "was" price the price-drop wins and the
    multi-buy text is discarded.
    """
    deal_type: Optional[str] = None
    details: Optional[str] = None
    if markers is None:
        return Deal()

    multi_buy = _marker_text(markers.multi_buy_text)
    if multi_buy:
        deal_type, details = DEAL_MULTI_BUY, multi_buy

    was_price = _marker_text(markers.was_price_text)
    if was_price:
        deal_type, details = DEAL_PRICE_DROP, was_price

    return Deal(type=deal_type, details=details)
