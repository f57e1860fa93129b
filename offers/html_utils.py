"""HTML extraction of product tiles from the offers page."""

from typing import Dict, List, Optional, Union

from bs4 import BeautifulSoup, Tag

from offers.config import TILE_SELECTORS
from offers.models import PriceParts, PromotionMarkers, RawItem

__all__ = [
    "select_text",
    "extract_price",
    "extract_tile",
    "extract_raw_items",
]


def select_text(node: Tag, selector: str) -> Optional[str]:
    """Stripped text of the first match of ``selector``, None if absent."""
    el = node.select_one(selector)
    if el is None:
        return None
    return el.get_text(" ", strip=True)


def extract_price(tile: Tag, selectors: Dict[str, str] = TILE_SELECTORS) -> Union[PriceParts, str, None]:
    """Extract the current price of a tile.

    Price tags render dollars and cents in separate elements; when that split
    is not present the whole tag text is returned for combined parsing.
    """
    price_tag = tile.select_one(selectors["price"])
    if price_tag is None:
        return None

    whole = select_text(price_tag, selectors["price_whole"])
    fractional = select_text(price_tag, selectors["price_fractional"])
    if whole is not None or fractional is not None:
        return PriceParts(whole=whole, fractional=fractional)
    return price_tag.get_text("", strip=True)


def extract_tile(tile: Tag, selectors: Dict[str, str] = TILE_SELECTORS) -> RawItem:
    """Build a RawItem from one product tile element."""
    identifier = tile.get(selectors["id_attr"])
    if isinstance(identifier, list):
        identifier = " ".join(identifier)

    return RawItem(
        identifier=identifier,
        brand_text=select_text(tile, selectors["brand"]) or "",
        name_text=select_text(tile, selectors["name"]) or "",
        price_text=extract_price(tile, selectors),
        promotion_markers=PromotionMarkers(
            multi_buy_text=select_text(tile, selectors["multi_buy"]),
            was_price_text=select_text(tile, selectors["was_price"]),
        ),
    )


def extract_raw_items(html: str, selectors: Dict[str, str] = TILE_SELECTORS) -> List[RawItem]:
    """Extract every product tile on an offers page, in page order."""
    soup = BeautifulSoup(html, "html.parser")
    return [extract_tile(tile, selectors) for tile in soup.select(selectors["tile"])]
