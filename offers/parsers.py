"""Field parsing for raw tile text.

All functions are pure and never raise on bad input: anything that cannot be
parsed yields None and the decision to drop the item is left to the
normalizer.
"""

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from offers.models import PriceParts

__all__ = [
    "VOLUME_RE",
    "parse_volume_ml",
    "parse_price",
    "compose_display_name",
]

# Integer millilitre token, e.g. "700mL", "375 ml". "1.5 L" is not matched.
VOLUME_RE = re.compile(r"(\d+)\s*m[lL]")

# Leading decimal number in combined price text, after an optional currency sign.
# An exponent is accepted the way a lenient float parse does ("1e3" is 1000).
LEADING_NUMBER_RE = re.compile(r"^\s*\$?\s*((?:-?\d+(?:\.\d+)?|-?\.\d+)(?:[eE][+-]?\d+)?)")

# Full decimal number, used for split "whole.fractional" prices
STRICT_NUMBER_RE = re.compile(r"^-?\d+\.\d+$")


def parse_volume_ml(name: Optional[str]) -> Optional[int]:
    """Return the first integer millilitre volume in ``name``.

    Example:
        >>> parse_volume_ml("Brand XYZ 700mL Vodka")
        700
        >>> parse_volume_ml("Brand No Volume") is None
        True
    """
    if not isinstance(name, str):
        return None
    match = VOLUME_RE.search(name)
    return int(match.group(1)) if match else None


def _to_decimal(text: str) -> Optional[Decimal]:
    try:
        value = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value < 0:
        return None
    return value


def _clean_whole(text: str) -> str:
    return text.strip().lstrip("$").replace(",", "").strip()


def _parse_split_price(whole: Optional[str], fractional: Optional[str]) -> Optional[Decimal]:
    whole_text = _clean_whole(whole) if isinstance(whole, str) else ""
    fractional_text = fractional.strip() if isinstance(fractional, str) else ""

    combined = f"{whole_text or '0'}.{fractional_text or '00'}"
    if not STRICT_NUMBER_RE.match(combined):
        return None
    return _to_decimal(combined)


def parse_price(value: Any) -> Optional[Decimal]:
    """Parse a displayed price into a non-negative Decimal.

    Accepts either combined text ("$45.99", "1,299.00") or split dollar/cent
    parts as ``PriceParts`` or a mapping with ``whole``/``fractional`` keys.
    Missing split parts default to "0" and "00".

    Example:
        >>> parse_price(PriceParts(whole="45", fractional="99"))
        Decimal('45.99')
        >>> parse_price({"whole": "45"})
        Decimal('45.00')
    """
    if isinstance(value, PriceParts):
        return _parse_split_price(value.whole, value.fractional)
    if isinstance(value, Mapping):
        return _parse_split_price(value.get("whole"), value.get("fractional"))
    if not isinstance(value, str):
        return None

    match = LEADING_NUMBER_RE.match(value.replace(",", ""))
    if not match or not math.isfinite(float(match.group(1))):
        return None
    number = _to_decimal(match.group(1))
    # plain notation, "1e3" gives Decimal("1000") not Decimal("1E+3")
    return Decimal(format(number, "f")) if number is not None else None


def compose_display_name(brand: Optional[str], name: Optional[str]) -> str:
    """Join brand and name with single spaces; missing parts count as empty."""
    parts = [part for part in (brand, name) if isinstance(part, str)]
    return " ".join(" ".join(parts).split())
