"""Shared fixtures for the offers test suite."""

from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace

import pytest

from offers.db import init_db
from offers.models import Deal, PriceParts, Product, PromotionMarkers, RawItem

FIXED_TIME = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    """Clock that always returns the same instant."""
    return lambda: FIXED_TIME


@pytest.fixture
def temp_db(tmp_path):
    """Create an initialized temporary database."""
    db_path = str(tmp_path / "offers.db")
    init_db(db_path)
    return db_path


@pytest.fixture
def make_raw():
    """Factory for RawItem with valid defaults."""
    def _make(
        identifier="1",
        brand="Absolut",
        name="Vodka 700mL",
        price=PriceParts(whole="45", fractional="99"),
        multi_buy=None,
        was_price=None,
    ):
        return RawItem(
            identifier=identifier,
            brand_text=brand,
            name_text=name,
            price_text=price,
            promotion_markers=PromotionMarkers(multi_buy_text=multi_buy, was_price_text=was_price),
        )
    return _make


@pytest.fixture
def make_product():
    """Factory for Product with valid defaults."""
    def _make(id="1", name="Absolut Vodka 700mL", volume_ml=700, price="35.00", deal=None):
        return Product(
            id=id,
            display_name=name,
            volume_ml=volume_ml,
            current_price=Decimal(price),
            deal=deal or Deal(),
            observed_at=FIXED_TIME,
        )
    return _make


@pytest.fixture
def llm_response():
    """Factory for a Responses API result carrying ``text``."""
    def _make(text):
        return SimpleNamespace(output=[
            SimpleNamespace(type="reasoning", content=None),
            SimpleNamespace(type="message", content=[SimpleNamespace(text=text)]),
        ])
    return _make


@pytest.fixture
def offers_html():
    """Offers page markup with a mix of complete and incomplete tiles."""
    return (Path(__file__).parent / "fixtures" / "offers_page.html").read_text(encoding="utf-8")
