"""Tests for normalization of raw tiles into Products."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from offers.models import DEAL_PRICE_DROP, Deal, PriceParts, Product, PromotionMarkers, RawItem
from offers.normalizer import normalize, normalize_all
from offers.ranking import rank


class TestNormalize:
    """Tests for single-item normalization."""

    def test_complete_item(self, make_raw, fixed_clock):
        """Build a Product from a complete tile."""
        product = normalize(make_raw(), now=fixed_clock)

        assert product is not None
        assert product.id == "1"
        assert product.display_name == "Absolut Vodka 700mL"
        assert product.volume_ml == 700
        assert product.current_price == Decimal("45.99")
        assert product.observed_at == fixed_clock()

    def test_price_per_100ml(self, make_raw):
        """Derive the unit price from price and volume."""
        product = normalize(make_raw(name="Gin 700mL", price=PriceParts("35", "00")))
        assert product.price_per_100ml == Decimal("5.00")

    @pytest.mark.parametrize("volume,price", [
        (700, "45.99"),
        (375, "12.50"),
        (1000, "0.00"),
        (50, "4.95"),
        (1750, "89.00"),
    ])
    def test_price_per_100ml_matches_formula(self, make_raw, volume, price):
        """Unit price is (price / volume) * 100 exactly."""
        product = normalize(make_raw(name=f"Spirit {volume}mL", price=price))
        expected = (Decimal(price) / volume) * 100
        assert product.price_per_100ml == expected

    def test_price_per_100ml_no_integer_truncation(self, make_raw):
        """Small unit prices keep their fractional part."""
        product = normalize(make_raw(name="Gin 700mL", price=PriceParts("1", "00")))
        assert product.price_per_100ml > 0
        assert abs(product.price_per_100ml - Decimal("0.142857")) < Decimal("0.000001")

    def test_deal_is_classified(self, make_raw):
        """Attach the classified deal to the Product."""
        product = normalize(make_raw(multi_buy="Buy 2 Save", was_price="Was $50"))
        assert product.deal.type == DEAL_PRICE_DROP
        assert product.deal.details == "Was $50"

    def test_identifier_is_trimmed(self, make_raw):
        """Strip whitespace around the identifier."""
        assert normalize(make_raw(identifier=" 42 ")).id == "42"

    def test_observed_at_defaults_to_utc_now(self, make_raw):
        """Stamp observed_at with the current UTC time by default."""
        before = datetime.now(timezone.utc)
        product = normalize(make_raw())
        after = datetime.now(timezone.utc)
        assert before <= product.observed_at <= after

    def test_product_is_immutable(self, make_raw):
        """Products cannot be modified after creation."""
        product = normalize(make_raw())
        with pytest.raises(FrozenInstanceError):
            product.current_price = Decimal("1.00")


class TestProductInvariants:
    """A Product cannot be built with an invalid id, volume or price."""

    @pytest.mark.parametrize("overrides", [
        {"id": ""},
        {"volume_ml": 0},
        {"volume_ml": -700},
        {"price": "-0.01"},
        {"price": "NaN"},
    ])
    def test_invalid_fields_rejected(self, make_product, overrides):
        """Reject an empty id, a non-positive volume and a negative or non-finite price."""
        with pytest.raises(ValueError):
            make_product(**overrides)

    def test_direct_construction_is_checked(self, fixed_clock):
        """The check applies to Products built outside the normalizer too."""
        with pytest.raises(ValueError, match="volume_ml"):
            Product("1", "Vodka", 0, Decimal("1"), Deal(), fixed_clock())

    def test_zero_price_allowed(self, make_product):
        """A zero price is valid and ranks without error."""
        product = make_product(price="0")
        assert rank([product]) == [product]
        assert product.price_per_100ml == 0


class TestRequiredFieldGate:
    """Items missing a required field are dropped, never partially filled."""

    def test_empty_identifier_dropped(self, make_raw):
        """Drop tiles with an empty identifier."""
        assert normalize(make_raw(identifier="")) is None

    def test_whitespace_identifier_dropped(self, make_raw):
        """Drop tiles whose identifier is only whitespace."""
        assert normalize(make_raw(identifier="   ")) is None

    def test_missing_identifier_dropped(self, make_raw):
        """Drop tiles without an identifier."""
        assert normalize(make_raw(identifier=None)) is None

    def test_missing_volume_dropped(self, make_raw):
        """Drop tiles whose name has no volume."""
        assert normalize(make_raw(name="Rum Gift Pack")) is None

    def test_zero_volume_dropped(self, make_raw):
        """Drop tiles with a 0 mL volume."""
        assert normalize(make_raw(name="Sample 0mL")) is None

    def test_missing_price_dropped(self, make_raw):
        """Drop tiles without a price."""
        assert normalize(make_raw(price=None)) is None

    def test_unparseable_price_dropped(self, make_raw):
        """Drop tiles whose price cannot be parsed."""
        assert normalize(make_raw(price="Call for price")) is None

    def test_empty_display_name_dropped(self):
        """Drop tiles with neither brand nor name."""
        raw = RawItem(identifier="7", brand_text="", name_text="", price_text="10.00")
        assert normalize(raw) is None

    def test_volume_comes_from_name_not_brand(self, make_raw):
        """Only the product name is searched for a volume."""
        assert normalize(make_raw(brand="Distillery 700mL", name="Vodka")) is None

    def test_zero_price_is_kept(self, make_raw):
        """A free item is kept with a zero unit price."""
        product = normalize(make_raw(price="0.00"))
        assert product is not None
        assert product.price_per_100ml == 0


class TestNormalizeAll:
    """Tests for batch normalization."""

    def test_empty_batch(self):
        """An empty batch gives an empty list."""
        assert normalize_all([]) == []

    def test_stable_filter_preserves_order(self, make_raw):
        """Dropped tiles are removed without reordering the rest."""
        raws = [
            make_raw(identifier="a", name="Gin 700mL"),
            make_raw(identifier="", name="Gin 700mL"),
            make_raw(identifier="b", name="Rum 1000mL"),
            make_raw(identifier="c", name="No volume"),
            make_raw(identifier="d", name="Whisky 700mL"),
        ]
        products = normalize_all(raws)
        assert [p.id for p in products] == ["a", "b", "d"]

    def test_end_to_end_ranking(self):
        """Normalize two tiles and rank the cheaper-per-100ml first."""
        raws = [
            RawItem.from_dict({
                "id": "1", "brand": "A", "name": "700mL X",
                "price": {"whole": "35", "fractional": "00"}, "markers": {},
            }),
            RawItem.from_dict({
                "id": "2", "brand": "B", "name": "1000mL Y",
                "price": {"whole": "40", "fractional": "00"}, "markers": {},
            }),
        ]
        products = normalize_all(raws)

        assert len(products) == 2
        assert products[0].price_per_100ml == Decimal("5.00")
        assert products[1].price_per_100ml == Decimal("4.00")
        assert [p.id for p in rank(products)] == ["2", "1"]


class TestRawItemFromDict:
    """Tests for building RawItem from JSON-shaped input."""

    def test_camel_case_markers(self):
        """Accept camelCase marker keys and numeric ids."""
        raw = RawItem.from_dict({
            "id": 12,
            "brand": "A",
            "name": "Gin 700mL",
            "price": "$30",
            "markers": {"multiBuy": "2 for $50", "wasPrice": None},
        })
        assert raw.identifier == "12"
        assert raw.price_text == "$30"
        assert raw.promotion_markers == PromotionMarkers(multi_buy_text="2 for $50")

    def test_missing_keys(self):
        """Missing keys fall back to empty defaults."""
        raw = RawItem.from_dict({})
        assert raw.identifier is None
        assert raw.brand_text == ""
        assert raw.name_text == ""
        assert raw.price_text is None
        assert raw.promotion_markers == PromotionMarkers()

    def test_split_price_dict(self):
        """A price mapping becomes PriceParts."""
        raw = RawItem.from_dict({"price": {"whole": "45"}})
        assert raw.price_text == PriceParts(whole="45", fractional=None)
