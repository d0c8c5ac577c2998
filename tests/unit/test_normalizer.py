"""
Unit tests for bathroom and lot size reconciliation and the derived fields.
"""

from datetime import date

import pytest

from listing_sync_service.schemas.listing import Listing
from listing_sync_service.utils.normalizer import (
    DEFAULT_SUB_TYPE,
    build_unparsed_address,
    days_on_market,
    normalize,
    normalize_bathrooms,
    normalize_lot_size,
    price_per_sqft,
    to_external_sub_type,
)


class TestBathrooms:
    def test_full_and_half_recompute_total(self):
        listing = normalize_bathrooms(Listing(bathrooms_full=1, bathrooms_half=1))
        assert listing.bathrooms_total == 1.5

    def test_components_win_over_stale_total(self):
        listing = normalize_bathrooms(
            Listing(bathrooms_full=2, bathrooms_half=0, bathrooms_total=4.5)
        )
        assert listing.bathrooms_total == 2.0
        assert listing.bathrooms_half == 0

    def test_zero_counts_are_authoritative(self):
        listing = normalize_bathrooms(Listing(bathrooms_full=0, bathrooms_total=3))
        assert listing.bathrooms_full == 0
        assert listing.bathrooms_half == 0
        assert listing.bathrooms_total == 0

    def test_half_only_defaults_full_to_zero(self):
        listing = normalize_bathrooms(Listing(bathrooms_half=1))
        assert listing.bathrooms_full == 0
        assert listing.bathrooms_total == 0.5

    def test_total_decomposes(self):
        listing = normalize_bathrooms(Listing(bathrooms_total=2.5))
        assert (listing.bathrooms_full, listing.bathrooms_half) == (2, 1)
        assert listing.bathrooms_total == 2.5

    def test_total_snaps_to_half_grid(self):
        listing = normalize_bathrooms(Listing(bathrooms_total=2.75))
        assert (listing.bathrooms_full, listing.bathrooms_half) == (2, 1)
        assert listing.bathrooms_total == listing.bathrooms_full + 0.5 * listing.bathrooms_half

    def test_nothing_supplied_is_untouched(self):
        listing = Listing(city="Reading")
        assert normalize_bathrooms(listing) is listing

    def test_input_is_not_mutated(self):
        listing = Listing(bathrooms_full=1, bathrooms_half=1)
        normalize_bathrooms(listing)
        assert listing.bathrooms_total is None


class TestLotSize:
    def test_square_feet_wins(self):
        listing = normalize_lot_size(Listing(lot_size_square_feet=43560, lot_size_acres=5))
        assert listing.lot_size_acres == 1.0
        assert listing.lot_size_square_feet == 43560

    def test_acres_derive_square_feet(self):
        listing = normalize_lot_size(Listing(lot_size_acres=0.25))
        assert listing.lot_size_square_feet == 10890

    @pytest.mark.parametrize("acres", [0.1234, 0.33333333, 2.0, 1.23456])
    def test_lot_size_invariant(self, acres):
        listing = normalize_lot_size(Listing(lot_size_acres=acres))
        assert listing.lot_size_square_feet == round(listing.lot_size_acres * 43560)

    def test_non_positive_values_are_untouched(self):
        listing = normalize_lot_size(Listing(lot_size_square_feet=0, lot_size_acres=0))
        assert listing.lot_size_square_feet == 0
        assert listing.lot_size_acres == 0


class TestNormalize:
    @pytest.mark.parametrize(
        "fields",
        [
            {"bathrooms_total": 2.75, "lot_size_acres": 0.33333333},
            {"bathrooms_full": 3, "bathrooms_half": 2, "lot_size_square_feet": 12000},
            {"bathrooms_total": 1, "lot_size_acres": 1.5},
        ],
    )
    def test_idempotent(self, fields):
        once = normalize(Listing(**fields))
        assert normalize(once) == once


class TestDerivedFields:
    @pytest.mark.parametrize(
        "sub_type,expected",
        [
            ("Condo", "Condominium"),
            ("Apartment", "Condominium"),
            ("Single Family", "Single Family Residence"),
            ("Ranch", "Farm"),
            ("Castle", "Castle"),
            (None, DEFAULT_SUB_TYPE),
            ("", DEFAULT_SUB_TYPE),
        ],
    )
    def test_external_sub_type(self, sub_type, expected):
        assert to_external_sub_type(sub_type) == expected

    def test_days_on_market_counts_to_today(self):
        assert days_on_market(date(2024, 1, 1), date(2024, 1, 31)) == 30

    def test_days_on_market_freezes_at_off_market_date(self):
        assert days_on_market(date(2024, 1, 1), date(2024, 6, 1), date(2024, 1, 11)) == 10

    def test_days_on_market_never_negative(self):
        assert days_on_market(date(2024, 2, 1), date(2024, 1, 1)) == 0
        assert days_on_market(None, date(2024, 1, 1)) is None

    def test_price_per_sqft(self):
        assert price_per_sqft(450000, 1200) == 375.0
        assert price_per_sqft(450000, 0) is None
        assert price_per_sqft(None, 1200) is None

    def test_unparsed_address(self):
        listing = Listing(
            street_number="10",
            street_name="Elm St",
            unit_number="2",
            city="Reading",
            state_or_province="MA",
            postal_code="01867",
        )
        assert build_unparsed_address(listing) == "10 Elm St #2, Reading, MA 01867"

    def test_unparsed_address_skips_missing_parts(self):
        assert build_unparsed_address(Listing(city="Reading", state_or_province="MA")) == "Reading, MA"
