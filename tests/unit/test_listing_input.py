"""
Unit tests for boundary coercion of listing input and field validation.
"""

import pytest

from listing_sync_service.exceptions import ValidationFailed
from listing_sync_service.schemas.listing import ListingInput
from listing_sync_service.utils.validation import collect_errors, validate_create, validate_update
from tests.fixtures.helpers import sample_listing_payload


class TestListingInput:
    def test_short_aliases(self):
        listing = ListingInput.model_validate(sample_listing_payload(status="Pending"))
        assert listing.state_or_province == "MA"
        assert listing.postal_code == "01867"
        assert listing.bedrooms_total == 2
        assert listing.standard_status == "Pending"

    def test_price_formatting_is_stripped(self):
        listing = ListingInput.model_validate({"list_price": "$450,000", "association_fee": "1,200.50"})
        assert listing.list_price == 450000.0
        assert listing.association_fee == 1200.5

    @pytest.mark.parametrize("raw,expected", [("yes", True), ("1", True), ("on", True), ("no", False), ("", None)])
    def test_loose_booleans(self, raw, expected):
        assert ListingInput.model_validate({"has_pool": raw}).has_pool is expected

    def test_multi_value_strings_are_split(self):
        listing = ListingInput.model_validate({"appliances": "Dishwasher, Range ,, Microwave"})
        assert listing.appliances == ["Dishwasher", "Range", "Microwave"]

    def test_state_is_uppercased(self):
        assert ListingInput.model_validate({"state": " ma "}).state_or_province == "MA"

    def test_blank_strings_become_missing(self):
        listing = ListingInput.model_validate({"city": "   ", "unit_number": ""})
        assert listing.city is None
        assert listing.unit_number is None

    def test_flags_derive_from_attributes(self):
        listing = ListingInput.model_validate(
            {"heating": "Forced Air", "cooling": "None", "view": "", "association_fee": 250}
        )
        assert listing.heating_yn is True
        assert listing.cooling_yn is False
        assert listing.view_yn is False
        assert listing.association_yn is True
        assert {"heating_yn", "cooling_yn", "association_yn"} <= listing.provided_fields().keys()

    def test_explicit_flag_is_kept(self):
        listing = ListingInput.model_validate({"heating": "Forced Air", "heating_yn": False})
        assert listing.heating_yn is False

    def test_provided_fields_only_lists_supplied(self):
        assert ListingInput.model_validate({"list_price": 500000}).provided_fields() == {
            "list_price": 500000.0
        }

    def test_unknown_fields_are_ignored(self):
        listing = ListingInput.model_validate({"list_price": 1, "csrf_token": "abc"})
        assert "csrf_token" not in listing.provided_fields()


class TestValidation:
    def test_valid_create_passes(self):
        validate_create(ListingInput.model_validate(sample_listing_payload()))

    def test_create_reports_missing_required_fields(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_create(ListingInput.model_validate({"city": "Reading"}))
        errors = exc_info.value.field_errors
        assert "list_price" in errors
        assert "street_name" in errors
        assert "city" not in errors

    def test_update_does_not_require_fields(self):
        validate_update(ListingInput.model_validate({"list_price": 475000}))

    @pytest.mark.parametrize(
        "fields,field",
        [
            ({"list_price": 0}, "list_price"),
            ({"state": "Mass"}, "state_or_province"),
            ({"zip": "1867"}, "postal_code"),
            ({"bedrooms": -1}, "bedrooms_total"),
            ({"year_built": 1500}, "year_built"),
            ({"latitude": 95}, "latitude"),
            ({"longitude": -200}, "longitude"),
            ({"exclusive_tag": "x" * 51}, "exclusive_tag"),
        ],
    )
    def test_field_rules(self, fields, field):
        assert field in collect_errors(ListingInput.model_validate(fields))

    def test_nine_digit_postal_code(self):
        assert collect_errors(ListingInput.model_validate({"zip": "01867-1234"})) == {}

    def test_error_payload_always_carries_field_errors(self):
        error = ValidationFailed({"list_price": "Price must be greater than 0"})
        body = error.to_dict(include_details=False)
        assert body["success"] is False
        assert body["error"]["code"] == "validation_failed"
        assert body["error"]["details"] == {"list_price": "Price must be greater than 0"}
