"""
Field-level rules applied to listing input before it reaches the sync core.
"""

import re
from datetime import date
from typing import Dict

from listing_sync_service.exceptions import ValidationFailed
from listing_sync_service.schemas.listing import NUMERIC_FIELDS, ListingInput

REQUIRED_FIELDS = (
    "property_type",
    "list_price",
    "street_number",
    "street_name",
    "city",
    "state_or_province",
    "postal_code",
)

EXCLUSIVE_TAG_MAX_LENGTH = 50

_POSTAL_CODE = re.compile(r"^\d{5}(-\d{4})?$")


def humanize(field: str) -> str:
    return field.replace("_", " ").capitalize()


def collect_errors(listing: ListingInput) -> Dict[str, str]:
    """Check every provided field; missing fields are not errors here."""
    errors: Dict[str, str] = {}
    provided = listing.model_fields_set

    if "list_price" in provided and (listing.list_price is None or listing.list_price <= 0):
        errors["list_price"] = "Price must be greater than 0"

    if listing.state_or_province and len(listing.state_or_province) != 2:
        errors["state_or_province"] = "State must be a 2-letter code (e.g., MA)"

    if listing.postal_code and not _POSTAL_CODE.match(listing.postal_code):
        errors["postal_code"] = (
            "Invalid postal code format. Use 5-digit or 9-digit (12345 or 12345-6789)"
        )

    for field in NUMERIC_FIELDS:
        if field in ("latitude", "longitude"):
            continue
        value = getattr(listing, field)
        if value is not None and value < 0:
            errors[field] = f"{humanize(field)} must be a non-negative number"

    if listing.year_built:
        max_year = date.today().year + 5
        if not 1600 <= listing.year_built <= max_year:
            errors["year_built"] = f"Year built must be between 1600 and {max_year}"

    if listing.latitude is not None and not -90 <= listing.latitude <= 90:
        errors["latitude"] = "Latitude must be between -90 and 90"
    if listing.longitude is not None and not -180 <= listing.longitude <= 180:
        errors["longitude"] = "Longitude must be between -180 and 180"

    if listing.exclusive_tag and len(listing.exclusive_tag) > EXCLUSIVE_TAG_MAX_LENGTH:
        errors["exclusive_tag"] = (
            f"Badge text must be {EXCLUSIVE_TAG_MAX_LENGTH} characters or less"
        )

    return errors


def validate_create(listing: ListingInput) -> None:
    errors = {
        field: f"{humanize(field)} is required"
        for field in REQUIRED_FIELDS
        if getattr(listing, field) in (None, "")
    }
    for field, message in collect_errors(listing).items():
        errors.setdefault(field, message)
    if errors:
        raise ValidationFailed(errors)


def validate_update(listing: ListingInput) -> None:
    errors = collect_errors(listing)
    if errors:
        raise ValidationFailed(errors)
