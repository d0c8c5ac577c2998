"""
Pure normalization and derivation helpers for listing records.

Each function returns a new ``Listing``; the input is never mutated.
"""

import math
from datetime import date
from typing import Optional

from listing_sync_service.schemas.listing import Listing

SQFT_PER_ACRE = 43560

DEFAULT_SUB_TYPE = "Single Family Residence"

# Internal sub type -> vocabulary used by the cross-system search tables
PROPERTY_SUB_TYPE_MAP = {
    "Single Family": "Single Family Residence",
    "Condo": "Condominium",
    "Townhouse": "Townhouse",
    "Multi-Family": "Multi Family",
    "Land": "Land",
    "Commercial": "Commercial",
    "Apartment": "Condominium",
    "Mobile Home": "Mobile Home",
    "Farm": "Farm",
    "Ranch": "Farm",
    "Other": "Other",
}


def normalize_bathrooms(listing: Listing) -> Listing:
    """
    Reconcile full/half/total bathroom counts.

    Full or half present (zero counts) wins and the total is recomputed.
    Otherwise a lone total is decomposed into full and half.
    """
    full, half, total = listing.bathrooms_full, listing.bathrooms_half, listing.bathrooms_total

    if full is not None or half is not None:
        full = full or 0
        half = half or 0
        total = full + half * 0.5
    elif total is not None:
        half = math.floor((total % 1) * 2)
        full = math.floor(total)
        # Snap to the half-bath grid so a second pass is a no-op
        total = full + half * 0.5
    else:
        return listing

    return listing.model_copy(
        update={"bathrooms_full": full, "bathrooms_half": half, "bathrooms_total": total}
    )


def normalize_lot_size(listing: Listing) -> Listing:
    """Square feet wins over acres when both are supplied."""
    sqft, acres = listing.lot_size_square_feet, listing.lot_size_acres

    if sqft and sqft > 0:
        acres = round(sqft / SQFT_PER_ACRE, 4)
    elif acres and acres > 0:
        acres = round(acres, 4)
        sqft = round(acres * SQFT_PER_ACRE)
    else:
        return listing

    return listing.model_copy(update={"lot_size_acres": acres, "lot_size_square_feet": sqft})


def normalize(listing: Listing) -> Listing:
    return normalize_lot_size(normalize_bathrooms(listing))


def to_external_sub_type(sub_type: Optional[str]) -> str:
    if not sub_type:
        return DEFAULT_SUB_TYPE
    return PROPERTY_SUB_TYPE_MAP.get(sub_type, sub_type)


def days_on_market(
    contract_date: Optional[date],
    today: date,
    off_market_date: Optional[date] = None,
) -> Optional[int]:
    """Days from contract date to today, or to the off-market date once set."""
    if contract_date is None:
        return None
    end = off_market_date or today
    return max(0, (end - contract_date).days)


def price_per_sqft(list_price: Optional[float], building_area: Optional[int]) -> Optional[float]:
    if not list_price or not building_area or building_area <= 0:
        return None
    return round(list_price / building_area, 2)


def build_unparsed_address(listing: Listing) -> str:
    """Single-line address: "10 Elm St #2, Reading, MA 01867"."""
    street = " ".join(
        part for part in (listing.street_number, listing.street_name) if part
    )
    if listing.unit_number:
        street = f"{street} #{listing.unit_number}"

    parts = [part for part in (street, listing.city) if part]
    state_zip = " ".join(
        part for part in (listing.state_or_province, listing.postal_code) if part
    )
    if state_zip:
        parts.append(state_zip)
    return ", ".join(parts)
