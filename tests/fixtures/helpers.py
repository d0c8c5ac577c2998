"""
Helper functions for testing.
Provides listing payloads, test settings and seeding shortcuts.
"""

from typing import Any, Dict

import pytest

from listing_sync_service.config import Settings, settings
from listing_sync_service.schemas.listing import ListingInput
from listing_sync_service.services.listing_service import ListingService


def sample_listing_payload(**overrides: Any) -> Dict[str, Any]:
    """A create payload as an agent form would post it, with short aliases."""
    payload: Dict[str, Any] = {
        "property_type": "Residential",
        "property_sub_type": "Condo",
        "list_price": 450000,
        "street_number": "10",
        "street_name": "Elm St",
        "city": "Reading",
        "state": "MA",
        "zip": "01867",
        "bedrooms": 2,
        "bathrooms_full": 1,
        "bathrooms_half": 1,
    }
    payload.update(overrides)
    return payload


def make_settings(**overrides: Any) -> Settings:
    base = {
        "LOGGING_LEVEL": "WARNING",
        "SITE_URL": "https://listings.test",
        "GOOGLE_MAPS_API_KEY": None,
        "EDGE_CACHE_PURGE_URL": "https://edge.test/purge",
        "EVENT_HANDLER_TIMEOUT_SECONDS": 1.0,
        "EXTERNAL_ID_THRESHOLD": 1_000_000,
    }
    base.update(overrides)
    return settings.model_copy(update=base)


async def create_listing(service: ListingService, agent_id: str = "agent-1", **overrides: Any):
    return await service.create(
        ListingInput.model_validate(sample_listing_payload(**overrides)), agent_id=agent_id
    )


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()
