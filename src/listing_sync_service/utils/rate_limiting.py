"""
Rate limiting configuration for the Listing Sync Service.
"""

from typing import Callable

from slowapi import Limiter
from slowapi.util import get_remote_address

from listing_sync_service.config import settings
from listing_sync_service.utils.logging_config import logger


def get_key_function() -> Callable:
    """
    Return the key function for rate limiting.

    Development uses a fixed key; other environments key on client IP.
    """
    if settings.is_development():
        logger.debug("Using development rate limiting key function")
        return lambda _: "development"
    logger.debug("Using rate limiting key function based on client IP")
    return get_remote_address


limiter = Limiter(
    key_func=get_key_function(),
    default_limits=[f"{settings.RATE_LIMIT_REQUESTS_PER_MINUTE}/minute"],
    enabled=not settings.is_testing(),
)
