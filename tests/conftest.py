"""
Main conftest file. Loads the test environment before the service package is
imported, then re-exports the fixtures from the modular fixture files.
"""

import os

from dotenv import load_dotenv

dotenv_path = os.path.join(os.path.dirname(__file__), "..", ".env.test")
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path=dotenv_path, override=True)
else:
    os.environ.setdefault("LISTING_SYNC_SERVICE_ENVIRONMENT", "testing")
    os.environ.setdefault("LISTING_SYNC_SERVICE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    os.environ.setdefault("LISTING_SYNC_SERVICE_SITE_URL", "https://listings.test")

from tests.fixtures.db import *  # noqa: E402,F401,F403
from tests.fixtures.client import *  # noqa: E402,F401,F403
from tests.fixtures.helpers import *  # noqa: E402,F401,F403
from tests.fixtures.mocks import *  # noqa: E402,F401,F403
