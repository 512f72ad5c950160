"""Shared test fixtures."""

from collections import defaultdict
from unittest.mock import MagicMock

import pytest
from bson import ObjectId

from greenreceipt.analytics.cache import analytics_cache
from greenreceipt.auth.jwt_handler import JWTHandler
from greenreceipt.auth.rate_limit import get_rate_limiter

TEST_SECRET = "test-secret-key-for-testing-only"


@pytest.fixture(autouse=True)
def reset_in_process_state():
    """Rate limiter and analytics cache are process globals; isolate tests."""
    get_rate_limiter().clear()
    analytics_cache.clear()
    yield
    get_rate_limiter().clear()
    analytics_cache.clear()


@pytest.fixture
def jwt_handler():
    """Create a JWTHandler instance for testing."""
    return JWTHandler(
        secret_key=TEST_SECRET,
        refresh_secret_key=f"{TEST_SECRET}_refresh",
        algorithm="HS256",
        access_token_expire_minutes=15,
        refresh_token_expire_days=21,
    )


@pytest.fixture
def customer_id():
    return str(ObjectId())


@pytest.fixture
def merchant_id():
    return str(ObjectId())


@pytest.fixture
def bearer(jwt_handler):
    """Build an Authorization header for an account."""

    def _bearer(account_id: str, role: str) -> dict:
        token = jwt_handler.create_access_token(account_id, role)
        return {"Authorization": f"Bearer {token}"}

    return _bearer


@pytest.fixture
def mock_db():
    """A pymongo Database stand-in; each collection is a MagicMock reused by name."""
    collections: dict[str, MagicMock] = defaultdict(MagicMock)
    db = MagicMock()
    db.__getitem__.side_effect = lambda name: collections[name]
    return db
