"""
Pytest Fixtures for Sentinel Notifier Tests

Provides fake image stores, mock clients and test utilities.
"""

import pytest
from unittest.mock import Mock, MagicMock
from datetime import datetime, timedelta, timezone

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from notifier.context import NotificationContext
from notifier.errors import ImageNotFound
from notifier.models import IMAGE_TOKEN_ANNOTATION, Alert, Image


class FakeImageStore:
    """
    In-memory image store.

    `images` maps tokens to an Image or to an exception to raise. Unknown
    tokens raise ImageNotFound. Every lookup is recorded in `calls`.
    """

    def __init__(self, images=None):
        self.images = dict(images or {})
        self.calls = []

    def get_image(self, ctx, token):
        self.calls.append((ctx, token))
        value = self.images.get(token)
        if value is None:
            raise ImageNotFound()
        if isinstance(value, BaseException):
            raise value
        return value


def make_alert(name="alert1", token=None, **labels):
    """Create a firing alert, optionally carrying an image token."""
    annotations = {"ann1": "annv1"}
    if token is not None:
        annotations[IMAGE_TOKEN_ANNOTATION] = token
    return Alert(
        labels={"alertname": name, **labels},
        annotations=annotations,
        starts_at=datetime.now(timezone.utc) - timedelta(minutes=5),
    )


@pytest.fixture
def fake_store():
    """Create an empty fake image store."""
    return FakeImageStore()


@pytest.fixture
def sample_images():
    """Sample stored images keyed by token."""
    return {
        "tok-1": Image(token="tok-1", path="/var/lib/images/1.png"),
        "tok-2": Image(token="tok-2", url="https://images.example.com/2.png"),
        "tok-3": Image(token="tok-3", path="/var/lib/images/3.png", url="https://images.example.com/3.png"),
    }


@pytest.fixture
def mock_bq():
    """Create a mock BigQuery client."""
    client = Mock()

    client.log_audit.return_value = True
    client.query.return_value = []
    client.ensure_tables.return_value = None
    client.images_table = "images"
    client.table_id.side_effect = lambda table: f"proj.sentinel_notifier.{table}"

    return client


@pytest.fixture
def mock_logger():
    """Create a mock NotifierLogger whose children are itself."""
    logger = MagicMock()

    logger.new.return_value = logger
    logger.debug.return_value = None
    logger.info.return_value = None
    logger.warning.return_value = None
    logger.error.return_value = None

    return logger


@pytest.fixture
def test_context():
    """Create a test NotificationContext without a deadline."""
    return NotificationContext(
        request_id="test-request-123",
        receiver="discord-ops",
    )


@pytest.fixture
def alert_factory():
    """Factory for alerts, see make_alert."""
    return make_alert


@pytest.fixture
def store_factory():
    """Factory for fake image stores."""
    return FakeImageStore
