import os
from datetime import date, datetime, timezone

import pytest

os.environ.setdefault("TEST_MODE", "1")

from app.models.pydantic import Candidate, Channel, Claims, Constraints, Holiday, Item, UserEvent, VerifyContext
from app.services.catalog.in_memory_catalog import InMemoryCatalog

# liegt im 7-Tage-Fenster aller Fixture-Events (10.-14.11.2025)
NOW = datetime(2025, 11, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _test_mode(monkeypatch):
    monkeypatch.setenv("TEST_MODE", "1")


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def catalog():
    """Demo-Katalog (fixtures.py) mit fester Uhr."""
    return InMemoryCatalog(clock=lambda: NOW)


@pytest.fixture
def small_catalog():
    """Kleiner, explizit aufgebauter Katalog für gezielte Fact-Tests."""
    items = [
        Item(item_id="itm-camera", title="Camera", price=1000.0, brand="Sony", category="Cameras"),
        Item(item_id="itm-phone", title="Phone", price=800.0, brand="Apple", category="Phones"),
        Item(item_id="itm-old", title="Old", price=10.0, brand="Acme", category="Misc", is_active=False),
    ]
    events = {
        "u1": [
            UserEvent(event_type="view", item_id="itm-camera", timestamp=datetime(2025, 11, 14, 9, 0)),
            UserEvent(event_type="add_to_cart", item_id="itm-camera", timestamp=datetime(2025, 11, 14, 9, 5)),
            # außerhalb des 7-Tage-Fensters
            UserEvent(event_type="purchase", item_id="itm-phone", timestamp=datetime(2025, 11, 1, 9, 0)),
        ],
    }
    holidays = [
        Holiday(name="Black Friday", start_date=date(2025, 11, 28), end_date=date(2025, 11, 29), locale="en-US"),
    ]
    return InMemoryCatalog(
        items=items,
        user_events=events,
        holidays=holidays,
        snapshot=date(2025, 11, 15),
        clock=lambda: NOW,
    )


@pytest.fixture
def make_context():
    def _make(
        channel=Channel.PUSH,
        max_len=90,
        no_url=True,
        no_price=False,
        locale="en-US",
        user_id="u1",
        now=NOW,
    ):
        return VerifyContext(
            user_id=user_id,
            now=now,
            channel=channel,
            locale=locale,
            constraints=Constraints(max_len=max_len, no_url=no_url, no_price=no_price),
        )

    return _make


@pytest.fixture
def make_candidate():
    def _make(text, **claims):
        return Candidate(text=text, claims=Claims(**claims), model="test-model")

    return _make
