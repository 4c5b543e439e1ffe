import itertools
from datetime import datetime, timedelta, timezone

import pytest

from smartleader import crud
from smartleader.auth import Identity
from smartleader.cache import cache
from smartleader.db import MemoryStore


@pytest.fixture
def db():
    return MemoryStore()


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def ticking_clock(monkeypatch):
    """Give every write a distinct, increasing timestamp."""
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ticks = itertools.count()
    monkeypatch.setattr(crud, "utcnow", lambda: start + timedelta(seconds=next(ticks)))


@pytest.fixture
def admin():
    return Identity(uid="admin-1", email="admin@smartleader.com", claims={"role": "admin"})


@pytest.fixture
def visitor():
    return Identity(uid="user-1", email="someone@example.com", claims={})


def _image(index, size):
    prefix = f"data:image/jpeg;base64,{index:03d}"
    return prefix + "A" * (size - len(prefix))


@pytest.fixture
def make_images():
    def factory(count, size=1000):
        return [_image(i, size) for i in range(count)]
    return factory


@pytest.fixture
def listing_data():
    def factory(**overrides):
        data = {
            "title": "Nile View Residence",
            "description": "Apartments overlooking the river",
            "long_description": "Three towers with shared amenities.",
            "location": "Maadi, Cairo",
            "price": "From 2,500,000 EGP",
            "area": "120-240 sqm",
            "completion_date": "2026",
            "status": "Available",
            "specifications": {"bedrooms": "2-4", "bathrooms": "2-3", "parking": "1", "floor": "1-12", "type": "Apartment"},
            "features": ["Pool", "Gym"],
            "images": [],
        }
        data.update(overrides)
        return data
    return factory
