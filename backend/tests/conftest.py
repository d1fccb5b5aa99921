"""
Pytest configuration and shared fixtures for the discovery engine tests.
"""
from unittest.mock import MagicMock

import pytest

from imprint.models.library import LibraryImage, StyleCategory


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

@pytest.fixture
def catalog() -> list[StyleCategory]:
    """Small style catalog in declaration order."""
    return [
        StyleCategory(id="1", name="Minimalist"),
        StyleCategory(id="2", name="Scandinavian"),
        StyleCategory(id="3", name="Japandi"),
        StyleCategory(id="4", name="Timeless Classic"),
        StyleCategory(id="5", name="Contemporary Modern"),
    ]


def make_image(index: int, styles=("1",), room_type="Living Room", is_active=True) -> LibraryImage:
    return LibraryImage(
        id=f"img-{index:03d}",
        url=f"https://cdn.example.com/library/img-{index:03d}.webp",
        room_type=room_type,
        style_categories=list(styles),
        created_at=1_700_000_000_000 + index,
        is_active=is_active,
    )


@pytest.fixture
def image_factory():
    """Build ``LibraryImage`` records with predictable ids."""
    return make_image


@pytest.fixture
def minimalist_pool() -> list[LibraryImage]:
    """Five active images tagged only Minimalist."""
    return [make_image(i, styles=("1",)) for i in range(5)]


# ============================================================================
# Fixtures: Deterministic clock and shuffle
# ============================================================================

class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 1_760_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def identity_shuffle():
    """Shuffle that keeps the pool order, so stacks are predictable."""
    return lambda images: list(images)


# ============================================================================
# Fixtures: Mock Services
# ============================================================================

@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client for storage unit tests."""
    mock_client = MagicMock()

    table = mock_client.table.return_value
    table.select.return_value.execute.return_value.data = []
    table.select.return_value.eq.return_value.execute.return_value.data = []
    table.select.return_value.order.return_value.execute.return_value.data = []
    table.insert.return_value.execute.return_value.data = [{"id": "test"}]
    table.upsert.return_value.execute.return_value.data = [{"id": "test"}]

    return mock_client


@pytest.fixture
def mock_supabase(mock_supabase_client, monkeypatch):
    """Install the mock as the storage layer's shared client."""
    from imprint.storage import supabase_client

    monkeypatch.setattr(supabase_client, "_client", mock_supabase_client)
    yield mock_supabase_client
