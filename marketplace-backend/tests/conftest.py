"""
Pytest configuration and shared fixtures.

This file adds the parent directory to the Python path so that tests
can import from the domain, repositories, services and api modules.
"""

import sys
from pathlib import Path

import pytest

# Add the marketplace-backend directory to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.item import Item, ItemStatus  # noqa: E402
from domain.user import User  # noqa: E402
from repositories.memory_store import InMemoryMarketplaceStore  # noqa: E402


@pytest.fixture
def store() -> InMemoryMarketplaceStore:
    return InMemoryMarketplaceStore()


@pytest.fixture
def buyer(store: InMemoryMarketplaceStore) -> User:
    """User 1, balance 10."""
    return store.users.add_user("buyer", balance=10)


@pytest.fixture
def seller(store: InMemoryMarketplaceStore, buyer: User) -> User:
    """User 2, balance 10 (created after the buyer so ids are stable)."""
    return store.users.add_user("seller", balance=10)


@pytest.fixture
def item(store: InMemoryMarketplaceStore, seller: User) -> Item:
    """On-sale item priced 10, sold by the seller."""
    return store.items.add_item(
        name="chair",
        price=10,
        seller_id=seller.id,
        category_id=3,
        status=ItemStatus.ON_SALE,
    )
