"""
Listing service: users and their item listings.

Covers the flows around a purchase that are plain record keeping:
- Registering users
- Creating listings, editing them and putting them on sale
- Reading item details and browsing on-sale items
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from domain.category import get_category
from domain.item import Item, ItemStatus
from domain.user import User
from repositories.stores import MarketplaceStore

logger = logging.getLogger(__name__)

# Listing flows may create an item as a draft or list it straight away.
_CREATABLE_STATUSES = frozenset({ItemStatus.INITIAL, ItemStatus.ON_SALE})


class ListingError(Exception):
    """Raised when a listing operation violates a business rule."""


class SellerNotFoundError(ListingError):
    pass


class NotItemOwnerError(ListingError):
    pass


@dataclass(frozen=True, slots=True)
class ItemDetail:
    """Item joined with its category name, as shown to browsing users."""
    item: Item
    category_name: str


def register_user(store: MarketplaceStore, name: str) -> User:
    """Create a user with an empty balance."""

    if not name.strip():
        raise ValueError("name must not be empty")
    user = store.users.add_user(name.strip(), balance=0)
    logger.info("User registered: user=%d", user.id)
    return user


def create_item(
    store: MarketplaceStore,
    *,
    seller_id: int,
    name: str,
    price: int,
    category_id: int,
    description: str = "",
    status: ItemStatus = ItemStatus.INITIAL,
) -> Item:
    """
    Create a new listing for a seller.

    Raises:
        ValueError: on a negative price, unknown category, empty name, or a status
            other than INITIAL / ON_SALE
        SellerNotFoundError: if the seller does not exist
    """

    if not name.strip():
        raise ValueError("name must not be empty")
    if price < 0:
        raise ValueError("price must be >= 0")
    if status not in _CREATABLE_STATUSES:
        raise ValueError(f"items cannot be created with status {status.name}")
    get_category(category_id)

    if store.users.get_user(seller_id) is None:
        raise SellerNotFoundError(f"Seller not found: {seller_id}")

    item = store.items.add_item(
        name=name.strip(),
        price=price,
        seller_id=seller_id,
        category_id=category_id,
        description=description,
        status=status,
    )
    logger.info("Item created: item=%d seller=%d status=%s", item.id, seller_id, item.status.name)
    return item


def put_on_sale(store: MarketplaceStore, seller_id: int, item_id: int) -> bool:
    """
    List a draft item: INITIAL -> ON_SALE.

    Returns:
        True if the item moved to ON_SALE, False if it was no longer INITIAL

    Raises:
        LookupError: if the item does not exist
        NotItemOwnerError: if the caller is not the item's seller
    """

    item = store.items.get_item(item_id)
    if item is None:
        raise LookupError(f"Item not found: {item_id}")
    if not item.is_sold_by(seller_id):
        raise NotItemOwnerError(f"User {seller_id} does not own item {item_id}")

    applied = store.items.set_status(item_id, ItemStatus.INITIAL, ItemStatus.ON_SALE)
    if applied:
        logger.info("Item put on sale: item=%d seller=%d", item_id, seller_id)
    return applied


def update_item(
    store: MarketplaceStore,
    seller_id: int,
    item_id: int,
    *,
    name: str,
    price: int,
    category_id: int,
    description: str = "",
) -> Optional[Item]:
    """
    Edit the listing fields of an item owned by the caller.

    A purchase that validated the old price fails to commit and re-evaluates
    against the new one.

    Returns:
        The updated Item, or None if the item sold out and can no longer be edited

    Raises:
        LookupError: if the item does not exist
        NotItemOwnerError: if the caller is not the item's seller
        ValueError: on a negative price, unknown category or empty name
    """

    if not name.strip():
        raise ValueError("name must not be empty")
    if price < 0:
        raise ValueError("price must be >= 0")
    get_category(category_id)

    item = store.items.get_item(item_id)
    if item is None:
        raise LookupError(f"Item not found: {item_id}")
    if not item.is_sold_by(seller_id):
        raise NotItemOwnerError(f"User {seller_id} does not own item {item_id}")

    updated = store.items.update_item(
        item_id,
        name=name.strip(),
        price=price,
        category_id=category_id,
        description=description,
    )
    if updated is not None:
        logger.info("Item updated: item=%d seller=%d price=%d", item_id, seller_id, price)
    return updated


def get_item_detail(store: MarketplaceStore, item_id: int) -> Optional[ItemDetail]:
    item = store.items.get_item(item_id)
    if item is None:
        return None
    return ItemDetail(item=item, category_name=get_category(item.category_id).name)


def list_on_sale_items(store: MarketplaceStore) -> List[ItemDetail]:
    """Browse items on sale, most recently updated first."""

    return [
        ItemDetail(item=item, category_name=get_category(item.category_id).name)
        for item in store.items.list_on_sale_items()
    ]


def list_items_by_seller(store: MarketplaceStore, seller_id: int) -> List[ItemDetail]:
    return [
        ItemDetail(item=item, category_name=get_category(item.category_id).name)
        for item in store.items.list_items_by_seller(seller_id)
    ]


__all__ = [
    "ListingError",
    "SellerNotFoundError",
    "NotItemOwnerError",
    "ItemDetail",
    "register_user",
    "create_item",
    "put_on_sale",
    "update_item",
    "get_item_detail",
    "list_on_sale_items",
    "list_items_by_seller",
]
