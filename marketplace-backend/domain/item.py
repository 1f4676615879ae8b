"""
Domain: Items listed on the marketplace.

Status lifecycle:
- INITIAL: created but not yet listed
- ON_SALE: listed and purchasable
- SOLD_OUT: purchased; terminal

Only ON_SALE -> SOLD_OUT is performed by a purchase. INITIAL -> ON_SALE belongs to
listing management.

This module contains only pure domain entities: no I/O, no database, no frameworks.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import IntEnum
from typing import Optional

from .time import require_utc_timestamp


class ItemStatus(IntEnum):
    # Integer codes match the stored column values.
    INITIAL = 0
    ON_SALE = 1
    SOLD_OUT = 2


@dataclass(frozen=True, slots=True)
class Item:
    """
    Immutable snapshot of an item record.

    seller_id references the owning User. Timestamps are optional because an item
    may be built before it is persisted; when present they must be UTC.
    """

    id: int
    name: str
    price: int
    seller_id: int
    category_id: int
    status: ItemStatus = ItemStatus.INITIAL
    description: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValueError("price must be >= 0")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @property
    def is_on_sale(self) -> bool:
        return self.status == ItemStatus.ON_SALE

    def is_sold_by(self, user_id: int) -> bool:
        return self.seller_id == user_id

    def with_status(self, status: ItemStatus, updated_at: Optional[datetime] = None) -> "Item":
        """Return a copy with the new status (and update timestamp, if given)."""

        if updated_at is None:
            return replace(self, status=status)
        return replace(self, status=status, updated_at=updated_at)
