"""
Item repository (persistence).

Supabase-backed persistence for Item records. No business rules live here beyond
simple persistence constraints; in particular `set_status` is a conditional update
that only matches rows still in the expected status.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.item import Item, ItemStatus
from domain.time import parse_utc_datetime, utc_now
from repositories.query import execute, rows_of
from repositories.stores import EDITABLE_STATUSES, StoreError

# Supabase table name for items.
# Keep this aligned with sql/schema.sql.
ITEMS_TABLE: str = "items"


def row_to_item(row: Mapping[str, Any]) -> Item:
    """Convert a Supabase row into an Item."""

    created_at = row.get("created_at")
    updated_at = row.get("updated_at")
    return Item(
        id=int(row["id"]),
        name=str(row["name"]),
        price=int(row["price"]),
        seller_id=int(row["seller_id"]),
        category_id=int(row["category_id"]),
        status=ItemStatus(int(row["status"])),
        description=str(row.get("description") or ""),
        created_at=parse_utc_datetime(created_at) if created_at else None,
        updated_at=parse_utc_datetime(updated_at) if updated_at else None,
    )


class SupabaseItemRepository:
    """Direct (auto-commit) access to the items table."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def get_item(self, item_id: int) -> Optional[Item]:
        response = execute(
            self._client.table(ITEMS_TABLE).select("*").eq("id", item_id).limit(1),
            "fetch item",
        )
        rows = rows_of(response)
        if not rows:
            return None
        return row_to_item(rows[0])

    def set_status(self, item_id: int, expected: ItemStatus, new: ItemStatus) -> bool:
        """
        Move an item from `expected` to `new` status.

        Requirements:
        - Must only update if status is currently `expected`.

        Returns:
            True if a row was updated, False if the item is missing or its status
            had already changed.
        """

        response = execute(
            self._client.table(ITEMS_TABLE)
            .update({"status": int(new), "updated_at": utc_now().isoformat()})
            .eq("id", item_id)
            .eq("status", int(expected)),
            "update item status",
        )
        return bool(rows_of(response))

    def add_item(
        self,
        *,
        name: str,
        price: int,
        seller_id: int,
        category_id: int,
        description: str = "",
        status: ItemStatus = ItemStatus.INITIAL,
    ) -> Item:
        now = utc_now().isoformat()
        payload: dict[str, Any] = {
            "name": name,
            "price": price,
            "description": description,
            "category_id": category_id,
            "seller_id": seller_id,
            "status": int(status),
            "created_at": now,
            "updated_at": now,
        }

        response = execute(self._client.table(ITEMS_TABLE).insert(payload), "create item")
        rows = rows_of(response)
        if not rows:
            raise StoreError("Failed to create item: no row returned")
        return row_to_item(rows[0])

    def update_item(
        self,
        item_id: int,
        *,
        name: str,
        price: int,
        category_id: int,
        description: str,
    ) -> Optional[Item]:
        """
        Edit an item's listing fields.

        Requirements:
        - Must only update while the item is still a draft or on sale.

        Returns:
            The updated Item, or None if the item is missing or already sold out.
        """

        payload: dict[str, Any] = {
            "name": name,
            "price": price,
            "category_id": category_id,
            "description": description,
            "updated_at": utc_now().isoformat(),
        }
        response = execute(
            self._client.table(ITEMS_TABLE)
            .update(payload)
            .eq("id", item_id)
            .in_("status", sorted(int(status) for status in EDITABLE_STATUSES)),
            "update item",
        )
        rows = rows_of(response)
        if not rows:
            return None
        return row_to_item(rows[0])

    def list_on_sale_items(self) -> List[Item]:
        """
        Fetch all items currently on sale, most recently updated first.

        Returns:
            List[Item] (possibly empty)
        """

        response = execute(
            self._client.table(ITEMS_TABLE)
            .select("*")
            .eq("status", int(ItemStatus.ON_SALE))
            .order("updated_at", desc=True),
            "list items on sale",
        )
        return [row_to_item(row) for row in rows_of(response)]

    def list_items_by_seller(self, seller_id: int) -> List[Item]:
        response = execute(
            self._client.table(ITEMS_TABLE).select("*").eq("seller_id", seller_id).order("id"),
            "list items by seller",
        )
        return [row_to_item(row) for row in rows_of(response)]


__all__ = ["ITEMS_TABLE", "row_to_item", "SupabaseItemRepository"]
