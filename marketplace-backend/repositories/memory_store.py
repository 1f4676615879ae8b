"""
In-memory marketplace store.

Process-local backend used for local runs and tests. Records live in plain dicts
guarded by a single lock; every direct operation and every unit-of-work commit
runs under that lock, which makes a commit's check-and-apply step atomic with
respect to all other writers in the process.

Reads inside a unit of work take the lock only for the duration of the read, so
concurrent purchases interleave freely until commit.
"""

from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Sequence

from domain.item import Item, ItemStatus
from domain.time import utc_now
from domain.user import User
from repositories.stores import (
    EDITABLE_STATUSES,
    BalanceDelta,
    BalanceExpectation,
    BalanceWrite,
    Expectation,
    ItemExpectation,
    StatusWrite,
    StoreError,
    UnitOfWork,
    Write,
    WriteConflict,
    atomic_scope,
)


class _MemoryUsers:
    def __init__(self, store: "InMemoryMarketplaceStore") -> None:
        self._store = store

    def get_user(self, user_id: int) -> Optional[User]:
        with self._store.lock:
            return self._store.user_rows.get(user_id)

    def set_balance(self, user_id: int, balance: int) -> None:
        with self._store.lock:
            user = self._store.user_rows.get(user_id)
            if user is None:
                raise StoreError(f"User not found: {user_id}")
            self._store.user_rows[user_id] = user.with_balance(balance)

    def add_user(self, name: str, balance: int = 0) -> User:
        with self._store.lock:
            user = User(id=next(self._store.user_ids), name=name, balance=balance)
            self._store.user_rows[user.id] = user
            return user


class _MemoryItems:
    def __init__(self, store: "InMemoryMarketplaceStore") -> None:
        self._store = store

    def get_item(self, item_id: int) -> Optional[Item]:
        with self._store.lock:
            return self._store.item_rows.get(item_id)

    def set_status(self, item_id: int, expected: ItemStatus, new: ItemStatus) -> bool:
        with self._store.lock:
            item = self._store.item_rows.get(item_id)
            if item is None or item.status != expected:
                return False
            self._store.item_rows[item_id] = item.with_status(new, updated_at=utc_now())
            return True

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
        now = utc_now()
        with self._store.lock:
            item = Item(
                id=next(self._store.item_ids),
                name=name,
                price=price,
                seller_id=seller_id,
                category_id=category_id,
                status=status,
                description=description,
                created_at=now,
                updated_at=now,
            )
            self._store.item_rows[item.id] = item
            return item

    def update_item(
        self,
        item_id: int,
        *,
        name: str,
        price: int,
        category_id: int,
        description: str,
    ) -> Optional[Item]:
        with self._store.lock:
            item = self._store.item_rows.get(item_id)
            if item is None or item.status not in EDITABLE_STATUSES:
                return None
            updated = replace(
                item,
                name=name,
                price=price,
                category_id=category_id,
                description=description,
                updated_at=utc_now(),
            )
            self._store.item_rows[item_id] = updated
            return updated

    def list_on_sale_items(self) -> List[Item]:
        with self._store.lock:
            items = [item for item in self._store.item_rows.values() if item.is_on_sale]
        return sorted(items, key=_updated_desc_key)

    def list_items_by_seller(self, seller_id: int) -> List[Item]:
        with self._store.lock:
            items = [item for item in self._store.item_rows.values() if item.seller_id == seller_id]
        return sorted(items, key=lambda item: item.id)


def _updated_desc_key(item: Item) -> tuple[float, int]:
    updated: Optional[datetime] = item.updated_at or item.created_at
    return (-(updated.timestamp() if updated else 0.0), -item.id)


class _MemoryUnitOfWork(UnitOfWork):
    def __init__(self, store: "InMemoryMarketplaceStore") -> None:
        super().__init__()
        self._store = store

    def _fetch_user(self, user_id: int) -> Optional[User]:
        return self._store.users.get_user(user_id)

    def _fetch_item(self, item_id: int) -> Optional[Item]:
        return self._store.items.get_item(item_id)

    def _apply(self, expectations: Sequence[Expectation], writes: Sequence[Write]) -> None:
        store = self._store
        with store.lock:
            for expectation in expectations:
                if isinstance(expectation, BalanceExpectation):
                    current = store.user_rows.get(expectation.user_id)
                    if current is None or current.balance != expectation.balance:
                        raise WriteConflict(f"Balance changed for user {expectation.user_id}")
                elif isinstance(expectation, ItemExpectation):
                    current_item = store.item_rows.get(expectation.item_id)
                    if (
                        current_item is None
                        or current_item.status != expectation.status
                        or current_item.price != expectation.price
                    ):
                        raise WriteConflict(f"Item {expectation.item_id} changed")

            for write in writes:
                if isinstance(write, BalanceDelta):
                    current = store.user_rows.get(write.user_id)
                    if current is None:
                        raise WriteConflict(f"User {write.user_id} no longer exists")
                    if current.balance + write.amount < 0:
                        raise WriteConflict(f"Balance of user {write.user_id} is too low")

            now = utc_now()
            for write in writes:
                if isinstance(write, BalanceWrite):
                    store.user_rows[write.user_id] = store.user_rows[write.user_id].with_balance(write.balance)
                elif isinstance(write, BalanceDelta):
                    user = store.user_rows[write.user_id]
                    store.user_rows[write.user_id] = user.with_balance(user.balance + write.amount)
                elif isinstance(write, StatusWrite):
                    store.item_rows[write.item_id] = store.item_rows[write.item_id].with_status(
                        write.status, updated_at=now
                    )


class InMemoryMarketplaceStore:
    """
    Marketplace store backed by process memory.

    Example:
        store = InMemoryMarketplaceStore()
        seller = store.users.add_user("seller", balance=10)
        with store.atomic() as session:
            session.users.set_balance(seller.id, 20)
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.user_rows: Dict[int, User] = {}
        self.item_rows: Dict[int, Item] = {}
        self.user_ids = itertools.count(1)
        self.item_ids = itertools.count(1)
        self.users = _MemoryUsers(self)
        self.items = _MemoryItems(self)

    @contextmanager
    def atomic(self) -> Iterator[UnitOfWork]:
        with atomic_scope(_MemoryUnitOfWork(self)) as uow:
            yield uow


__all__ = ["InMemoryMarketplaceStore"]
