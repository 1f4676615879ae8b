"""
Tests for `repositories/memory_store.py` and the unit of work in `repositories/stores.py`.

Covers:
- Direct reads/writes and the conditional status update.
- Atomic scope: writes are invisible until commit and discarded on any exception.
- Commit detects values changed since they were read (WriteConflict).
- Relative balance adjustments commit on top of concurrent changes.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from domain.item import Item, ItemStatus
from domain.user import User
from repositories.memory_store import InMemoryMarketplaceStore
from repositories.stores import StoreError, UnitOfWork, WriteConflict


def test_add_user_assigns_sequential_ids(store: InMemoryMarketplaceStore) -> None:
    first = store.users.add_user("a")
    second = store.users.add_user("b", balance=5)

    assert (first.id, second.id) == (1, 2)
    assert store.users.get_user(2) == User(id=2, name="b", balance=5)
    assert store.users.get_user(3) is None


def test_set_balance_on_missing_user_raises(store: InMemoryMarketplaceStore) -> None:
    with pytest.raises(StoreError):
        store.users.set_balance(99, 10)


def test_set_status_is_conditional(store: InMemoryMarketplaceStore, item: Item) -> None:
    """Verify set_status applies only when the current status matches `expected`."""

    assert store.items.set_status(item.id, ItemStatus.INITIAL, ItemStatus.ON_SALE) is False
    assert store.items.get_item(item.id).status is ItemStatus.ON_SALE

    assert store.items.set_status(item.id, ItemStatus.ON_SALE, ItemStatus.SOLD_OUT) is True
    assert store.items.get_item(item.id).status is ItemStatus.SOLD_OUT

    # Second transition from ON_SALE can never apply again.
    assert store.items.set_status(item.id, ItemStatus.ON_SALE, ItemStatus.SOLD_OUT) is False
    assert store.items.set_status(999, ItemStatus.ON_SALE, ItemStatus.SOLD_OUT) is False


def test_list_on_sale_items_excludes_other_statuses(store: InMemoryMarketplaceStore, seller: User) -> None:
    draft = store.items.add_item(name="draft", price=1, seller_id=seller.id, category_id=1)
    listed = store.items.add_item(
        name="listed", price=1, seller_id=seller.id, category_id=1, status=ItemStatus.ON_SALE
    )

    on_sale = store.items.list_on_sale_items()

    assert [item.id for item in on_sale] == [listed.id]
    assert draft.id in [item.id for item in store.items.list_items_by_seller(seller.id)]


def test_list_on_sale_items_newest_update_first(store: InMemoryMarketplaceStore, seller: User) -> None:
    created_first = store.items.add_item(name="first", price=1, seller_id=seller.id, category_id=1)
    created_second = store.items.add_item(name="second", price=1, seller_id=seller.id, category_id=1)

    base = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
    store.item_rows[created_second.id] = created_second.with_status(ItemStatus.ON_SALE, updated_at=base)
    store.item_rows[created_first.id] = created_first.with_status(ItemStatus.ON_SALE, updated_at=base + timedelta(hours=1))

    assert [item.id for item in store.items.list_on_sale_items()] == [created_first.id, created_second.id]


def test_atomic_commits_all_writes_together(
    store: InMemoryMarketplaceStore, buyer: User, seller: User, item: Item
) -> None:
    """Verify writes are buffered inside the scope and applied on exit."""

    with store.atomic() as session:
        session.users.set_balance(buyer.id, 0)
        session.users.set_balance(seller.id, 20)
        assert session.items.set_status(item.id, ItemStatus.ON_SALE, ItemStatus.SOLD_OUT) is True

        # The session sees its own writes; the store does not yet.
        assert session.users.get_user(buyer.id).balance == 0
        assert session.items.get_item(item.id).status is ItemStatus.SOLD_OUT
        assert store.users.get_user(buyer.id).balance == 10
        assert store.items.get_item(item.id).status is ItemStatus.ON_SALE

    assert store.users.get_user(buyer.id).balance == 0
    assert store.users.get_user(seller.id).balance == 20
    assert store.items.get_item(item.id).status is ItemStatus.SOLD_OUT


def test_atomic_discards_writes_on_exception(
    store: InMemoryMarketplaceStore, buyer: User, item: Item
) -> None:
    with pytest.raises(RuntimeError):
        with store.atomic() as session:
            session.users.set_balance(buyer.id, 0)
            session.items.set_status(item.id, ItemStatus.ON_SALE, ItemStatus.SOLD_OUT)
            raise RuntimeError("boom")

    assert store.users.get_user(buyer.id).balance == 10
    assert store.items.get_item(item.id).status is ItemStatus.ON_SALE


def test_atomic_discards_writes_on_interrupt(store: InMemoryMarketplaceStore, buyer: User) -> None:
    """Verify cancellation-style BaseExceptions also abort the scope."""

    with pytest.raises(KeyboardInterrupt):
        with store.atomic() as session:
            session.users.set_balance(buyer.id, 3)
            raise KeyboardInterrupt

    assert store.users.get_user(buyer.id).balance == 10


def test_atomic_detects_balance_changed_since_read(
    store: InMemoryMarketplaceStore, buyer: User
) -> None:
    with pytest.raises(WriteConflict):
        with store.atomic() as session:
            user = session.users.get_user(buyer.id)
            store.users.set_balance(buyer.id, 50)  # concurrent writer
            session.users.set_balance(buyer.id, user.balance - 5)

    assert store.users.get_user(buyer.id).balance == 50


def test_atomic_detects_status_changed_since_read(
    store: InMemoryMarketplaceStore, buyer: User, item: Item
) -> None:
    """Verify the loser of a status race writes nothing, balances included."""

    with pytest.raises(WriteConflict):
        with store.atomic() as session:
            session.items.get_item(item.id)
            assert store.items.set_status(item.id, ItemStatus.ON_SALE, ItemStatus.SOLD_OUT)
            session.users.set_balance(buyer.id, 0)
            session.items.set_status(item.id, ItemStatus.ON_SALE, ItemStatus.SOLD_OUT)

    assert store.users.get_user(buyer.id).balance == 10


def test_atomic_read_only_scope_never_conflicts(store: InMemoryMarketplaceStore, buyer: User) -> None:
    with store.atomic() as session:
        session.users.get_user(buyer.id)
        store.users.set_balance(buyer.id, 1)

    assert store.users.get_user(buyer.id).balance == 1


def test_session_rejects_negative_balance_and_missing_user(
    store: InMemoryMarketplaceStore, buyer: User
) -> None:
    with store.atomic() as session:
        with pytest.raises(ValueError):
            session.users.set_balance(buyer.id, -1)
        with pytest.raises(StoreError):
            session.users.set_balance(404, 1)


def test_session_cannot_be_used_after_commit(store: InMemoryMarketplaceStore, buyer: User) -> None:
    with store.atomic() as session:
        pass

    with pytest.raises(StoreError):
        session.users.get_user(buyer.id)


def test_balance_adjustments_apply_on_top_of_concurrent_changes(
    store: InMemoryMarketplaceStore, seller: User
) -> None:
    """Two credits to one user, both read before either commits, both land."""

    with store.atomic() as first:
        first.users.get_user(seller.id)
        with store.atomic() as second:
            second.users.get_user(seller.id)
            second.users.adjust_balance(seller.id, 5)
        first.users.adjust_balance(seller.id, 7)

    assert store.users.get_user(seller.id).balance == 10 + 5 + 7


def test_debit_that_would_overdraw_at_commit_conflicts(
    store: InMemoryMarketplaceStore, buyer: User, seller: User
) -> None:
    with pytest.raises(WriteConflict):
        with store.atomic() as session:
            session.users.adjust_balance(buyer.id, -10)
            session.users.adjust_balance(seller.id, 10)
            store.users.set_balance(buyer.id, 4)  # concurrent spend

    assert store.users.get_user(buyer.id).balance == 4
    assert store.users.get_user(seller.id).balance == 10


def test_adjust_balance_rejects_overdraw_seen_in_session(
    store: InMemoryMarketplaceStore, buyer: User
) -> None:
    with store.atomic() as session:
        with pytest.raises(ValueError):
            session.users.adjust_balance(buyer.id, -11)

    assert store.users.get_user(buyer.id).balance == 10


def test_atomic_detects_price_changed_since_read(
    store: InMemoryMarketplaceStore, buyer: User, item: Item
) -> None:
    with pytest.raises(WriteConflict):
        with store.atomic() as session:
            session.items.get_item(item.id)
            store.items.update_item(item.id, name="chair", price=20, category_id=3, description="")
            session.items.set_status(item.id, ItemStatus.ON_SALE, ItemStatus.SOLD_OUT)
            session.users.adjust_balance(buyer.id, -10)

    assert store.items.get_item(item.id).status is ItemStatus.ON_SALE
    assert store.users.get_user(buyer.id).balance == 10


def test_update_item_changes_listing_fields(store: InMemoryMarketplaceStore, item: Item) -> None:
    updated = store.items.update_item(
        item.id, name="armchair", price=15, category_id=2, description="velvet"
    )

    assert updated is not None
    assert (updated.name, updated.price, updated.category_id, updated.description) == (
        "armchair",
        15,
        2,
        "velvet",
    )
    assert updated.status is ItemStatus.ON_SALE
    assert store.items.get_item(item.id) == updated


def test_update_item_refuses_sold_out_and_missing_items(store: InMemoryMarketplaceStore, item: Item) -> None:
    store.items.set_status(item.id, ItemStatus.ON_SALE, ItemStatus.SOLD_OUT)

    assert store.items.update_item(item.id, name="x", price=1, category_id=1, description="") is None
    assert store.items.update_item(404, name="x", price=1, category_id=1, description="") is None
    assert store.items.get_item(item.id).price == 10


def test_unit_of_work_backend_must_implement_all_hooks() -> None:
    class ReadOnlyUnitOfWork(UnitOfWork):
        def _fetch_user(self, user_id):
            return None

        def _fetch_item(self, item_id):
            return None

    with pytest.raises(TypeError):
        ReadOnlyUnitOfWork()  # type: ignore[abstract]
