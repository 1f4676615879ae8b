"""
Tests for `domain/item.py`.

Covers:
- Price is never negative.
- Timestamps, when set, must be UTC.
- Status codes match the stored integer encoding.
- Status changes return new instances.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from domain.item import Item, ItemStatus


def _item(**overrides) -> Item:
    fields = dict(id=1, name="chair", price=10, seller_id=2, category_id=3)
    fields.update(overrides)
    return Item(**fields)


def test_item_status_codes_match_storage_encoding() -> None:
    assert int(ItemStatus.INITIAL) == 0
    assert int(ItemStatus.ON_SALE) == 1
    assert int(ItemStatus.SOLD_OUT) == 2
    assert ItemStatus(1) is ItemStatus.ON_SALE


def test_item_defaults_to_initial_status() -> None:
    item = _item()

    assert item.status is ItemStatus.INITIAL
    assert item.is_on_sale is False


def test_item_rejects_negative_price() -> None:
    with pytest.raises(ValueError):
        _item(price=-1)


def test_item_allows_zero_price() -> None:
    assert _item(price=0).price == 0


def test_item_requires_utc_timestamps() -> None:
    """Verify created_at / updated_at reject naive and non-UTC values."""

    with pytest.raises(ValueError):
        _item(created_at=datetime(2025, 1, 1, 0, 0, 0))

    with pytest.raises(ValueError):
        _item(updated_at=datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone(timedelta(hours=9))))


def test_item_with_status_returns_new_instance() -> None:
    """Verify status transitions do not mutate the original item."""

    created = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
    updated = datetime(2025, 1, 2, 0, 0, 0, tzinfo=timezone.utc)
    item = _item(status=ItemStatus.ON_SALE, created_at=created, updated_at=created)

    sold = item.with_status(ItemStatus.SOLD_OUT, updated_at=updated)

    assert sold is not item
    assert item.status is ItemStatus.ON_SALE
    assert item.updated_at == created
    assert sold.status is ItemStatus.SOLD_OUT
    assert sold.updated_at == updated
    assert sold.created_at == created


def test_item_is_sold_by() -> None:
    item = _item(seller_id=2)

    assert item.is_sold_by(2) is True
    assert item.is_sold_by(1) is False
