"""
Store interfaces and the atomic unit of work.

The purchase core only sees the narrow `UserStore` / `ItemStore` interfaces. Backends
(in-memory, Supabase) implement them twice:

- directly on the store, where every write is applied immediately;
- inside `MarketplaceStore.atomic()`, a unit of work whose writes are buffered and
  applied all-or-nothing at commit.

The unit of work is optimistic. Every item read inside the scope is remembered, as
is the balance of every user whose balance is overwritten, and commit applies the
buffered writes only if none of those values changed in the meantime. Relative
balance adjustments carry no expectation: they only require the user to still exist
and the resulting balance to stay non-negative. Otherwise `WriteConflict` is raised
and nothing is applied.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import ContextManager, Dict, Iterator, List, Optional, Protocol, Sequence, TypeVar

from domain.item import Item, ItemStatus
from domain.user import User


class StoreError(RuntimeError):
    """Raised when a store cannot complete a read or write."""


class WriteConflict(StoreError):
    """Raised at commit when a value read inside the unit of work has changed."""


class CommitOutcomeUnknown(StoreError):
    """
    Raised when a commit was sent but its outcome could not be observed.

    The writes may or may not have been applied; the state needs reconciliation.
    """


# ============================================================================
# Narrow interfaces consumed by the purchase core
# ============================================================================

class UserStore(Protocol):
    def get_user(self, user_id: int) -> Optional[User]: ...

    def set_balance(self, user_id: int, balance: int) -> None: ...


class ItemStore(Protocol):
    def get_item(self, item_id: int) -> Optional[Item]: ...

    def set_status(self, item_id: int, expected: ItemStatus, new: ItemStatus) -> bool: ...


class SessionUserStore(UserStore, Protocol):
    def adjust_balance(self, user_id: int, amount: int) -> None: ...


# ============================================================================
# Full repositories used by listing and balance flows
# ============================================================================

class UserRepository(UserStore, Protocol):
    def add_user(self, name: str, balance: int = 0) -> User: ...


class ItemRepository(ItemStore, Protocol):
    def add_item(
        self,
        *,
        name: str,
        price: int,
        seller_id: int,
        category_id: int,
        description: str = "",
        status: ItemStatus = ItemStatus.INITIAL,
    ) -> Item: ...

    def update_item(
        self,
        item_id: int,
        *,
        name: str,
        price: int,
        category_id: int,
        description: str,
    ) -> Optional[Item]: ...

    def list_on_sale_items(self) -> List[Item]: ...

    def list_items_by_seller(self, seller_id: int) -> List[Item]: ...


class StoreSession(Protocol):
    users: SessionUserStore
    items: ItemStore


class MarketplaceStore(Protocol):
    users: UserRepository
    items: ItemRepository

    def atomic(self) -> ContextManager[StoreSession]: ...


# Statuses in which a seller may still edit an item.
EDITABLE_STATUSES = frozenset({ItemStatus.INITIAL, ItemStatus.ON_SALE})


# ============================================================================
# Unit of work
# ============================================================================

@dataclass(frozen=True, slots=True)
class BalanceExpectation:
    user_id: int
    balance: int


@dataclass(frozen=True, slots=True)
class ItemExpectation:
    item_id: int
    status: ItemStatus
    price: int


@dataclass(frozen=True, slots=True)
class BalanceWrite:
    user_id: int
    balance: int


@dataclass(frozen=True, slots=True)
class BalanceDelta:
    """Add `amount` (possibly negative) to the stored balance; it must stay >= 0."""
    user_id: int
    amount: int


@dataclass(frozen=True, slots=True)
class StatusWrite:
    item_id: int
    status: ItemStatus


Expectation = BalanceExpectation | ItemExpectation
Write = BalanceWrite | BalanceDelta | StatusWrite


class _SessionUsers:
    def __init__(self, uow: "UnitOfWork") -> None:
        self._uow = uow

    def get_user(self, user_id: int) -> Optional[User]:
        return self._uow.get_user(user_id)

    def set_balance(self, user_id: int, balance: int) -> None:
        self._uow.set_balance(user_id, balance)

    def adjust_balance(self, user_id: int, amount: int) -> None:
        self._uow.adjust_balance(user_id, amount)


class _SessionItems:
    def __init__(self, uow: "UnitOfWork") -> None:
        self._uow = uow

    def get_item(self, item_id: int) -> Optional[Item]:
        return self._uow.get_item(item_id)

    def set_status(self, item_id: int, expected: ItemStatus, new: ItemStatus) -> bool:
        return self._uow.set_status(item_id, expected, new)


class UnitOfWork(ABC):
    """
    Buffered, all-or-nothing set of writes against users and items.

    Backends subclass this and provide `_fetch_user`, `_fetch_item` and `_apply`.
    `_apply` must check every expectation and every balance delta and apply every
    write as one atomic step, raising `WriteConflict` if any check fails.

    A unit of work is single-use and not thread-safe; each caller opens its own.
    """

    def __init__(self) -> None:
        self.users = _SessionUsers(self)
        self.items = _SessionItems(self)
        self._users: Dict[int, Optional[User]] = {}
        self._items: Dict[int, Optional[Item]] = {}
        self._balance_reads: Dict[int, int] = {}
        self._item_reads: Dict[int, Item] = {}
        self._balance_writes: Dict[int, int] = {}
        self._balance_deltas: Dict[int, int] = {}
        self._status_writes: Dict[int, ItemStatus] = {}
        self._closed = False

    # -- backend hooks -------------------------------------------------------

    @abstractmethod
    def _fetch_user(self, user_id: int) -> Optional[User]:
        ...

    @abstractmethod
    def _fetch_item(self, item_id: int) -> Optional[Item]:
        ...

    @abstractmethod
    def _apply(self, expectations: Sequence[Expectation], writes: Sequence[Write]) -> None:
        ...

    # -- reads ---------------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        self._ensure_open()
        if user_id not in self._users:
            user = self._fetch_user(user_id)
            self._users[user_id] = user
            if user is not None:
                self._balance_reads[user_id] = user.balance
        return self._users[user_id]

    def get_item(self, item_id: int) -> Optional[Item]:
        self._ensure_open()
        if item_id not in self._items:
            item = self._fetch_item(item_id)
            self._items[item_id] = item
            if item is not None:
                self._item_reads[item_id] = item
        return self._items[item_id]

    # -- buffered writes -----------------------------------------------------

    def set_balance(self, user_id: int, balance: int) -> None:
        """Overwrite a balance. Commit fails if the balance read here has changed."""

        if balance < 0:
            raise ValueError("balance must be >= 0")
        user = self._require_user(user_id)
        self._users[user_id] = user.with_balance(balance)
        self._balance_deltas.pop(user_id, None)
        self._balance_writes[user_id] = balance

    def adjust_balance(self, user_id: int, amount: int) -> None:
        """
        Add `amount` to a balance relative to whatever is stored at commit.

        Concurrent adjustments of the same user do not conflict. Commit fails only if
        the user is gone or the stored balance would drop below zero.
        """

        user = self._require_user(user_id)
        new_balance = user.balance + amount
        if new_balance < 0:
            raise ValueError("balance must be >= 0")
        self._users[user_id] = user.with_balance(new_balance)
        if user_id in self._balance_writes:
            self._balance_writes[user_id] = new_balance
        else:
            self._balance_deltas[user_id] = self._balance_deltas.get(user_id, 0) + amount

    def set_status(self, item_id: int, expected: ItemStatus, new: ItemStatus) -> bool:
        """
        Buffer a conditional status change.

        Returns False (and buffers nothing) when the item is missing or its status,
        as seen by this unit of work, is not `expected`. The final check against
        the stored value happens at commit.
        """

        item = self.get_item(item_id)
        if item is None or item.status != expected:
            return False
        self._items[item_id] = item.with_status(new)
        self._status_writes[item_id] = new
        return True

    def _require_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        if user is None:
            raise StoreError(f"User not found: {user_id}")
        return user

    # -- commit --------------------------------------------------------------

    @property
    def has_writes(self) -> bool:
        return bool(self._balance_writes or self._balance_deltas or self._status_writes)

    def commit(self) -> None:
        self._ensure_open()
        self._closed = True
        if not self.has_writes:
            return

        # Users then items, each by id, so backends that lock rows always lock in the same order.
        expectations: List[Expectation] = [
            BalanceExpectation(user_id=user_id, balance=self._balance_reads[user_id])
            for user_id in sorted(self._balance_writes)
        ]
        expectations.extend(
            ItemExpectation(item_id=item_id, status=item.status, price=item.price)
            for item_id, item in sorted(self._item_reads.items())
        )

        writes: List[Write] = []
        for user_id in sorted(self._balance_writes.keys() | self._balance_deltas.keys()):
            if user_id in self._balance_writes:
                writes.append(BalanceWrite(user_id=user_id, balance=self._balance_writes[user_id]))
            elif self._balance_deltas[user_id]:
                writes.append(BalanceDelta(user_id=user_id, amount=self._balance_deltas[user_id]))
        writes.extend(
            StatusWrite(item_id=item_id, status=status)
            for item_id, status in sorted(self._status_writes.items())
        )
        self._apply(expectations, writes)

    def rollback(self) -> None:
        self._closed = True
        self._balance_writes.clear()
        self._balance_deltas.clear()
        self._status_writes.clear()

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreError("Unit of work is already closed")


_U = TypeVar("_U", bound=UnitOfWork)


@contextmanager
def atomic_scope(uow: _U) -> Iterator[_U]:
    """
    Run a unit of work as a context: commit on clean exit, discard on any exception.

    BaseException is caught so that interrupts and cancellations also discard the
    buffered writes.
    """

    try:
        yield uow
    except BaseException:
        uow.rollback()
        raise
    uow.commit()


__all__ = [
    "StoreError",
    "WriteConflict",
    "CommitOutcomeUnknown",
    "UserStore",
    "ItemStore",
    "SessionUserStore",
    "UserRepository",
    "ItemRepository",
    "StoreSession",
    "MarketplaceStore",
    "EDITABLE_STATUSES",
    "BalanceExpectation",
    "ItemExpectation",
    "BalanceWrite",
    "BalanceDelta",
    "StatusWrite",
    "Expectation",
    "Write",
    "UnitOfWork",
    "atomic_scope",
]
