"""
Supabase-backed marketplace store.

Direct operations go through the table repositories. A unit of work reads through
the same repositories and commits with one call to the PostgreSQL function
`commit_marketplace_writes()` (see sql/schema.sql), which:
- Locks every touched row (FOR UPDATE), users then items, each by id
- Checks that overwritten balances and item status and price still hold the values
  read by the unit of work, and that no balance delta would go negative
- Applies all balance and status writes
All in a single database transaction.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence

import httpx
from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.item import Item
from domain.user import User
from repositories.item_repository import SupabaseItemRepository
from repositories.stores import (
    BalanceDelta,
    BalanceExpectation,
    BalanceWrite,
    CommitOutcomeUnknown,
    Expectation,
    ItemExpectation,
    StatusWrite,
    StoreError,
    UnitOfWork,
    Write,
    WriteConflict,
    atomic_scope,
)
from repositories.user_repository import SupabaseUserRepository

COMMIT_FUNCTION: str = "commit_marketplace_writes"

# Transport failures raised before the request reached the server.
_NOT_SENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout)


def _expectation_payload(expectation: Expectation) -> Dict[str, Any]:
    if isinstance(expectation, BalanceExpectation):
        return {"table": "users", "id": expectation.user_id, "balance": expectation.balance}
    if isinstance(expectation, ItemExpectation):
        return {
            "table": "items",
            "id": expectation.item_id,
            "status": int(expectation.status),
            "price": expectation.price,
        }
    raise TypeError(f"Unsupported expectation: {expectation!r}")


def _write_payload(write: Write) -> Dict[str, Any]:
    if isinstance(write, BalanceWrite):
        return {"table": "users", "id": write.user_id, "balance": write.balance}
    if isinstance(write, BalanceDelta):
        return {"table": "users", "id": write.user_id, "delta": write.amount}
    if isinstance(write, StatusWrite):
        return {"table": "items", "id": write.item_id, "status": int(write.status)}
    raise TypeError(f"Unsupported write: {write!r}")


def _commit_result(data: Any) -> Mapping[str, Any]:
    """Normalize the JSON object returned by the commit function."""

    if isinstance(data, list):
        data = data[0] if data else {}
    if not isinstance(data, Mapping):
        raise StoreError(f"Unexpected response from {COMMIT_FUNCTION}: {data!r}")
    return data


class _SupabaseUnitOfWork(UnitOfWork):
    def __init__(self, store: "SupabaseMarketplaceStore") -> None:
        super().__init__()
        self._store = store

    def _fetch_user(self, user_id: int) -> Optional[User]:
        return self._store.users.get_user(user_id)

    def _fetch_item(self, item_id: int) -> Optional[Item]:
        return self._store.items.get_item(item_id)

    def _apply(self, expectations: Sequence[Expectation], writes: Sequence[Write]) -> None:
        params = {
            "p_expectations": [_expectation_payload(e) for e in expectations],
            "p_writes": [_write_payload(w) for w in writes],
        }

        try:
            response = self._store.client.rpc(COMMIT_FUNCTION, params).execute()
            result = _commit_result(getattr(response, "data", None))
        except APIError as e:
            # Some supabase-py versions raise APIError for any JSON object returned by
            # an RPC function, successful or not. The payload is still in the error.
            error_data = e.json() if callable(getattr(e, "json", None)) else {}
            details = error_data.get("details") if isinstance(error_data, Mapping) else None
            if isinstance(details, Mapping) and "success" in details:
                result = details
            elif isinstance(error_data, Mapping) and "success" in error_data:
                result = error_data
            else:
                raise StoreError(f"Failed to commit writes: {e.message or e}") from e
        except _NOT_SENT_ERRORS as e:
            raise StoreError(f"Failed to commit writes: {e}") from e
        except httpx.TransportError as e:
            raise CommitOutcomeUnknown(f"Commit sent but no response received: {e}") from e

        if result.get("success") is True:
            return

        error_code = result.get("error")
        message = result.get("message") or "commit rejected"
        if error_code == "CONFLICT":
            raise WriteConflict(str(message))
        raise StoreError(f"Failed to commit writes: {error_code}: {message}")


class SupabaseMarketplaceStore:
    """
    Marketplace store persisted in Supabase (PostgreSQL).

    Example:
        store = SupabaseMarketplaceStore(get_supabase())
        with store.atomic() as session:
            buyer = session.users.get_user(1)
    """

    def __init__(self, client: Client) -> None:
        self.client = client
        self.users = SupabaseUserRepository(client)
        self.items = SupabaseItemRepository(client)

    @contextmanager
    def atomic(self) -> Iterator[UnitOfWork]:
        with atomic_scope(_SupabaseUnitOfWork(self)) as uow:
            yield uow


__all__ = ["COMMIT_FUNCTION", "SupabaseMarketplaceStore"]
