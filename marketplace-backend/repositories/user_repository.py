"""
User repository (persistence).

Supabase-backed persistence for User records. It does not enforce business rules
(e.g., who may buy what); it only reads users, inserts them, and writes balances.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.user import User
from repositories.query import execute, rows_of
from repositories.stores import StoreError

# Supabase table name for users.
# Keep this aligned with sql/schema.sql.
USERS_TABLE: str = "users"


def row_to_user(row: Mapping[str, Any]) -> User:
    """Convert a Supabase row into a User."""

    return User(
        id=int(row["id"]),
        name=str(row["name"]),
        balance=int(row["balance"]),
    )


class SupabaseUserRepository:
    """Direct (auto-commit) access to the users table."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def get_user(self, user_id: int) -> Optional[User]:
        """
        Get a user by id.

        Returns:
            User domain model or None if not found
        """

        response = execute(
            self._client.table(USERS_TABLE).select("*").eq("id", user_id).limit(1),
            "fetch user",
        )
        rows = rows_of(response)
        if not rows:
            return None
        return row_to_user(rows[0])

    def set_balance(self, user_id: int, balance: int) -> None:
        response = execute(
            self._client.table(USERS_TABLE).update({"balance": balance}).eq("id", user_id),
            "update balance",
        )
        if not rows_of(response):
            raise StoreError(f"User not found: {user_id}")

    def add_user(self, name: str, balance: int = 0) -> User:
        """
        Insert a new user and return it with its generated id.

        The id comes back from the insert itself (PostgREST `return=representation`),
        so concurrent inserts cannot observe each other's ids.
        """

        response = execute(
            self._client.table(USERS_TABLE).insert({"name": name, "balance": balance}),
            "create user",
        )
        rows = rows_of(response)
        if not rows:
            raise StoreError("Failed to create user: no row returned")
        return row_to_user(rows[0])


__all__ = ["USERS_TABLE", "row_to_user", "SupabaseUserRepository"]
