"""
Domain: User accounts.

A user can both sell and buy. The balance is an integer amount in the smallest
currency unit and is never negative.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class User:
    """
    Marketplace user with an internal balance.

    Immutability:
    - Balance changes produce a new instance via `with_balance`; persistence is
      responsible for storing it.
    """

    id: int
    name: str
    balance: int = 0

    def __post_init__(self) -> None:
        if self.balance < 0:
            raise ValueError("balance must be >= 0")

    def can_afford(self, price: int) -> bool:
        """Check if the balance covers the given price."""
        return self.balance >= price

    def with_balance(self, balance: int) -> "User":
        return User(id=self.id, name=self.name, balance=balance)
