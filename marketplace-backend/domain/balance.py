"""
Domain: Balance reads and top-ups and their outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BalanceOutcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"
    INTERNAL_ERROR = "internal_error"


class BalanceFailureReason(str, Enum):
    USER_NOT_FOUND = "user"
    INVALID_AMOUNT = "invalid_amount"
    STORE_ERROR = "store_error"
    CONTENTION = "contention"


@dataclass(frozen=True, slots=True)
class BalanceResult:
    """
    Result of a balance read or top-up.

    balance: the user's balance after the operation (None on failure)
    """

    outcome: BalanceOutcome
    balance: Optional[int] = None
    reason: Optional[BalanceFailureReason] = None
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome is BalanceOutcome.SUCCESS

    @staticmethod
    def succeeded(balance: int) -> "BalanceResult":
        return BalanceResult(outcome=BalanceOutcome.SUCCESS, balance=balance)

    @staticmethod
    def not_found(user_id: int) -> "BalanceResult":
        return BalanceResult(
            outcome=BalanceOutcome.NOT_FOUND,
            reason=BalanceFailureReason.USER_NOT_FOUND,
            message=f"User not found: {user_id}",
        )

    @staticmethod
    def invalid_argument(message: str) -> "BalanceResult":
        return BalanceResult(
            outcome=BalanceOutcome.INVALID_ARGUMENT,
            reason=BalanceFailureReason.INVALID_AMOUNT,
            message=message,
        )

    @staticmethod
    def internal_error(reason: BalanceFailureReason, message: str) -> "BalanceResult":
        return BalanceResult(outcome=BalanceOutcome.INTERNAL_ERROR, reason=reason, message=message)
