"""
Domain: Purchase attempts and their outcomes.

A purchase attempt is an ephemeral (buyer_id, item_id) pair. It is never
persisted; it either produces committed balance/status changes or is discarded.

Every outcome carries a stable reason so callers can branch on the cause without
parsing messages.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PurchaseOutcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    PRECONDITION_FAILED = "precondition_failed"
    INTERNAL_ERROR = "internal_error"


class FailureReason(str, Enum):
    # NOT_FOUND
    BUYER_NOT_FOUND = "buyer"
    ITEM_NOT_FOUND = "item"

    # PRECONDITION_FAILED
    ITEM_NOT_ON_SALE = "item_not_on_sale"
    SELF_PURCHASE = "self_purchase"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    SELLER_NOT_FOUND = "seller_not_found"

    # INTERNAL_ERROR
    STORE_ERROR = "store_error"
    CONTENTION = "contention"
    COMMIT_OUTCOME_UNKNOWN = "commit_outcome_unknown"


@dataclass(frozen=True, slots=True)
class PurchaseAttempt:
    """Request to buy one item with the buyer's internal balance."""

    buyer_id: int
    item_id: int


@dataclass(frozen=True, slots=True)
class PurchaseResult:
    """
    Result of a purchase attempt.

    outcome: one of SUCCESS, NOT_FOUND, PRECONDITION_FAILED, INTERNAL_ERROR
    reason: cause of a failure (None on success)
    message: human readable detail for logs and responses
    """

    outcome: PurchaseOutcome
    reason: Optional[FailureReason] = None
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome is PurchaseOutcome.SUCCESS

    @staticmethod
    def succeeded() -> "PurchaseResult":
        return PurchaseResult(outcome=PurchaseOutcome.SUCCESS)

    @staticmethod
    def not_found(reason: FailureReason, message: str) -> "PurchaseResult":
        return PurchaseResult(outcome=PurchaseOutcome.NOT_FOUND, reason=reason, message=message)

    @staticmethod
    def precondition_failed(reason: FailureReason, message: str) -> "PurchaseResult":
        return PurchaseResult(outcome=PurchaseOutcome.PRECONDITION_FAILED, reason=reason, message=message)

    @staticmethod
    def internal_error(reason: FailureReason, message: str) -> "PurchaseResult":
        return PurchaseResult(outcome=PurchaseOutcome.INTERNAL_ERROR, reason=reason, message=message)
