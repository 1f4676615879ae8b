"""
Purchase service for buying an item with the internal balance.

Handles:
- Ordered validation of buyer, item and seller
- Fund transfer and the OnSale -> SoldOut transition in one atomic commit
- Re-evaluation when a concurrent writer changed what this purchase read
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Union

from domain.item import Item, ItemStatus
from domain.purchase import FailureReason, PurchaseAttempt, PurchaseResult
from domain.user import User
from repositories.stores import (
    CommitOutcomeUnknown,
    MarketplaceStore,
    StoreError,
    StoreSession,
    WriteConflict,
)

logger = logging.getLogger(__name__)


def _parse_max_attempts(raw: str) -> int:
    attempts = int(raw)
    if attempts < 1:
        raise ValueError(f"PURCHASE_MAX_ATTEMPTS must be >= 1, got {attempts}")
    return attempts


# A conflict means nothing was written, so re-evaluating is safe. The bound only
# matters when the item keeps changing under this purchase.
DEFAULT_MAX_ATTEMPTS: int = _parse_max_attempts(os.getenv("PURCHASE_MAX_ATTEMPTS", "3"))


@dataclass(frozen=True, slots=True)
class _Transfer:
    """Validated purchase, ready to be written."""
    buyer: User
    seller: User
    item: Item


def _check_purchase(session: StoreSession, attempt: PurchaseAttempt) -> Union[_Transfer, PurchaseResult]:
    """
    Run the validation steps in order. The first failing step decides the result.

    Returns:
        _Transfer if every check passed, otherwise the failing PurchaseResult
    """

    # 1. Buyer
    buyer = session.users.get_user(attempt.buyer_id)
    if buyer is None:
        return PurchaseResult.not_found(
            FailureReason.BUYER_NOT_FOUND, f"Buyer not found: {attempt.buyer_id}"
        )

    # 2. Item
    item = session.items.get_item(attempt.item_id)
    if item is None:
        return PurchaseResult.not_found(
            FailureReason.ITEM_NOT_FOUND, f"Item not found: {attempt.item_id}"
        )

    # 3. Sale eligibility
    if not item.is_on_sale:
        return PurchaseResult.precondition_failed(
            FailureReason.ITEM_NOT_ON_SALE,
            f"Item {item.id} is not on sale (status: {item.status.name})",
        )

    # 4. Self purchase
    if item.is_sold_by(buyer.id):
        return PurchaseResult.precondition_failed(
            FailureReason.SELF_PURCHASE, f"User {buyer.id} cannot buy their own item {item.id}"
        )

    # 5. Funds
    if not buyer.can_afford(item.price):
        return PurchaseResult.precondition_failed(
            FailureReason.INSUFFICIENT_BALANCE,
            f"Balance {buyer.balance} is less than price {item.price}",
        )

    # 6. Seller
    seller = session.users.get_user(item.seller_id)
    if seller is None:
        return PurchaseResult.precondition_failed(
            FailureReason.SELLER_NOT_FOUND,
            f"Seller {item.seller_id} of item {item.id} does not exist",
        )

    return _Transfer(buyer=buyer, seller=seller, item=item)


def _write_transfer(session: StoreSession, transfer: _Transfer) -> Optional[PurchaseResult]:
    """
    Buffer the three writes of a purchase.

    Writes only become visible when the enclosing atomic scope commits, all at once.
    The status change goes first so that a failed compare-and-swap leaves nothing
    buffered. Balances move by the price rather than being overwritten, so purchases
    from the same seller, or top-ups landing meanwhile, never conflict with this one;
    the debit still fails at commit if it would take the buyer below zero.
    """

    if not session.items.set_status(transfer.item.id, ItemStatus.ON_SALE, ItemStatus.SOLD_OUT):
        return PurchaseResult.precondition_failed(
            FailureReason.ITEM_NOT_ON_SALE, f"Item {transfer.item.id} is not on sale"
        )
    session.users.adjust_balance(transfer.buyer.id, -transfer.item.price)
    session.users.adjust_balance(transfer.seller.id, transfer.item.price)
    return None


def execute_purchase(
    store: MarketplaceStore,
    buyer_id: int,
    item_id: int,
    *,
    max_attempts: Optional[int] = None,
) -> PurchaseResult:
    """
    Buy an item with the buyer's balance.

    Process:
    1. Look up the buyer (NOT_FOUND if missing)
    2. Look up the item (NOT_FOUND if missing)
    3. Require the item to be ON_SALE
    4. Reject buying one's own item
    5. Require balance >= price
    6. Look up the seller (PRECONDITION_FAILED if missing: dangling seller_id)
    7. Commit buyer debit, seller credit and ON_SALE -> SOLD_OUT atomically

    If the commit finds that the item's status or price changed since it was read,
    or that the debit would now overdraw the buyer, nothing is written and the
    purchase is evaluated again from step 1. The loser of a race for the same item
    therefore ends with ITEM_NOT_ON_SALE. Purchases of different items from one
    seller do not conflict with each other.

    Store failures return INTERNAL_ERROR and are never retried here: the caller
    decides whether to retry.

    Args:
        store: Marketplace store providing the users/items and the atomic scope
        buyer_id: Authenticated buyer identity
        item_id: Item to buy
        max_attempts: Evaluations allowed under write conflicts (default from
            PURCHASE_MAX_ATTEMPTS), at least 1

    Returns:
        PurchaseResult

    Raises:
        ValueError: if max_attempts is below 1

    Example:
        result = execute_purchase(store, buyer_id=1, item_id=42)
        if result.success:
            print("Purchased")
        else:
            print(f"Purchase failed: {result.reason}")
    """

    attempt = PurchaseAttempt(buyer_id=buyer_id, item_id=item_id)
    attempts_allowed = max_attempts if max_attempts is not None else DEFAULT_MAX_ATTEMPTS
    if attempts_allowed < 1:
        raise ValueError(f"max_attempts must be >= 1, got {attempts_allowed}")

    for attempt_number in range(1, attempts_allowed + 1):
        transfer: Optional[_Transfer] = None
        try:
            with store.atomic() as session:
                checked = _check_purchase(session, attempt)
                if isinstance(checked, PurchaseResult):
                    logger.info(
                        "Purchase rejected: buyer=%d item=%d reason=%s",
                        buyer_id,
                        item_id,
                        checked.reason.value if checked.reason else None,
                    )
                    return checked

                transfer = checked
                rejected = _write_transfer(session, transfer)
                if rejected is not None:
                    return rejected

        except WriteConflict as e:
            logger.warning(
                "Purchase conflict: buyer=%d item=%d attempt=%d/%d: %s",
                buyer_id,
                item_id,
                attempt_number,
                attempts_allowed,
                e,
            )
            continue

        except CommitOutcomeUnknown as e:
            price = transfer.item.price if transfer else None
            seller_id = transfer.seller.id if transfer else None
            logger.critical(
                "Purchase commit outcome unknown, reconciliation required: "
                "buyer=%d seller=%s item=%d price=%s: %s",
                buyer_id,
                seller_id,
                item_id,
                price,
                e,
            )
            return PurchaseResult.internal_error(FailureReason.COMMIT_OUTCOME_UNKNOWN, str(e))

        except StoreError as e:
            logger.error("Purchase failed on store error: buyer=%d item=%d: %s", buyer_id, item_id, e)
            return PurchaseResult.internal_error(FailureReason.STORE_ERROR, str(e))

        logger.info(
            "Purchase completed: buyer=%d seller=%d item=%d price=%d",
            buyer_id,
            transfer.seller.id,
            item_id,
            transfer.item.price,
        )
        return PurchaseResult.succeeded()

    logger.error(
        "Purchase abandoned after %d conflicting attempts: buyer=%d item=%d",
        attempts_allowed,
        buyer_id,
        item_id,
    )
    return PurchaseResult.internal_error(
        FailureReason.CONTENTION, f"Purchase kept conflicting after {attempts_allowed} attempts"
    )


__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "execute_purchase",
]
