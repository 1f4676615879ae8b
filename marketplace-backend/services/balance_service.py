"""
Balance service: reading and topping up a user's internal balance.
"""

from __future__ import annotations

import logging

from domain.balance import BalanceFailureReason, BalanceResult
from repositories.stores import MarketplaceStore, StoreError, WriteConflict

logger = logging.getLogger(__name__)


def get_balance(store: MarketplaceStore, user_id: int) -> BalanceResult:
    """
    Get the current balance of a user.

    Returns:
        BalanceResult: SUCCESS with the balance, NOT_FOUND if the user does not
        exist, INTERNAL_ERROR if the store cannot be read
    """

    try:
        user = store.users.get_user(user_id)
    except StoreError as e:
        logger.error("Balance read failed on store error: user=%d: %s", user_id, e)
        return BalanceResult.internal_error(BalanceFailureReason.STORE_ERROR, str(e))

    if user is None:
        return BalanceResult.not_found(user_id)
    return BalanceResult.succeeded(user.balance)


def add_balance(store: MarketplaceStore, user_id: int, amount: int) -> BalanceResult:
    """
    Add funds to a user's balance.

    The credit is a relative adjustment committed in one atomic scope, so a top-up
    racing with a purchase by (or from) the same user neither overwrites the
    purchase's balance change nor conflicts with it.

    Args:
        store: Marketplace store
        user_id: User to credit
        amount: Positive amount in the smallest currency unit

    Returns:
        BalanceResult:
        - SUCCESS with the balance read by the top-up plus the amount
        - INVALID_ARGUMENT if amount is not positive
        - NOT_FOUND if the user does not exist
        - INTERNAL_ERROR on store failures
    """

    if amount <= 0:
        return BalanceResult.invalid_argument(f"Top-up amount must be positive, got {amount}")

    try:
        with store.atomic() as session:
            user = session.users.get_user(user_id)
            if user is None:
                return BalanceResult.not_found(user_id)
            session.users.adjust_balance(user_id, amount)
            new_balance = user.balance + amount
    except WriteConflict as e:
        # Only possible if the user disappeared before commit.
        logger.warning("Balance top-up conflicted: user=%d amount=%d: %s", user_id, amount, e)
        return BalanceResult.internal_error(BalanceFailureReason.CONTENTION, str(e))
    except StoreError as e:
        logger.error("Balance top-up failed on store error: user=%d amount=%d: %s", user_id, amount, e)
        return BalanceResult.internal_error(BalanceFailureReason.STORE_ERROR, str(e))

    logger.info("Balance top-up completed: user=%d amount=%d new_balance=%d", user_id, amount, new_balance)
    return BalanceResult.succeeded(new_balance)


__all__ = ["get_balance", "add_balance"]
