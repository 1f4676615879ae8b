"""
Balance API Endpoints.

Endpoints for reading and topping up the caller's balance.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_current_user_id, get_store
from api.models import AddBalanceRequest, BalanceResponse, ErrorResponse
from domain.balance import BalanceOutcome, BalanceResult
from repositories.stores import MarketplaceStore
from services.balance_service import add_balance, get_balance

router = APIRouter()

_STATUS_BY_OUTCOME = {
    BalanceOutcome.SUCCESS: 200,
    BalanceOutcome.NOT_FOUND: 412,
    BalanceOutcome.INVALID_ARGUMENT: 400,
    BalanceOutcome.INTERNAL_ERROR: 500,
}

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    412: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _to_response(result: BalanceResult) -> BalanceResponse:
    status_code = _STATUS_BY_OUTCOME[result.outcome]
    if not result.success or result.balance is None:
        raise HTTPException(
            status_code=status_code,
            detail=ErrorResponse(
                error=result.reason.value if result.reason else result.outcome.value,
                detail=result.message,
                status_code=status_code,
            ).model_dump(),
        )
    return BalanceResponse(balance=result.balance)


@router.get(
    "/balance",
    response_model=BalanceResponse,
    responses=_ERROR_RESPONSES,
    summary="Get Balance",
)
def read_balance(
    user_id: int = Depends(get_current_user_id),
    store: MarketplaceStore = Depends(get_store),
):
    """
    Get the caller's balance.

    Returns 412 if the caller is not a registered user.
    """
    return _to_response(get_balance(store, user_id))


@router.post(
    "/balance",
    response_model=BalanceResponse,
    responses=_ERROR_RESPONSES,
    summary="Add Balance",
)
def top_up_balance(
    request: AddBalanceRequest,
    user_id: int = Depends(get_current_user_id),
    store: MarketplaceStore = Depends(get_store),
):
    """
    Add funds to the caller's balance.

    **Status codes:**
    - 200: credited, body carries the new balance
    - 400: amount is zero or negative (`invalid_amount`)
    - 401: missing or invalid caller identity
    - 412: caller is not a registered user (`user`)
    - 500: store failure (`store_error`, `contention`)
    """
    return _to_response(add_balance(store, user_id, request.balance))
