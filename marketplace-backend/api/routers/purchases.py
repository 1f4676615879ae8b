"""
Purchases API Endpoints.

Endpoint for buying an item with the caller's internal balance.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_current_user_id, get_store
from api.models import ErrorResponse, PurchaseResponse
from domain.purchase import PurchaseOutcome, PurchaseResult
from repositories.stores import MarketplaceStore
from services.purchase_service import execute_purchase

router = APIRouter()

# NOT_FOUND and PRECONDITION_FAILED both map to 412: the request is well formed but
# the state of the marketplace does not allow it.
_STATUS_BY_OUTCOME = {
    PurchaseOutcome.SUCCESS: 200,
    PurchaseOutcome.NOT_FOUND: 412,
    PurchaseOutcome.PRECONDITION_FAILED: 412,
    PurchaseOutcome.INTERNAL_ERROR: 500,
}


def status_code_for(result: PurchaseResult) -> int:
    return _STATUS_BY_OUTCOME[result.outcome]


@router.post(
    "/purchase/{item_id}",
    response_model=PurchaseResponse,
    responses={412: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Purchase Item",
    description="Buy an on-sale item with the caller's balance."
)
def purchase_item(
    item_id: int,
    user_id: int = Depends(get_current_user_id),
    store: MarketplaceStore = Depends(get_store),
):
    """
    Buy an item.

    **Process:**
    1. Validates buyer and item exist
    2. Checks the item is on sale, is not the buyer's own, and is affordable
    3. Validates the seller exists
    4. Debits the buyer, credits the seller and marks the item sold, atomically

    **Status codes:**
    - 200: purchased
    - 401: missing or invalid caller identity
    - 412: buyer/item not found, or a business rule failed
      (`item_not_on_sale`, `self_purchase`, `insufficient_balance`, `seller_not_found`)
    - 500: store failure (`store_error`, `contention`, `commit_outcome_unknown`)

    **Failure response:**
    ```json
    {
      "detail": {
        "error": "insufficient_balance",
        "detail": "Balance 10 is less than price 9999",
        "status_code": 412
      }
    }
    ```
    """
    result = execute_purchase(store, buyer_id=user_id, item_id=item_id)
    status_code = status_code_for(result)

    if not result.success:
        raise HTTPException(
            status_code=status_code,
            detail=ErrorResponse(
                error=result.reason.value if result.reason else result.outcome.value,
                detail=result.message,
                status_code=status_code,
            ).model_dump(),
        )

    return PurchaseResponse(
        success=True,
        item_id=item_id,
        message="Purchase completed successfully."
    )
