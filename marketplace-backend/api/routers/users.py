"""
Users API Endpoints.

Registration and per-seller item listings.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_store
from api.models import ItemListResponse, ItemResponse, RegisterUserRequest, RegisterUserResponse
from repositories.stores import MarketplaceStore, StoreError
from services.listing_service import list_items_by_seller, register_user

router = APIRouter()


@router.post(
    "/users",
    response_model=RegisterUserResponse,
    summary="Register User",
)
def create_user(
    request: RegisterUserRequest,
    store: MarketplaceStore = Depends(get_store),
):
    """Register a user with an empty balance."""
    try:
        user = register_user(store, request.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Failed to register user: {str(e)}")

    return RegisterUserResponse(id=user.id, name=user.name)


@router.get(
    "/users/{user_id}/items",
    response_model=ItemListResponse,
    summary="List Seller Items",
)
def get_user_items(
    user_id: int,
    store: MarketplaceStore = Depends(get_store),
):
    """All items listed by a user, in any status."""
    try:
        details = list_items_by_seller(store, user_id)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Failed to list items: {str(e)}")

    items = [ItemResponse.from_detail(detail) for detail in details]
    return ItemListResponse(items=items, total_count=len(items))
