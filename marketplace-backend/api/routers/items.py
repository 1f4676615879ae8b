"""
Items API Endpoints.

Endpoints for listing and editing items and browsing what is on sale.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_current_user_id, get_store
from api.models import CreateItemRequest, ItemListResponse, ItemResponse, UpdateItemRequest
from domain.item import ItemStatus
from repositories.stores import MarketplaceStore, StoreError
from services.listing_service import (
    NotItemOwnerError,
    SellerNotFoundError,
    create_item,
    get_item_detail,
    list_on_sale_items,
    put_on_sale,
    update_item,
)

router = APIRouter()


@router.get(
    "/items",
    response_model=ItemListResponse,
    summary="Browse Items On Sale",
)
def get_on_sale_items(store: MarketplaceStore = Depends(get_store)):
    """Items currently on sale, most recently updated first."""
    try:
        details = list_on_sale_items(store)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Failed to list items: {str(e)}")

    items = [ItemResponse.from_detail(detail) for detail in details]
    return ItemListResponse(items=items, total_count=len(items))


@router.post(
    "/items",
    response_model=ItemResponse,
    summary="Create Item",
)
def post_item(
    request: CreateItemRequest,
    user_id: int = Depends(get_current_user_id),
    store: MarketplaceStore = Depends(get_store),
):
    """
    List a new item owned by the caller.

    With `on_sale: false` (default) the item is created as a draft and must be put
    on sale with `POST /items/{item_id}/sell`.
    """
    status = ItemStatus.ON_SALE if request.on_sale else ItemStatus.INITIAL

    try:
        item = create_item(
            store,
            seller_id=user_id,
            name=request.name,
            price=request.price,
            category_id=request.category_id,
            description=request.description,
            status=status,
        )
        detail = get_item_detail(store, item.id)
    except SellerNotFoundError as e:
        raise HTTPException(status_code=412, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Failed to create item: {str(e)}")

    if detail is None:
        raise HTTPException(status_code=500, detail=f"Item {item.id} vanished after creation")

    return ItemResponse.from_detail(detail)


@router.get(
    "/items/{item_id}",
    response_model=ItemResponse,
    summary="Get Item",
)
def get_item(
    item_id: int,
    store: MarketplaceStore = Depends(get_store),
):
    """Item details including the category name."""
    try:
        detail = get_item_detail(store, item_id)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Failed to get item: {str(e)}")

    if detail is None:
        raise HTTPException(status_code=404, detail=f"Item not found: {item_id}")

    return ItemResponse.from_detail(detail)


@router.post(
    "/items/{item_id}/sell",
    response_model=ItemResponse,
    summary="Put Item On Sale",
)
def sell_item(
    item_id: int,
    user_id: int = Depends(get_current_user_id),
    store: MarketplaceStore = Depends(get_store),
):
    """
    Move a draft item to on-sale.

    Returns 403 if the caller does not own the item and 412 if the item is not a
    draft any more.
    """
    try:
        applied = put_on_sale(store, user_id, item_id)
        detail = get_item_detail(store, item_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotItemOwnerError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Failed to put item on sale: {str(e)}")

    if not applied or detail is None:
        raise HTTPException(status_code=412, detail=f"Item {item_id} is not a draft")

    return ItemResponse.from_detail(detail)


@router.put(
    "/items/{item_id}",
    response_model=ItemResponse,
    summary="Update Item",
)
def put_item(
    item_id: int,
    request: UpdateItemRequest,
    user_id: int = Depends(get_current_user_id),
    store: MarketplaceStore = Depends(get_store),
):
    """
    Edit an item's name, price, category and description.

    **Status codes:**
    - 200: updated
    - 400: unknown category or invalid field
    - 403: caller does not own the item
    - 404: item not found
    - 412: item is sold out and can no longer be edited
    """
    try:
        item = update_item(
            store,
            user_id,
            item_id,
            name=request.name,
            price=request.price,
            category_id=request.category_id,
            description=request.description,
        )
        detail = get_item_detail(store, item_id) if item is not None else None
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotItemOwnerError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Failed to update item: {str(e)}")

    if detail is None:
        raise HTTPException(status_code=412, detail=f"Item {item_id} is sold out")

    return ItemResponse.from_detail(detail)
