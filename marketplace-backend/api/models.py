"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from domain.item import ItemStatus
from services.listing_service import ItemDetail


# ============================================================================
# User Models
# ============================================================================

class RegisterUserRequest(BaseModel):
    """Request to register a new user."""
    name: str = Field(..., min_length=1, description="Display name")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "alice"
            }
        }


class RegisterUserResponse(BaseModel):
    id: int
    name: str


# ============================================================================
# Balance Models
# ============================================================================

class BalanceResponse(BaseModel):
    """Current balance of the authenticated user."""
    balance: int

    class Config:
        json_schema_extra = {
            "example": {
                "balance": 57
            }
        }


class AddBalanceRequest(BaseModel):
    """Top-up request. Amount in the smallest currency unit."""
    balance: int = Field(..., description="Amount to add; must be positive")

    class Config:
        json_schema_extra = {
            "example": {
                "balance": 10
            }
        }


# ============================================================================
# Item Models
# ============================================================================

class CreateItemRequest(BaseModel):
    """Request to list a new item."""
    name: str = Field(..., min_length=1)
    price: int = Field(..., ge=0, description="Price in the smallest currency unit")
    category_id: int
    description: str = ""
    on_sale: bool = Field(
        False,
        description="List immediately instead of creating a draft"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "name": "oak table",
                "price": 1200,
                "category_id": 3,
                "description": "Solid oak, seats four",
                "on_sale": True
            }
        }


class UpdateItemRequest(BaseModel):
    """Request to edit an item's listing fields. Status is changed elsewhere."""
    name: str = Field(..., min_length=1)
    price: int = Field(..., ge=0, description="Price in the smallest currency unit")
    category_id: int
    description: str = ""

    class Config:
        json_schema_extra = {
            "example": {
                "name": "oak table",
                "price": 1000,
                "category_id": 3,
                "description": "Solid oak, seats four, small scratch"
            }
        }


class ItemResponse(BaseModel):
    """Single item in API responses."""
    id: int
    name: str
    price: int
    description: str
    category_id: int
    category_name: str
    user_id: int  # seller
    status: ItemStatus
    updated_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": 1,
                "name": "oak table",
                "price": 1200,
                "description": "Solid oak, seats four",
                "category_id": 3,
                "category_name": "furniture",
                "user_id": 2,
                "status": 1,
                "updated_at": "2025-01-01T12:00:00Z"
            }
        }

    @classmethod
    def from_detail(cls, detail: ItemDetail) -> "ItemResponse":
        item = detail.item
        return cls(
            id=item.id,
            name=item.name,
            price=item.price,
            description=item.description,
            category_id=item.category_id,
            category_name=detail.category_name,
            user_id=item.seller_id,
            status=item.status,
            updated_at=item.updated_at,
        )


class ItemListResponse(BaseModel):
    items: List[ItemResponse]
    total_count: int


# ============================================================================
# Category Models
# ============================================================================

class CategoryResponse(BaseModel):
    id: int
    name: str


class CategoryListResponse(BaseModel):
    categories: List[CategoryResponse]

    class Config:
        json_schema_extra = {
            "example": {
                "categories": [
                    {"id": 1, "name": "food"},
                    {"id": 2, "name": "fashion"},
                    {"id": 3, "name": "furniture"}
                ]
            }
        }


# ============================================================================
# Purchase Models
# ============================================================================

class PurchaseResponse(BaseModel):
    """Response after a successful purchase."""
    success: bool
    item_id: int
    message: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "item_id": 1,
                "message": "Purchase completed successfully."
            }
        }


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "insufficient_balance",
                "detail": "Balance 10 is less than price 9999",
                "status_code": 412
            }
        }
