"""
Categories API Endpoints.

The category table is fixed; this endpoint lets clients build their pickers.
"""

from fastapi import APIRouter

from api.models import CategoryListResponse, CategoryResponse
from domain.category import list_categories

router = APIRouter()


@router.get(
    "/categories",
    response_model=CategoryListResponse,
    summary="List Categories",
)
def get_categories():
    """All item categories, ordered by id."""
    return CategoryListResponse(
        categories=[CategoryResponse(id=category.id, name=category.name) for category in list_categories()]
    )
