"""
Domain: Item categories.

Categories are a fixed, read-only lookup table built once at import time. Nothing
mutates it afterwards, so lookups need no locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping


@dataclass(frozen=True, slots=True)
class Category:
    id: int
    name: str


CATEGORIES: Mapping[int, Category] = MappingProxyType(
    {
        1: Category(id=1, name="food"),
        2: Category(id=2, name="fashion"),
        3: Category(id=3, name="furniture"),
    }
)


def get_category(category_id: int) -> Category:
    """
    Look up a category by id.

    Raises:
        ValueError: if the id is not in the table
    """

    category = CATEGORIES.get(category_id)
    if category is None:
        raise ValueError(f"invalid category ID: {category_id}")
    return category


def list_categories() -> List[Category]:
    return [CATEGORIES[key] for key in sorted(CATEGORIES)]
