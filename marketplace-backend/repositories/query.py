"""
Helpers for running PostgREST queries built with supabase-py.

Every Supabase call in the repositories goes through `execute()`, which turns
client-library failures into `StoreError` so callers only deal with one error type.
"""

from __future__ import annotations

from typing import Any, List, Mapping

import httpx
from postgrest.exceptions import APIError

from repositories.stores import StoreError


def execute(query: Any, action: str) -> Any:
    """
    Execute a PostgREST request builder and return its response.

    Args:
        query: Any supabase-py builder with an `execute()` method
        action: Short description used in the error message ("fetch user")

    Raises:
        StoreError: on API errors, transport errors or an `error` on the response
    """

    try:
        response = query.execute()
    except APIError as e:
        raise StoreError(f"Failed to {action}: {e.message or e}") from e
    except httpx.HTTPError as e:
        raise StoreError(f"Failed to {action}: {e}") from e

    error = getattr(response, "error", None)
    if error:
        raise StoreError(f"Failed to {action}: {error}")

    return response


def rows_of(response: Any) -> List[Mapping[str, Any]]:
    return getattr(response, "data", None) or []


__all__ = ["execute", "rows_of"]
