"""
Shared FastAPI dependencies.

- get_store: the process-wide marketplace store selected by MARKETPLACE_STORE
- get_current_user_id: the caller identity forwarded by the upstream authenticator
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException

from repositories.memory_store import InMemoryMarketplaceStore
from repositories.stores import MarketplaceStore

# Header set by the authenticating gateway in front of this service.
USER_ID_HEADER: str = "X-User-Id"


@lru_cache(maxsize=1)
def get_store() -> MarketplaceStore:
    """
    Build the marketplace store once per process.

    MARKETPLACE_STORE:
    - memory (default): in-process store, data is lost on restart
    - supabase: Supabase project from SUPABASE_URL / SUPABASE_KEY
    """

    backend = os.getenv("MARKETPLACE_STORE", "memory").strip().lower()

    if backend == "memory":
        return InMemoryMarketplaceStore()

    if backend == "supabase":
        from repositories.client import get_supabase
        from repositories.supabase_store import SupabaseMarketplaceStore

        return SupabaseMarketplaceStore(get_supabase())

    raise RuntimeError(
        f"Unsupported MARKETPLACE_STORE: {backend!r}. Use 'memory' or 'supabase'."
    )


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> int:
    """
    Resolve the authenticated user id.

    A missing, non-numeric or negative identity is answered with 401, including the
    negative case that is arguably a 400; existing clients rely on the 401.
    """

    if x_user_id is None:
        raise HTTPException(status_code=401, detail=f"Missing {USER_ID_HEADER} header")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user id") from None
    if user_id < 0:
        raise HTTPException(status_code=401, detail="Invalid user id")
    return user_id
