"""
Seed a demo marketplace in Supabase for testing and demos.

Creates:
- A buyer with balance 10
- A seller with balance 10
- An on-sale item priced 10, owned by the seller

Buying that item as the buyer must leave the buyer at 0, the seller at 20 and
the item sold out.
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import from repositories
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.item import ItemStatus
from repositories.client import get_supabase
from repositories.supabase_store import SupabaseMarketplaceStore
from services.listing_service import create_item


def seed_demo_marketplace():
    """Create the demo buyer, seller and item."""

    store = SupabaseMarketplaceStore(get_supabase())

    buyer = store.users.add_user("demo-buyer", balance=10)
    seller = store.users.add_user("demo-seller", balance=10)
    item = create_item(
        store,
        seller_id=seller.id,
        name="Demo chair",
        price=10,
        category_id=3,
        description="Seeded by seed_demo_marketplace.py",
        status=ItemStatus.ON_SALE,
    )

    print("[SUCCESS] Demo marketplace seeded")
    print(f"  Buyer:  id={buyer.id} balance={buyer.balance}")
    print(f"  Seller: id={seller.id} balance={seller.balance}")
    print(f"  Item:   id={item.id} price={item.price} status={item.status.name}")
    print()
    print(f"Try: curl -X POST -H 'X-User-Id: {buyer.id}' http://localhost:8000/api/v1/purchase/{item.id}")


if __name__ == "__main__":
    seed_demo_marketplace()
