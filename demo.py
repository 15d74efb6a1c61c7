#!/usr/bin/env python
import asyncio
import os

from sdk.inventory import InventoryClient


async def hammer_stock(c: InventoryClient, product_id: str, rounds: int = 20):
    # equal numbers of +1 and -1, so the stock must come back to where it started
    deltas = [1, -1] * rounds
    responses = await asyncio.gather(*(c.adjust_stock_async(product_id, d) for d in deltas))
    return [r.status_code for r in responses]


def main():
    c = InventoryClient(base_url=os.getenv("INVENTORY_URL", "http://127.0.0.1:5000"))

    print("Health:", c.health())

    # -----------------------------
    # Create products
    # -----------------------------
    print("\nCreating products...")
    laptop = c.create_product("Laptop", "electronics", stock=3, price=1499.0)
    mouse = c.create_product("Mouse", "electronics", stock=10, price=19.5)
    print(laptop)
    print(mouse)

    # -----------------------------
    # Filtering
    # -----------------------------
    print("\nSearching for 'lap'...")
    print(c.list_products(q="lap"))
    print("\nProducts with 5..10 units in stock...")
    print(c.list_products(min_stock=5, max_stock=10))

    # -----------------------------
    # Stock adjustments
    # -----------------------------
    print("\nAdjusting laptop stock +5 then -100...")
    c.adjust_stock(laptop["id"], 5)
    print(c.adjust_stock(laptop["id"], -100))

    print("\nFiring concurrent +1/-1 deltas at the mouse...")
    statuses = asyncio.run(hammer_stock(c, mouse["id"]))
    print("Statuses:", sorted(set(statuses)))
    print("Final mouse stock:", c.get_product(mouse["id"])["stock"])

    # -----------------------------
    # Partial update & delete
    # -----------------------------
    print("\nMoving the mouse to 'accessories'...")
    print(c.patch_product(mouse["id"], category="accessories"))

    print("\nDeleting products...")
    print(c.delete_product(laptop["id"]))
    print(c.delete_product(mouse["id"]))


if __name__ == "__main__":
    main()
