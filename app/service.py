# app/service.py
import logging
from typing import List, Optional

from .core import (
    ProductIn,
    ProductPatchIn,
    StockDeltaIn,
    build_filter,
    validate_create,
    validate_delta,
    validate_patch,
    validate_replace,
)
from .database import ProductStore
from .errors import NotFound
from .models import Product

logger = logging.getLogger(__name__)


class ProductService:
    """Request-scoped product operations over a shared store.

    Input is validated before the store is touched; each operation then issues
    exactly one store call.
    """

    def __init__(self, store: ProductStore):
        self.store = store

    async def list_products(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        min_stock: Optional[str] = None,
        max_stock: Optional[str] = None,
    ) -> List[Product]:
        return await self.store.query(build_filter(q, category, min_stock, max_stock))

    async def get_product(self, product_id: str) -> Product:
        return await self.store.get_by_id(product_id)

    async def create_product(self, payload: ProductIn) -> Product:
        product = await self.store.insert(validate_create(payload))
        logger.info(
            f"Created product {product.id}: {product.name}, stock: {product.stock}",
            extra={"product_id": product.id},
        )
        return product

    async def replace_product(self, product_id: str, payload: ProductIn) -> Product:
        product = await self.store.replace(product_id, validate_replace(payload))
        logger.info(f"Replaced product {product_id}", extra={"product_id": product_id})
        return product

    async def patch_product(self, product_id: str, payload: ProductPatchIn) -> Product:
        fields = validate_patch(payload)
        product = await self.store.patch(product_id, fields)
        logger.info(f"Patched product {product_id}: {sorted(fields)}", extra={"product_id": product_id})
        return product

    async def adjust_stock(self, product_id: str, payload: StockDeltaIn) -> Product:
        delta = validate_delta(payload)
        product = await self.store.apply_stock_delta(product_id, delta)
        logger.info(
            f"Adjusted stock of {product_id} by {delta}, now {product.stock}",
            extra={"product_id": product_id},
        )
        return product

    async def delete_product(self, product_id: str) -> None:
        if not await self.store.delete(product_id):
            raise NotFound()
        logger.info(f"Deleted product {product_id}", extra={"product_id": product_id})
