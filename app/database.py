# app/database.py
import abc
import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pydantic

from .errors import NotFound, StoreError, ValidationError
from .models import STOCK_MAX, Product, ProductFields, ProductFilter

logger = logging.getLogger(__name__)

MEMORY_URL = "memory://"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_fields(fields: Dict[str, Any]) -> ProductFields:
    """Run write-time constraints, re-raising pydantic failures as ValidationError."""
    try:
        return ProductFields(**fields)
    except pydantic.ValidationError as exc:
        errors = exc.errors()
        first = errors[0]
        loc = ".".join(str(part) for part in first.get("loc", ())) or "product"
        raise ValidationError(f"Validation failed: {loc}: {first['msg']}") from exc


class ProductStore(abc.ABC):
    """Persistence contract for products.

    ``apply_stock_delta`` must be atomic per id: two concurrent deltas on the
    same record may never both read the pre-update stock.
    """

    @abc.abstractmethod
    async def insert(self, fields: Dict[str, Any]) -> Product: ...

    @abc.abstractmethod
    async def get_by_id(self, product_id: str) -> Product: ...

    @abc.abstractmethod
    async def query(self, product_filter: ProductFilter) -> List[Product]: ...

    @abc.abstractmethod
    async def replace(self, product_id: str, fields: Dict[str, Any]) -> Product: ...

    @abc.abstractmethod
    async def patch(self, product_id: str, fields: Dict[str, Any]) -> Product: ...

    @abc.abstractmethod
    async def apply_stock_delta(self, product_id: str, delta: int) -> Product: ...

    @abc.abstractmethod
    async def delete(self, product_id: str) -> bool: ...

    async def close(self) -> None:
        return None


class InMemoryProductStore(ProductStore):
    """Process-local store. Records live in a dict, writes are serialized per id."""

    def __init__(self) -> None:
        self._products: Dict[str, Dict[str, Any]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_lock(self, key: str) -> asyncio.Lock:
        # only existing records get a lock; unknown ids fail before touching the map
        if key not in self._products:
            raise NotFound()
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def _load(self, product_id: str) -> Dict[str, Any]:
        record = self._products.get(product_id)
        if record is None:
            raise NotFound()
        return record

    async def insert(self, fields: Dict[str, Any]) -> Product:
        validated = validate_fields(fields)
        now = utcnow()
        pid = uuid.uuid4().hex
        record = {"id": pid, **validated.model_dump(), "created_at": now, "updated_at": now}
        self._products[pid] = record
        return Product(**record)

    async def get_by_id(self, product_id: str) -> Product:
        return Product(**self._load(product_id))

    async def query(self, product_filter: ProductFilter) -> List[Product]:
        # newest insert first so equal timestamps keep reverse-insertion order
        products = [Product(**r) for r in reversed(list(self._products.values()))]
        matched = [p for p in products if product_filter.matches(p)]
        return sorted(matched, key=lambda p: p.created_at, reverse=True)

    async def replace(self, product_id: str, fields: Dict[str, Any]) -> Product:
        async with self._get_lock(product_id):
            record = self._load(product_id)
            validated = validate_fields(fields)
            record.update(validated.model_dump(), updated_at=utcnow())
            return Product(**record)

    async def patch(self, product_id: str, fields: Dict[str, Any]) -> Product:
        async with self._get_lock(product_id):
            record = self._load(product_id)
            current = {k: record[k] for k in ProductFields.model_fields}
            validated = validate_fields({**current, **fields})
            record.update(validated.model_dump(), updated_at=utcnow())
            return Product(**record)

    async def apply_stock_delta(self, product_id: str, delta: int) -> Product:
        async with self._get_lock(product_id):
            record = self._load(product_id)
            stock = max(0, record["stock"] + delta)
            if stock > STOCK_MAX:
                raise ValidationError("Validation failed: stock: out of range")
            record["stock"] = stock
            record["updated_at"] = utcnow()
            return Product(**record)

    async def delete(self, product_id: str) -> bool:
        try:
            lock = self._get_lock(product_id)
        except NotFound:
            return False
        async with lock:
            removed = self._products.pop(product_id, None)
        self._locks.pop(product_id, None)
        return removed is not None


def open_store(url: Optional[str]) -> ProductStore:
    """Build the store for a connection string.

    Raises StoreError when no URL is configured or the backend cannot be reached.
    """
    if not url:
        raise StoreError("STORE_URL is not set")
    if url == MEMORY_URL:
        logger.info("Using in-memory product store")
        return InMemoryProductStore()

    from .sql_store import SqlProductStore

    return SqlProductStore.connect(url)
