# app/core.py
import math
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from .errors import ValidationError
from .models import DEFAULT_CATEGORY, STOCK_MAX, ProductFilter

# Request bodies accept loosely-typed JSON; the functions below turn them into
# store-ready field dicts or raise ValidationError.


class ProductIn(BaseModel):
    """Body of POST /products and PUT /products/{id}."""

    model_config = ConfigDict(extra="ignore")

    name: Any = None
    category: Any = None
    stock: Any = None
    price: Any = None


class ProductPatchIn(ProductIn):
    """Body of PATCH /products/{id}. Only keys present in the body are applied."""


class StockDeltaIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    delta: Any = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def parse_number(value: Any) -> Optional[float]:
    """Numeric coercion for loosely-typed JSON values.

    ``null``, ``false`` and blank strings count as 0, ``true`` as 1, and
    numeric strings are parsed. Returns None for anything else or a
    non-finite result.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def coerce_text(value: Any) -> str:
    """String form of a JSON value; falsy values become the empty string."""
    if not value:
        return ""
    if isinstance(value, bool):
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _require_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required")
    return name.strip()


def validate_create(payload: ProductIn) -> Dict[str, Any]:
    """Fields for a new product. Absent or non-numeric values fall back to store defaults."""
    fields: Dict[str, Any] = {"name": _require_name(payload.name)}
    if isinstance(payload.category, str):
        fields["category"] = payload.category.strip()
    if _is_number(payload.stock):
        fields["stock"] = max(0, math.floor(payload.stock))
    if _is_number(payload.price):
        fields["price"] = max(0.0, float(payload.price))
    return fields


def validate_replace(payload: ProductIn) -> Dict[str, Any]:
    """Fields for a full overwrite: anything absent is reset to its default."""
    return {
        "name": _require_name(payload.name),
        "category": payload.category.strip() if isinstance(payload.category, str) else DEFAULT_CATEGORY,
        "stock": max(0, math.floor(payload.stock)) if _is_number(payload.stock) else 0,
        "price": max(0.0, float(payload.price)) if _is_number(payload.price) else 0.0,
    }


def validate_patch(payload: ProductPatchIn) -> Dict[str, Any]:
    """Fields for a partial update.

    ``name`` and ``category`` are stringified and trimmed but may end up empty;
    stock and price must be non-negative numbers.
    """
    present = payload.model_fields_set
    fields: Dict[str, Any] = {}
    for key in ("name", "category"):
        if key in present:
            fields[key] = coerce_text(getattr(payload, key)).strip()
    if "stock" in present:
        stock = parse_number(payload.stock)
        if stock is None or math.floor(stock) < 0:
            raise ValidationError("Invalid stock")
        fields["stock"] = math.floor(stock)
    if "price" in present:
        price = parse_number(payload.price)
        if price is None or price < 0:
            raise ValidationError("Invalid price")
        fields["price"] = price
    return fields


def validate_delta(payload: StockDeltaIn) -> int:
    """Signed integer delta, truncated toward zero. A body without ``delta`` is rejected."""
    if "delta" not in payload.model_fields_set:
        raise ValidationError("delta must be a number")
    delta = parse_number(payload.delta)
    if delta is None:
        raise ValidationError("delta must be a number")
    delta = math.trunc(delta)
    if abs(delta) > STOCK_MAX:
        raise ValidationError("delta out of range")
    return delta


def build_filter(
    q: Optional[str] = None,
    category: Optional[str] = None,
    min_stock: Optional[str] = None,
    max_stock: Optional[str] = None,
) -> ProductFilter:
    """Listing filter from raw query strings. Unparsable stock bounds are dropped."""
    return ProductFilter(
        text=q or None,
        category=category or None,
        min_stock=parse_number(min_stock) if min_stock else None,
        max_stock=parse_number(max_stock) if max_stock else None,
    )
