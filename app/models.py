# app/models.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

DEFAULT_CATEGORY = "Uncategorized"
NAME_MAX_LENGTH = 200
CATEGORY_MAX_LENGTH = 120
# signed 64-bit column range
STOCK_MAX = 2**63 - 1


class ProductFields(BaseModel):
    """Write-time constraints on a product's mutable fields.

    Every store validates through this model before persisting, so the rules
    hold no matter which write path produced the values.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(max_length=NAME_MAX_LENGTH)
    category: str = Field(default=DEFAULT_CATEGORY, max_length=CATEGORY_MAX_LENGTH)
    stock: StrictInt = Field(default=0, ge=0, le=STOCK_MAX)
    price: float = Field(default=0, ge=0, allow_inf_nan=False)


class Product(ProductFields):
    """A persisted product record."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class ProductFilter(BaseModel):
    """Normalized listing filter. ``None`` means the predicate is not applied."""

    text: Optional[str] = None
    category: Optional[str] = None
    min_stock: Optional[float] = None
    max_stock: Optional[float] = None

    def matches(self, product: Product) -> bool:
        if self.text:
            term = self.text.casefold()
            if term not in product.name.casefold() and term not in product.category.casefold():
                return False
        if self.category is not None and product.category != self.category:
            return False
        if self.min_stock is not None and product.stock < self.min_stock:
            return False
        if self.max_stock is not None and product.stock > self.max_stock:
            return False
        return True
