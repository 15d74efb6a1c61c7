# sdk/inventory.py
from typing import Any, Dict, List, Optional

import httpx
import requests


class InventoryClient:
    """Thin client for the inventory API. HTTP errors raise ``requests.HTTPError``."""

    def __init__(self, base_url: str = "http://localhost:5000", api_key: Optional[str] = None, timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.timeout = timeout
        self.headers: Dict[str, str] = {}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"
            self.session.headers.update(self.headers)

    def _request(self, method: str, path: str, **kwargs) -> Any:
        r = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        r.raise_for_status()
        return r.json()

    # Products
    def list_products(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        min_stock: Optional[int] = None,
        max_stock: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if q:
            params["q"] = q
        if category:
            params["category"] = category
        if min_stock is not None:
            params["minStock"] = min_stock
        if max_stock is not None:
            params["maxStock"] = max_stock
        return self._request("GET", "/products", params=params)

    def get_product(self, product_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/products/{product_id}")

    def create_product(self, name: str, category: Optional[str] = None, stock: int = 0, price: float = 0):
        payload: Dict[str, Any] = {"name": name, "stock": stock, "price": price}
        if category:
            payload["category"] = category
        return self._request("POST", "/products", json=payload)

    def replace_product(self, product_id: str, name: str, category: Optional[str] = None, stock: int = 0, price: float = 0):
        payload: Dict[str, Any] = {"name": name, "stock": stock, "price": price}
        if category:
            payload["category"] = category
        return self._request("PUT", f"/products/{product_id}", json=payload)

    def patch_product(self, product_id: str, **fields) -> Dict[str, Any]:
        return self._request("PATCH", f"/products/{product_id}", json=fields)

    def adjust_stock(self, product_id: str, delta: int) -> Dict[str, Any]:
        return self._request("PATCH", f"/products/{product_id}/stock", json={"delta": delta})

    def delete_product(self, product_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/products/{product_id}")

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    # Async stock delta, for firing many adjustments at once
    async def adjust_stock_async(self, product_id: str, delta: int) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers) as client:
            return await client.patch(f"{self.base_url}/products/{product_id}/stock", json={"delta": delta})
