# app/main.py
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .core import ProductIn, ProductPatchIn, StockDeltaIn
from .database import ProductStore, open_store
from .errors import InventoryError, StoreError
from .logging_config import setup_logging
from .models import Product
from .service import ProductService

VERSION = "1.0.0"

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> ProductService:
    store: Optional[ProductStore] = request.app.state.store
    if store is None:
        raise StoreError("product store is not connected")
    return ProductService(store)


# ---------------------------
# Product endpoints
# ---------------------------
@router.get("/products", response_model=List[Product])
async def list_products(
    q: Optional[str] = None,
    category: Optional[str] = None,
    min_stock: Optional[str] = Query(None, alias="minStock"),
    max_stock: Optional[str] = Query(None, alias="maxStock"),
    service: ProductService = Depends(get_service),
):
    return await service.list_products(q, category, min_stock, max_stock)


@router.get("/products/{product_id}", response_model=Product)
async def get_product(product_id: str, service: ProductService = Depends(get_service)):
    return await service.get_product(product_id)


@router.post("/products", response_model=Product, status_code=201)
async def create_product(payload: Optional[ProductIn] = None, service: ProductService = Depends(get_service)):
    return await service.create_product(payload or ProductIn())


@router.put("/products/{product_id}", response_model=Product)
async def replace_product(
    product_id: str, payload: Optional[ProductIn] = None, service: ProductService = Depends(get_service)
):
    return await service.replace_product(product_id, payload or ProductIn())


@router.patch("/products/{product_id}", response_model=Product)
async def patch_product(
    product_id: str, payload: Optional[ProductPatchIn] = None, service: ProductService = Depends(get_service)
):
    return await service.patch_product(product_id, payload or ProductPatchIn())


@router.patch("/products/{product_id}/stock", response_model=Product)
async def adjust_stock(
    product_id: str, payload: Optional[StockDeltaIn] = None, service: ProductService = Depends(get_service)
):
    return await service.adjust_stock(product_id, payload or StockDeltaIn())


@router.delete("/products/{product_id}")
async def delete_product(product_id: str, service: ProductService = Depends(get_service)):
    await service.delete_product(product_id)
    return {"ok": True}


# ---------------------------
# Health
# ---------------------------
@router.get("/health")
async def health(request: Request):
    return {
        "status": "healthy",
        "service": request.app.state.settings.service_name,
        "version": VERSION,
        "store": "connected" if request.app.state.store is not None else "unavailable",
    }


# ---------------------------
# Error mapping
# ---------------------------
async def inventory_error_handler(request: Request, exc: InventoryError):
    if isinstance(exc, StoreError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"error": "Internal server error"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


# ---------------------------
# App factory
# ---------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    owns_store = app.state.store is None
    if owns_store:
        try:
            app.state.store = open_store(app.state.settings.store_url)
        except StoreError as e:
            # keep serving; product routes answer 500 until restarted with a store
            logger.error(f"Product store connection failed: {e}")
    yield
    if owns_store and app.state.store is not None:
        await app.state.store.close()
        app.state.store = None


def create_app(settings: Optional[Settings] = None, store: Optional[ProductStore] = None) -> FastAPI:
    """Build the API. Pass ``store`` to skip connecting from ``settings.store_url``."""
    settings = settings or get_settings()
    setup_logging(settings.service_name, level=settings.log_level)

    app = FastAPI(title="inventory-api", version=VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(InventoryError, inventory_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()


def serve() -> None:
    settings = get_settings()
    logger.info(f"Server running on port {settings.port}")
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    serve()
