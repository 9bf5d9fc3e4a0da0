"""
Public storefront endpoints.

Endpoints:
- GET  /status
- GET  /pages?path=
- GET  /products?category=&search=
- GET  /products/{product_id}
- GET  /categories
- POST /inquiries
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from careguard.api.dependencies import get_store, http_error, optional_session
from careguard.api.schemas import category_to_dict, inquiry_to_dict, product_to_dict, products_to_list
from careguard.error_handler import StoreError
from careguard.integrations.policy.reconciliation import CatalogStore
from careguard.validation import FormValidationError
from careguard.view_router import resolve_page

api = APIRouter(tags=["Catalog"])


@api.get("/status")
async def store_status(store: CatalogStore = Depends(get_store)):
    await store.ensure_loaded()
    return store.status_snapshot()


@api.get("/pages")
async def resolve_view(
    path: str = Query(default="/"),
    store: CatalogStore = Depends(get_store),
    session: Optional[Dict[str, Any]] = Depends(optional_session),
):
    await store.ensure_loaded()
    page = resolve_page(path, store.products, authenticated=session is not None)
    data: Dict[str, Any] = {"page": page.page, "path": page.path, "productId": page.product_id}
    if page.message:
        data["message"] = page.message
    if page.product_id and page.page != "not_found":
        data["product"] = product_to_dict(store.get_product(page.product_id))
    return data


@api.get("/products")
async def list_products(
    category: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    store: CatalogStore = Depends(get_store),
):
    await store.ensure_loaded()
    products = store.list_products(category=category, search=search)
    return {"products": products_to_list(products), "count": len(products)}


@api.get("/products/{product_id}")
async def get_product(product_id: str, store: CatalogStore = Depends(get_store)):
    await store.ensure_loaded()
    product = store.get_product(product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": "Product not found."},
        )
    return product_to_dict(product)


@api.get("/categories")
async def list_categories(store: CatalogStore = Depends(get_store)):
    await store.ensure_loaded()
    counts = store.category_counts()
    return {
        "categories": [category_to_dict(c, counts.get(c.name, 0)) for c in store.list_categories()],
        "total": len(store.products),
    }


@api.post("/inquiries", status_code=status.HTTP_201_CREATED)
async def submit_inquiry(payload: Dict[str, Any] = Body(...), store: CatalogStore = Depends(get_store)):
    try:
        inquiry = await store.add_inquiry(payload)
    except (FormValidationError, StoreError) as e:
        raise http_error(e, "add_inquiry") from e
    return inquiry_to_dict(inquiry)
