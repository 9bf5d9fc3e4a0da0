"""
Admin console endpoints. Every route requires a bearer session token.

Endpoints:
- GET    /admin/products?search=
- POST   /admin/products
- PUT    /admin/products/{product_id}
- DELETE /admin/products/{product_id}
- POST   /admin/categories
- DELETE /admin/categories/{category_id}
- GET    /admin/inquiries
- GET    /admin/inquiries/export.csv
- DELETE /admin/inquiries/{inquiry_id}
- POST   /admin/reset
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import Response

from careguard.api.dependencies import get_store, http_error, require_admin_session
from careguard.api.schemas import (
    CategoryCreate,
    category_to_dict,
    inquiry_to_dict,
    product_to_dict,
    products_to_list,
)
from careguard.error_handler import StoreError
from careguard.inquiry_export import export_filename
from careguard.integrations.policy.reconciliation import CatalogStore
from careguard.validation import FormValidationError

logger = logging.getLogger(__name__)

api = APIRouter(prefix="/admin", tags=["Admin"])


def _token(session: Dict[str, Any]) -> Optional[str]:
    return session.get("access_token")


# --------------------------------------------------------------------------- #
# Products
# --------------------------------------------------------------------------- #
@api.get("/products")
async def admin_list_products(
    search: Optional[str] = Query(default=None),
    store: CatalogStore = Depends(get_store),
    session: Dict[str, Any] = Depends(require_admin_session),
):
    await store.ensure_loaded()
    products = store.list_products(admin_search=search)
    return {"products": products_to_list(products), "count": len(products)}


@api.post("/products", status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: Dict[str, Any] = Body(...),
    store: CatalogStore = Depends(get_store),
    session: Dict[str, Any] = Depends(require_admin_session),
):
    try:
        product = await store.add_product(payload, access_token=_token(session))
    except (FormValidationError, StoreError) as e:
        raise http_error(e, "add_product") from e
    return product_to_dict(product)


@api.put("/products/{product_id}")
async def update_product(
    product_id: str,
    payload: Dict[str, Any] = Body(...),
    store: CatalogStore = Depends(get_store),
    session: Dict[str, Any] = Depends(require_admin_session),
):
    try:
        product = await store.update_product(product_id, payload, access_token=_token(session))
    except (FormValidationError, StoreError) as e:
        raise http_error(e, "update_product") from e
    return product_to_dict(product)


@api.delete("/products/{product_id}")
async def delete_product(
    product_id: str,
    store: CatalogStore = Depends(get_store),
    session: Dict[str, Any] = Depends(require_admin_session),
):
    try:
        await store.delete_product(product_id, access_token=_token(session))
    except StoreError as e:
        raise http_error(e, "delete_product") from e
    return {"deleted": product_id}


# --------------------------------------------------------------------------- #
# Categories
# --------------------------------------------------------------------------- #
@api.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreate,
    store: CatalogStore = Depends(get_store),
    session: Dict[str, Any] = Depends(require_admin_session),
):
    try:
        category = await store.add_category(request.name, access_token=_token(session))
    except (FormValidationError, StoreError) as e:
        raise http_error(e, "add_category") from e
    return category_to_dict(category)


@api.delete("/categories/{category_id}")
async def delete_category(
    category_id: str,
    store: CatalogStore = Depends(get_store),
    session: Dict[str, Any] = Depends(require_admin_session),
):
    try:
        fallback = await store.delete_category(category_id, access_token=_token(session))
    except StoreError as e:
        raise http_error(e, "delete_category") from e
    return {"deleted": category_id, "reassigned_to": fallback or None}


# --------------------------------------------------------------------------- #
# Inquiries
# --------------------------------------------------------------------------- #
@api.get("/inquiries")
async def list_inquiries(
    store: CatalogStore = Depends(get_store),
    session: Dict[str, Any] = Depends(require_admin_session),
):
    # Inquiries may be hidden from anonymous reads, so refresh with the admin token.
    await store.reload(access_token=_token(session))
    inquiries = store.list_inquiries()
    return {"inquiries": [inquiry_to_dict(i) for i in inquiries], "count": len(inquiries)}


@api.get("/inquiries/export.csv")
async def export_inquiries(
    store: CatalogStore = Depends(get_store),
    session: Dict[str, Any] = Depends(require_admin_session),
):
    await store.reload(access_token=_token(session))
    return Response(
        content=store.export_inquiries_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@api.delete("/inquiries/{inquiry_id}")
async def delete_inquiry(
    inquiry_id: str,
    store: CatalogStore = Depends(get_store),
    session: Dict[str, Any] = Depends(require_admin_session),
):
    try:
        await store.delete_inquiry(inquiry_id, access_token=_token(session))
    except StoreError as e:
        raise http_error(e, "delete_inquiry") from e
    return {"deleted": inquiry_id}


# --------------------------------------------------------------------------- #
# Maintenance
# --------------------------------------------------------------------------- #
@api.post("/reset")
async def reset_catalog(
    store: CatalogStore = Depends(get_store),
    session: Dict[str, Any] = Depends(require_admin_session),
):
    try:
        await store.reset(access_token=_token(session))
    except StoreError as e:
        raise http_error(e, "reset") from e
    logger.info("Catalog reset by %s", session.get("email", "admin"))
    return store.status_snapshot()
