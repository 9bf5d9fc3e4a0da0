"""
Maps storefront paths (``#/products``, ``/product/3``...) to page descriptors.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from careguard.integrations.contracts.interfaces import Product

STATIC_PAGES = {
    "/": "home",
    "/about": "about",
    "/products": "products",
    "/blog": "blog",
    "/contact": "contact",
}

PRODUCT_NOT_FOUND = "Product not found."


@dataclass
class PageDescriptor:
    page: str
    path: str
    product_id: Optional[str] = None
    message: Optional[str] = None


def normalize_path(path: Optional[str]) -> str:
    value = (path or "").strip()
    if value.startswith("#"):
        value = value[1:]
    if not value.startswith("/"):
        value = "/" + value
    return value


def _product_page(page: str, path: str, products: Iterable[Product]) -> PageDescriptor:
    product_id = path.split("/")[2]
    if any(p.id == product_id for p in products):
        return PageDescriptor(page=page, path=path, product_id=product_id)
    return PageDescriptor(page="not_found", path=path, product_id=product_id, message=PRODUCT_NOT_FOUND)


def resolve_page(path: Optional[str], products: Iterable[Product], authenticated: bool = False) -> PageDescriptor:
    """Resolve a hash fragment or path; anything unknown lands on home."""
    path = normalize_path(path)

    if path.startswith("/product/"):
        return _product_page("product_detail", path, products)
    if path.startswith("/inquiry/"):
        return _product_page("inquiry", path, products)
    if path == "/admin":
        return PageDescriptor(page="admin" if authenticated else "admin_login", path=path)
    return PageDescriptor(page=STATIC_PAGES.get(path, "home"), path=path)
