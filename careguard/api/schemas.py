"""
Request models and response serializers for the catalog API.

Responses reuse the storage codec so the JSON shape matches the stored payload
(camelCase keys), plus ``id`` and ``origin``.
"""

from typing import Any, Dict, List

from pydantic import BaseModel

from careguard.integrations.contracts.interfaces import Category, Inquiry, Product
from careguard.integrations.contracts.records import encode_payload


class CredentialsRequest(BaseModel):
    email: str = ""
    password: str = ""


class CategoryCreate(BaseModel):
    name: str = ""


def product_to_dict(product: Product) -> Dict[str, Any]:
    _, payload = encode_payload(product)
    return {"id": product.id, **payload, "origin": product.origin.value}


def category_to_dict(category: Category, product_count: int = None) -> Dict[str, Any]:
    data: Dict[str, Any] = {"id": category.id, "name": category.name, "origin": category.origin.value}
    if product_count is not None:
        data["productCount"] = product_count
    return data


def inquiry_to_dict(inquiry: Inquiry) -> Dict[str, Any]:
    _, payload = encode_payload(inquiry)
    return {"id": inquiry.id, **payload, "origin": inquiry.origin.value}


def products_to_list(products: List[Product]) -> List[Dict[str, Any]]:
    return [product_to_dict(p) for p in products]
