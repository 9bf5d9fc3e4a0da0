"""Shared validation for admin and storefront form submissions.

Forms are checked before any storage request is issued. On failure, raise
`FormValidationError` so the API can return HTTP 422 with structured
`field_errors`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional


@dataclass
class FormValidationError(Exception):
    """Exception raised for form validation failures.

    Attributes:
        field_errors: mapping of field name -> human-readable error message.
        message: optional top-level message.
    """

    field_errors: Dict[str, str]
    message: str = "Validation failed"

    def __str__(self) -> str:  # pragma: no cover
        return self.message


def _as_str(v: Any) -> str:
    return "" if v is None else str(v)


def _strip(v: Any) -> str:
    return _as_str(v).strip()


def add_error(errors: Dict[str, str], field: str, message: str) -> None:
    if field not in errors:
        errors[field] = message


def require_str(payload: Dict[str, Any], field: str, errors: Dict[str, str], *, label: Optional[str] = None) -> str:
    value = _strip(payload.get(field))
    if not value:
        add_error(errors, field, f"{label or field} is required")
    return value


def optional_str(payload: Dict[str, Any], field: str) -> str:
    return _strip(payload.get(field))


def parse_quantity(payload: Dict[str, Any], field: str, errors: Dict[str, str], *, min_value: int = 1) -> str:
    """Validate a whole-number quantity but keep it as the submitted string."""
    raw = _strip(payload.get(field))
    if not raw:
        add_error(errors, field, "Quantity is required")
        return raw
    try:
        val = int(raw)
    except ValueError:
        add_error(errors, field, "Quantity must be a whole number")
        return raw
    if val < min_value:
        add_error(errors, field, f"Quantity must be at least {min_value}")
    return raw


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(value: str, errors: Dict[str, str], field: str = "email") -> str:
    value = _strip(value)
    if not value:
        add_error(errors, field, "Email is required")
        return value
    if not _EMAIL_RE.match(value):
        add_error(errors, field, "Email is not valid")
    return value


def validate_unique_name(value: str, existing: Iterable[str], errors: Dict[str, str], field: str = "name") -> str:
    lowered = {_strip(n).lower() for n in existing}
    if value and value.lower() in lowered:
        add_error(errors, field, f'"{value}" already exists')
    return value


def raise_if_errors(errors: Dict[str, str], message: str = "Please correct the highlighted fields") -> None:
    if errors:
        raise FormValidationError(field_errors=errors, message=message)


# --------------------------------------------------------------------------- #
# Form-level validators
# --------------------------------------------------------------------------- #
def validate_product_form(payload: Dict[str, Any]) -> None:
    errors: Dict[str, str] = {}
    require_str(payload, "name", errors, label="Product name")
    require_str(payload, "category", errors, label="Category")
    raise_if_errors(errors, "Product name and category are required.")


def validate_category_form(name: str, existing: Iterable[str]) -> str:
    errors: Dict[str, str] = {}
    value = require_str({"name": name}, "name", errors, label="Category name")
    validate_unique_name(value, existing, errors)
    raise_if_errors(errors)
    return value


def validate_inquiry_form(payload: Dict[str, Any]) -> None:
    errors: Dict[str, str] = {}
    require_str(payload, "productId", errors, label="Product")
    require_str(payload, "name", errors, label="Name")
    validate_email(payload.get("email"), errors)
    parse_quantity(payload, "quantity", errors)
    raise_if_errors(errors)
