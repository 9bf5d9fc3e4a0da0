"""
Record codec for the shared ``careguard`` table.

Every catalog entity is stored as a row ``{id, type, payload, created_at}``.
This module is the only place that knows how each variant maps onto a payload:

- ``encode_payload(entity)``  -> (RecordType, payload dict)
- ``decode_record(row, origin)`` -> Product | Category | Inquiry

Payload keys keep the camelCase names used by the storefront
(``extraImages``, ``sizeChart``, ``productName``...) so rows written by older
clients decode unchanged. Categories written before they became entities are
bare strings; ``decode_record`` accepts both shapes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .interfaces import (
    AdditionalInfo,
    CatalogEntity,
    Category,
    Inquiry,
    Origin,
    Product,
    RecordType,
    SizeChartEntry,
    StoredRecord,
)


class RecordDecodeError(ValueError):
    def __init__(self, message: str, *, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


def _as_str(v: Any) -> str:
    return "" if v is None else str(v)


def _str_list(v: Any) -> List[str]:
    if not isinstance(v, list):
        return []
    return [_as_str(x) for x in v if x is not None]


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO string or datetime; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    else:
        raw = str(value).strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            ts = datetime.fromisoformat(raw)
        except ValueError:
            return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------

def _product_payload(p: Product) -> Dict[str, Any]:
    return {
        "name": p.name,
        "category": p.category,
        "description": p.description,
        "image": p.image,
        "extraImages": list(p.extra_images),
        "features": list(p.features),
        "sizeChart": [{"label": s.label, "inches": s.inches, "cm": s.cm} for s in p.size_chart],
        "additionalInfo": {
            "material": p.additional_info.material,
            "compliance": p.additional_info.compliance,
            "packaging": p.additional_info.packaging,
        },
    }


def _inquiry_payload(i: Inquiry) -> Dict[str, Any]:
    return {
        "productId": i.product_id,
        "productName": i.product_name,
        "name": i.name,
        "email": i.email,
        "company": i.company,
        "quantity": i.quantity,
        "message": i.message,
        "requirement": i.requirement,
        "timestamp": format_timestamp(i.timestamp),
    }


def encode_payload(entity: CatalogEntity) -> Tuple[RecordType, Dict[str, Any]]:
    """Split an entity into its discriminator and payload (the id is not part of the payload)."""
    if isinstance(entity, Product):
        return RecordType.PRODUCT, _product_payload(entity)
    if isinstance(entity, Category):
        return RecordType.CATEGORY, {"name": entity.name}
    if isinstance(entity, Inquiry):
        return RecordType.INQUIRY, _inquiry_payload(entity)
    raise TypeError(f"Unsupported catalog entity: {type(entity).__name__}")


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------

def _decode_product(row: StoredRecord, origin: Origin) -> Product:
    data = row.payload if isinstance(row.payload, dict) else {}
    if not _as_str(data.get("name")).strip():
        raise RecordDecodeError(f"Product {row.id} has no name", payload=row.payload)
    info = data.get("additionalInfo") if isinstance(data.get("additionalInfo"), dict) else {}
    chart = data.get("sizeChart") if isinstance(data.get("sizeChart"), list) else []
    return Product(
        id=str(row.id),
        name=_as_str(data.get("name")),
        category=_as_str(data.get("category")),
        description=_as_str(data.get("description")),
        image=_as_str(data.get("image")),
        extra_images=_str_list(data.get("extraImages")),
        features=_str_list(data.get("features")),
        size_chart=[
            SizeChartEntry(
                label=_as_str(s.get("label")),
                inches=_as_str(s.get("inches")),
                cm=_as_str(s.get("cm")),
            )
            for s in chart
            if isinstance(s, dict)
        ],
        additional_info=AdditionalInfo(
            material=_as_str(info.get("material")),
            compliance=_as_str(info.get("compliance")),
            packaging=_as_str(info.get("packaging")),
        ),
        origin=origin,
    )


def _decode_category(row: StoredRecord, origin: Origin) -> Category:
    # Legacy rows store the category as a bare string.
    if isinstance(row.payload, str):
        name = row.payload
    elif isinstance(row.payload, dict):
        name = _as_str(row.payload.get("name"))
    else:
        name = ""
    name = name.strip()
    if not name:
        raise RecordDecodeError(f"Category {row.id} has no name", payload=row.payload)
    return Category(id=str(row.id), name=name, origin=origin)


def _decode_inquiry(row: StoredRecord, origin: Origin) -> Inquiry:
    data = row.payload if isinstance(row.payload, dict) else {}
    # Remote rows are stamped by the database; local rows carry their own timestamp.
    timestamp = parse_timestamp(row.created_at) or parse_timestamp(data.get("timestamp"))
    return Inquiry(
        id=str(row.id),
        product_id=_as_str(data.get("productId")),
        product_name=_as_str(data.get("productName")),
        name=_as_str(data.get("name")),
        email=_as_str(data.get("email")),
        company=_as_str(data.get("company")),
        quantity=_as_str(data.get("quantity")),
        message=_as_str(data.get("message")),
        requirement=_as_str(data.get("requirement")) or "Standard",
        timestamp=timestamp,
        origin=origin,
    )


_DECODERS = {
    RecordType.PRODUCT: _decode_product,
    RecordType.CATEGORY: _decode_category,
    RecordType.INQUIRY: _decode_inquiry,
}


def decode_record(row: StoredRecord, origin: Origin) -> CatalogEntity:
    return _DECODERS[RecordType(row.type)](row, origin)


def decode_records(rows: Iterable[StoredRecord], origin: Origin, logger=None) -> List[CatalogEntity]:
    """Decode rows, skipping (and logging) rows whose payload is unusable."""
    out: List[CatalogEntity] = []
    for row in rows:
        try:
            out.append(decode_record(row, origin))
        except ValueError as e:
            if logger is not None:
                logger.warning("Skipping malformed %s row %s: %s", row.type, row.id, e)
    return out


# ---------------------------------------------------------------------------
# Flat blobs (local persistence)
# ---------------------------------------------------------------------------

def record_to_blob_entry(row: StoredRecord) -> Dict[str, Any]:
    """Flatten a row into ``{"id": ..., **payload}`` for key-value persistence."""
    payload = row.payload if isinstance(row.payload, dict) else {"name": _as_str(row.payload)}
    entry: Dict[str, Any] = {"id": row.id, **payload}
    if row.created_at is not None:
        entry["createdAt"] = format_timestamp(row.created_at)
    return entry


def blob_entry_to_record(record_type: RecordType, entry: Any, fallback_id: str) -> StoredRecord:
    """Inverse of ``record_to_blob_entry``; bare-string categories get ``fallback_id``."""
    if isinstance(entry, str):
        return StoredRecord(id=fallback_id, type=record_type, payload={"name": entry})
    if not isinstance(entry, dict):
        raise RecordDecodeError(f"Unreadable {record_type.value} entry", payload=entry)
    data = dict(entry)
    record_id = _as_str(data.pop("id", "")) or fallback_id
    created_at = parse_timestamp(data.pop("createdAt", None))
    return StoredRecord(id=record_id, type=record_type, payload=data, created_at=created_at)
