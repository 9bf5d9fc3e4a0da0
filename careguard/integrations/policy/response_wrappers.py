from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from careguard.error_handler import (
    AuthorizationError,
    ConfigurationError,
    ConnectivityError,
    StoreError,
)
from careguard.integrations.contracts.interfaces import RecordType, StoredRecord
from careguard.integrations.contracts.records import parse_timestamp


class IntegrationResponseError(StoreError):
    kind = "bad_response"
    user_message = "The catalog backend returned an unexpected response."


# PostgREST / Postgres error codes
_MISSING_TABLE_CODES = {"42P01", "PGRST205", "PGRST106"}
_PERMISSION_CODES = {"42501", "PGRST301", "PGRST302"}


class RemoteRowModel(BaseModel):
    id: str
    type: RecordType
    payload: Any = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class AuthSessionModel(BaseModel):
    access_token: str
    refresh_token: str = ""
    expires_in: int = 3600
    email: str = ""


def normalize_rows(raw: Any) -> List[StoredRecord]:
    """Validate a PostgREST row list into StoredRecords."""
    if raw is None:
        return []
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        raise IntegrationResponseError(f"Expected a list of rows, got {type(raw).__name__}", payload={"raw": raw})
    rows: List[StoredRecord] = []
    for item in raw:
        if not isinstance(item, dict):
            raise IntegrationResponseError("Row is not an object", payload={"raw": item})
        if item.get("id") is not None:
            item = {**item, "id": str(item["id"])}
        model = _build_model(RemoteRowModel, item, item)
        rows.append(
            StoredRecord(
                id=model.id,
                type=model.type,
                payload=model.payload,
                created_at=parse_timestamp(model.created_at),
            )
        )
    return rows


def normalize_auth_response(raw: Dict[str, Any], *, fallback_email: str = "") -> AuthSessionModel:
    user = raw.get("user") if isinstance(raw.get("user"), dict) else {}
    access_token = _first_non_empty(raw, "access_token", default="")
    if not access_token:
        raise AuthorizationError("Sign-in did not return a session.", payload=raw)
    return _build_model(
        AuthSessionModel,
        {
            "access_token": str(access_token),
            "refresh_token": str(_first_non_empty(raw, "refresh_token", default="")),
            "expires_in": int(_first_non_empty(raw, "expires_in", default=3600)),
            "email": str(_first_non_empty(user, "email", default=fallback_email)),
        },
        raw,
    )


def classify_error_response(status_code: int, body: Any) -> StoreError:
    """Map a non-2xx backend response onto the store error taxonomy."""
    data = body if isinstance(body, dict) else {}
    code = str(data.get("code") or data.get("error_code") or "")
    message = str(
        _first_non_empty(data, "message", "msg", "error_description", "error", default=f"HTTP {status_code}")
    )

    if code in _MISSING_TABLE_CODES or (status_code == 404 and "relation" in message.lower()):
        return ConfigurationError(f"Catalog table is missing: {message}", payload=data)
    if code in _PERMISSION_CODES or status_code in (401, 403):
        return AuthorizationError(message, payload=data)
    if status_code == 404:
        return ConfigurationError(f"Backend endpoint not found: {message}", payload=data)
    if status_code >= 500:
        return ConnectivityError(f"Backend unavailable ({status_code}): {message}", payload=data)
    return IntegrationResponseError(f"Backend rejected the request ({status_code}): {message}", payload=data)


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    if default is not None:
        return default
    raise IntegrationResponseError(f"Missing required field. Checked keys: {', '.join(keys)}", payload=data)


def _build_model(model_type, payload: Dict[str, Any], raw: Dict[str, Any]):
    try:
        return model_type(**payload)
    except ValidationError as exc:
        raise IntegrationResponseError(f"Response validation failed: {exc}", payload=raw) from exc
