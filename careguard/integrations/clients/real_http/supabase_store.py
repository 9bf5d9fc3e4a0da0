"""
Supabase (PostgREST) catalog adapter.

Used when SUPABASE_URL and the anon/publishable key are configured. All three
record types live in one table; rows are filtered and tagged by ``type``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from careguard.error_handler import ConfigurationError, ConnectivityError, RecordNotFoundError
from careguard.integrations.contracts.interfaces import CatalogBackend, Origin, RecordType, StoredRecord
from careguard.integrations.policy.response_wrappers import classify_error_response, normalize_rows

logger = logging.getLogger(__name__)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return {"message": response.text}


class SupabaseStore(CatalogBackend):
    origin = Origin.REMOTE

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        table: str = "careguard",
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not base_url or not anon_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_ANON_KEY must both be configured.")
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.table = table
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    def _headers(self, access_token: Optional[str], *, returning: bool = False) -> Dict[str, str]:
        headers: Dict[str, str] = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
            "Content-Type": "application/json",
        }
        if returning:
            headers["Prefer"] = "return=representation"
        return headers

    async def _request(
        self,
        method: str,
        *,
        params: Dict[str, str],
        access_token: Optional[str],
        json_body: Any = None,
        returning: bool = False,
    ) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.request(
                    method,
                    self.table_url,
                    params=params,
                    json=json_body,
                    headers=self._headers(access_token, returning=returning),
                )
        except httpx.TimeoutException as e:
            logger.error("Supabase %s %s timed out after %ss", method, self.table, self.timeout_seconds)
            raise ConnectivityError(f"Request to {self.base_url} timed out") from e
        except httpx.RequestError as e:
            logger.error("Request error connecting to Supabase: %s", e)
            raise ConnectivityError(f"Could not reach {self.base_url}: {e}") from e

        body = _decode_body(response)
        if response.is_error:
            error = classify_error_response(response.status_code, body)
            logger.error("Supabase %s %s failed: status=%s kind=%s", method, self.table, response.status_code, error.kind)
            raise error
        return body

    # ------------------------------------------------------------------ #
    # CatalogBackend
    # ------------------------------------------------------------------ #
    async def list(self, record_type: RecordType, *, access_token: Optional[str] = None) -> List[StoredRecord]:
        body = await self._request(
            "GET",
            params={"select": "*", "type": f"eq.{record_type.value}", "order": "created_at.desc"},
            access_token=access_token,
        )
        return normalize_rows(body)

    async def insert(
        self,
        record_type: RecordType,
        payload: Dict[str, Any],
        *,
        record_id: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> StoredRecord:
        row: Dict[str, Any] = {"type": record_type.value, "payload": payload}
        if record_id:
            row["id"] = record_id
        body = await self._request("POST", params={}, access_token=access_token, json_body=[row], returning=True)
        rows = normalize_rows(body)
        if not rows:
            # RLS can accept the insert while hiding the row from the caller.
            return StoredRecord(id=record_id or "", type=record_type, payload=payload)
        return rows[0]

    async def update(
        self,
        record_id: str,
        payload: Dict[str, Any],
        *,
        access_token: Optional[str] = None,
    ) -> StoredRecord:
        body = await self._request(
            "PATCH",
            params={"id": f"eq.{record_id}"},
            access_token=access_token,
            json_body={"payload": payload},
            returning=True,
        )
        rows = normalize_rows(body)
        if not rows:
            raise RecordNotFoundError(f"Record {record_id} does not exist")
        return rows[0]

    async def delete(self, record_id: str, *, access_token: Optional[str] = None) -> None:
        await self._request("DELETE", params={"id": f"eq.{record_id}"}, access_token=access_token)
