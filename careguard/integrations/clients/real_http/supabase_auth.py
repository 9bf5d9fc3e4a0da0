"""
Supabase Auth (GoTrue) client for admin sign-in / sign-up.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from careguard.error_handler import AuthorizationError, ConfigurationError, ConnectivityError
from careguard.integrations.contracts.interfaces import AuthClient, AuthSession
from careguard.integrations.policy.response_wrappers import classify_error_response, normalize_auth_response

logger = logging.getLogger(__name__)


class SupabaseAuthClient(AuthClient):
    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not base_url or not anon_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_ANON_KEY must both be configured.")
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def _post(self, path: str, *, params: Dict[str, str] = None, json_body: Any = None, bearer: str = "") -> httpx.Response:
        headers = {"apikey": self.anon_key, "Content-Type": "application/json"}
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        url = f"{self.base_url}/auth/v1{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                return await client.post(url, params=params, json=json_body, headers=headers)
        except httpx.RequestError as e:
            logger.error("Request error connecting to Supabase auth: %s", e)
            raise ConnectivityError(f"Could not reach {self.base_url}: {e}") from e

    @staticmethod
    def _raise_for_auth(response: httpx.Response) -> None:
        if not response.is_error:
            return
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}
        if response.status_code in (400, 401, 403, 422):
            message = body.get("error_description") or body.get("msg") or body.get("message") or "Invalid credentials"
            raise AuthorizationError(str(message), payload=body)
        raise classify_error_response(response.status_code, body)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        response = await self._post(
            "/token",
            params={"grant_type": "password"},
            json_body={"email": email, "password": password},
        )
        self._raise_for_auth(response)
        session = normalize_auth_response(response.json(), fallback_email=email)
        logger.info("Admin signed in: %s", session.email)
        return AuthSession(access_token=session.access_token, email=session.email, expires_in=session.expires_in)

    async def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        response = await self._post("/signup", json_body={"email": email, "password": password})
        self._raise_for_auth(response)
        data = response.json() if response.content else {}
        if not data.get("access_token"):
            logger.info("Sign-up for %s awaiting email confirmation", email)
            return None
        session = normalize_auth_response(data, fallback_email=email)
        return AuthSession(access_token=session.access_token, email=session.email, expires_in=session.expires_in)

    async def sign_out(self, access_token: str) -> None:
        try:
            response = await self._post("/logout", bearer=access_token)
        except ConnectivityError as e:
            logger.warning("Remote sign-out skipped: %s", e)
            return
        if response.is_error:
            logger.warning("Remote sign-out returned %s", response.status_code)
