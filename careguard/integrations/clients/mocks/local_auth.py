"""
Local admin authentication (no remote backend configured).

Checks the ADMIN_EMAIL / ADMIN_PASSWORD pair from settings and issues an opaque
session token. Sign-up needs a real identity provider, so it is refused here.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from typing import Optional

from careguard.error_handler import AuthorizationError, ConfigurationError
from careguard.integrations.contracts.interfaces import AuthClient, AuthSession

logger = logging.getLogger(__name__)


class LocalAuthClient(AuthClient):
    def __init__(self, admin_email: str, admin_password: str, session_ttl_seconds: int = 8 * 3600) -> None:
        self.admin_email = (admin_email or "").strip().lower()
        self.admin_password = admin_password or ""
        self.session_ttl_seconds = session_ttl_seconds

    async def sign_in(self, email: str, password: str) -> AuthSession:
        if not self.admin_email or not self.admin_password:
            raise ConfigurationError("ADMIN_EMAIL and ADMIN_PASSWORD must be set to sign in without a remote backend.")
        email_ok = hmac.compare_digest((email or "").strip().lower().encode(), self.admin_email.encode())
        password_ok = hmac.compare_digest((password or "").encode(), self.admin_password.encode())
        if not (email_ok and password_ok):
            logger.info("Rejected local sign-in for %s", email)
            raise AuthorizationError("Invalid email or password.")
        return AuthSession(
            access_token=secrets.token_urlsafe(32),
            email=self.admin_email,
            expires_in=self.session_ttl_seconds,
        )

    async def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        raise ConfigurationError("Sign-up requires a configured remote backend.")
