"""
Admin session management
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import logging

from careguard.integrations.contracts.interfaces import AuthClient, AuthSession
from careguard.integrations.contracts.records import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(self, cache, auth_client: AuthClient, ttl_seconds: int = 8 * 3600):
        self.cache = cache
        self.auth = auth_client
        self.ttl_seconds = ttl_seconds

    def _store(self, session: AuthSession) -> Dict[str, Any]:
        ttl = min(self.ttl_seconds, session.expires_in or self.ttl_seconds)
        now = datetime.now(timezone.utc)
        data = {
            "access_token": session.access_token,
            "email": session.email,
            "created_at": format_timestamp(now),
            "expires_at": format_timestamp(now + timedelta(seconds=ttl)),
        }
        self.cache.set_session(session.access_token, data, ttl=ttl)
        return data

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """Authenticate and open a session; raises AuthorizationError on bad credentials."""
        session = await self.auth.sign_in(email, password)
        return self._store(session)

    async def sign_up(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        session = await self.auth.sign_up(email, password)
        if session is None:
            return None
        return self._store(session)

    def get_session(self, token: Optional[str]) -> Optional[Dict[str, Any]]:
        """Session data for ``token``, or None when missing or expired."""
        if not token:
            return None
        data = self.cache.get_session(token)
        if not data:
            return None
        expires_at = parse_timestamp(data.get("expires_at"))
        if expires_at is not None and expires_at <= datetime.now(timezone.utc):
            self.cache.delete_session(token)
            return None
        return data

    async def sign_out(self, token: str) -> None:
        if not token:
            return
        await self.auth.sign_out(token)
        self.cache.delete_session(token)
        logger.info("Admin session closed")
