"""
Real Redis-backed key-value cache for production when REDIS_URL is set.
Implements the same interface as careguard.database.redis (in-memory stub).
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import redis


class RedisCache:
    """
    Redis-backed sessions and local-store collections. Use when REDIS_URL is set.
    """

    def __init__(self, url: str, default_ttl: int = 28800, client=None) -> None:
        self._client = client or redis.from_url(url, decode_responses=True)
        self._default_ttl = default_ttl

    def load(self, key: str) -> Optional[str]:
        return self._client.get(key)

    def save(self, key: str, blob: str) -> None:
        self._client.set(key, blob)

    def delete(self, key: str) -> None:
        self._client.delete(key)

    def set_session(self, token: str, data: Dict[str, Any], ttl: int = 28800) -> None:
        payload = json.dumps(data, default=str)
        self._client.setex(f"session:{token}", ttl or self._default_ttl, payload)

    def get_session(self, token: str) -> Optional[Dict[str, Any]]:
        raw = self._client.get(f"session:{token}")
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    def delete_session(self, token: str) -> None:
        self._client.delete(f"session:{token}")

    def ping(self) -> bool:
        try:
            return self._client.ping()
        except redis.RedisError:
            return False
