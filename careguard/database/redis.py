"""
Lightweight in-memory key-value cache for local development.

Holds admin sessions and the local fallback store's persisted collections so
the service can run without a real Redis instance. Contents are lost when the
process exits.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional


class RedisCache:
    def __init__(self) -> None:
        # key -> serialized JSON
        self._blobs: Dict[str, str] = {}

    # --- Opaque blobs used by the local fallback store -------------------------

    def load(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def save(self, key: str, blob: str) -> None:
        self._blobs[key] = blob

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)

    # --- Session helpers used by SessionManager -------------------------------

    def set_session(self, token: str, data: Dict[str, Any], ttl: int = 28800) -> None:
        # TTL is ignored in this in-memory implementation; SessionManager checks expiry itself.
        self._blobs[f"session:{token}"] = json.dumps(data, default=str)

    def get_session(self, token: str) -> Optional[Dict[str, Any]]:
        raw = self._blobs.get(f"session:{token}")
        if raw is None:
            return None
        return json.loads(raw)

    def delete_session(self, token: str) -> None:
        self._blobs.pop(f"session:{token}", None)

    # --- Misc -----------------------------------------------------------------

    def ping(self) -> bool:
        """Always reachable in local/dev mode."""
        return True
