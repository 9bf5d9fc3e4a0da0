"""
Service wiring and FastAPI dependencies.

``build_services`` picks the storage backend, cache and auth client from
settings; routers reach them through the ``get_*`` dependencies so tests can
swap them with ``app.dependency_overrides``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException

from careguard.error_handler import AuthorizationError, ErrorHandler
from careguard.integrations.contracts.interfaces import AuthClient, CatalogBackend
from careguard.integrations.policy.reconciliation import CatalogStore
from careguard.session_manager import SessionManager
from careguard.utils.config_loader import AppSettings
from careguard.utils.seed_loader import SeedCatalog, load_seed_catalog

logger = logging.getLogger(__name__)

error_handler = ErrorHandler()


@dataclass
class Services:
    settings: AppSettings
    cache: Any
    store: CatalogStore
    sessions: SessionManager


def build_cache(settings: AppSettings):
    if settings.redis_url:
        from careguard.database.redis_real import RedisCache

        return RedisCache(url=settings.redis_url, default_ttl=settings.session_ttl_seconds)
    from careguard.database.redis import RedisCache

    return RedisCache()


def build_backend(settings: AppSettings, seed: SeedCatalog, cache) -> CatalogBackend:
    backend = settings.backend
    if backend == "supabase":
        from careguard.integrations.clients.real_http.supabase_store import SupabaseStore

        return SupabaseStore(
            base_url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            table=settings.table,
            timeout_seconds=settings.remote_timeout_seconds,
        )
    if backend == "sql":
        from careguard.database.remote_sql import SqlRemoteStore

        return SqlRemoteStore(
            connection_string=settings.database_url,
            timeout_seconds=settings.remote_timeout_seconds,
        )

    from careguard.database.local_store import LocalFallbackStore

    return LocalFallbackStore(seed, persistence=cache, namespace=settings.namespace)


def build_auth(settings: AppSettings) -> AuthClient:
    if settings.supabase_configured and settings.backend == "supabase":
        from careguard.integrations.clients.real_http.supabase_auth import SupabaseAuthClient

        return SupabaseAuthClient(
            base_url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            timeout_seconds=settings.remote_timeout_seconds,
        )
    from careguard.integrations.clients.mocks.local_auth import LocalAuthClient

    return LocalAuthClient(settings.admin_email, settings.admin_password, settings.session_ttl_seconds)


def build_services(
    settings: AppSettings,
    *,
    cache=None,
    backend: Optional[CatalogBackend] = None,
    auth: Optional[AuthClient] = None,
) -> Services:
    seed = load_seed_catalog(settings.seed_path)
    cache = cache if cache is not None else build_cache(settings)
    backend = backend if backend is not None else build_backend(settings, seed, cache)
    auth = auth if auth is not None else build_auth(settings)
    logger.info("Catalog services ready: backend=%s auth=%s", type(backend).__name__, type(auth).__name__)
    return Services(
        settings=settings,
        cache=cache,
        store=CatalogStore(backend, seed, refresh_seconds=settings.refresh_seconds),
        sessions=SessionManager(cache, auth, ttl_seconds=settings.session_ttl_seconds),
    )


_services: Optional[Services] = None


def set_services(services: Services) -> None:
    global _services
    _services = services


def get_services() -> Services:
    if _services is None:
        raise RuntimeError("Catalog services are not initialised")
    return _services


def get_store() -> CatalogStore:
    return get_services().store


def get_sessions() -> SessionManager:
    return get_services().sessions


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def optional_session(
    token: Optional[str] = Depends(bearer_token),
    sessions: SessionManager = Depends(get_sessions),
) -> Optional[Dict[str, Any]]:
    return sessions.get_session(token)


def require_admin_session(session: Optional[Dict[str, Any]] = Depends(optional_session)) -> Dict[str, Any]:
    if session is None:
        raise error_handler.to_http_exception(
            AuthorizationError("Missing or expired admin session"), {"operation": "admin"}
        )
    return session


def http_error(exc: Exception, operation: str) -> HTTPException:
    """Translate a store or validation failure into the API's HTTPException."""
    if isinstance(exc, HTTPException):
        return exc
    return error_handler.to_http_exception(exc, {"operation": operation})
