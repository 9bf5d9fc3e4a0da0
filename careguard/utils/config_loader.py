"""
Runtime configuration for the catalog service.

Settings come from environment variables (optionally via a .env file) and are
validated into ``AppSettings``. Backend selection follows one rule: Supabase
credentials win, then ``DATABASE_URL``, otherwise the local fallback store.
"""

from __future__ import annotations

import logging
import os
from typing import Literal, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

RemoteMode = Literal["auto", "supabase", "sql", "local"]


class AppSettings(BaseModel):
    supabase_url: str = ""
    supabase_anon_key: str = ""
    database_url: str = ""
    remote: RemoteMode = "auto"
    table: str = "careguard"
    redis_url: str = ""
    namespace: str = "careguard"
    admin_email: str = ""
    admin_password: str = ""
    remote_timeout_seconds: float = Field(default=15.0, gt=0, le=300)
    refresh_seconds: float = Field(default=30.0, ge=0)
    session_ttl_seconds: int = Field(default=8 * 3600, ge=60)
    log_level: str = "INFO"
    seed_path: Optional[str] = None

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key and "placeholder" not in self.supabase_url)

    @property
    def backend(self) -> Literal["supabase", "sql", "local"]:
        """Effective storage target after applying the selection rule."""
        if self.remote == "local":
            return "local"
        if self.remote == "supabase":
            return "supabase" if self.supabase_configured else "local"
        if self.remote == "sql":
            return "sql" if self.database_url else "local"
        if self.supabase_configured:
            return "supabase"
        if self.database_url:
            return "sql"
        return "local"

    @property
    def is_configured(self) -> bool:
        return self.backend != "local"


def _lookup(env: Mapping[str, str], key: str) -> str:
    """Read ``key`` accepting the prefixes used by the storefront build tools."""
    candidates = [key, f"VITE_{key}", f"NEXT_PUBLIC_{key}"]
    if key.endswith("ANON_KEY"):
        alt = key.replace("ANON_KEY", "PUBLISHABLE_DEFAULT_KEY")
        candidates += [alt, f"VITE_{alt}", f"NEXT_PUBLIC_{alt}"]
    for k in candidates:
        value = (env.get(k) or "").strip()
        if value:
            return value
    return ""


def load_settings(env: Optional[Mapping[str, str]] = None) -> AppSettings:
    """
    Build settings from ``env`` (defaults to ``os.environ`` after loading .env).

    Raises:
        ValidationError: if a value does not match the schema
    """
    if env is None:
        load_dotenv()
        env = os.environ

    data = {
        "supabase_url": _lookup(env, "SUPABASE_URL").rstrip("/"),
        "supabase_anon_key": _lookup(env, "SUPABASE_ANON_KEY"),
        "database_url": (env.get("DATABASE_URL") or "").strip(),
        "remote": (env.get("CAREGUARD_REMOTE") or "auto").strip().lower(),
        "table": env.get("CAREGUARD_TABLE") or "careguard",
        "redis_url": (env.get("REDIS_URL") or "").strip(),
        "namespace": env.get("CAREGUARD_NAMESPACE") or "careguard",
        "admin_email": (env.get("ADMIN_EMAIL") or "").strip(),
        "admin_password": env.get("ADMIN_PASSWORD") or "",
        "log_level": (env.get("LOG_LEVEL") or "INFO").upper(),
        "seed_path": env.get("CAREGUARD_SEED_PATH") or None,
    }
    if env.get("REMOTE_TIMEOUT_SECONDS"):
        data["remote_timeout_seconds"] = env["REMOTE_TIMEOUT_SECONDS"]
    if env.get("SESSION_TTL_SECONDS"):
        data["session_ttl_seconds"] = env["SESSION_TTL_SECONDS"]
    if env.get("CATALOG_REFRESH_SECONDS"):
        data["refresh_seconds"] = env["CATALOG_REFRESH_SECONDS"]

    try:
        settings = AppSettings(**data)
    except ValidationError as e:
        logger.error("Settings validation failed: %s", e)
        raise

    logger.info("Catalog backend: %s (namespace=%s)", settings.backend, settings.namespace)
    return settings
