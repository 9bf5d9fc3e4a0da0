"""
Direct SQL adapter for the shared ``careguard`` table (DATABASE_URL).
Implements the same CatalogBackend interface as the Supabase REST adapter and
the local fallback store.
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar
from uuid import uuid4

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, NoSuchTableError, ProgrammingError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from careguard.error_handler import (
    AuthorizationError,
    ConfigurationError,
    ConnectivityError,
    RecordNotFoundError,
    StoreError,
)
from careguard.database.models import Base, CatalogRecordRow
from careguard.integrations.contracts.interfaces import CatalogBackend, Origin, RecordType, StoredRecord
from careguard.integrations.contracts.records import parse_timestamp
from careguard.integrations.policy.response_wrappers import IntegrationResponseError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING_SCHEMA = ("no such table", "does not exist", "undefinedtable", "undefined table")
_PERMISSION = ("permission denied", "insufficientprivilege", "row-level security")


def _normalize_connection_string(s: str) -> str:
    """Strip common mistakes: 'psql \'...\'', extra quotes, whitespace."""
    s = s.strip()
    if re.match(r"^psql\s+", s, re.IGNORECASE):
        s = re.sub(r"^psql\s+", "", s, flags=re.IGNORECASE).strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1].strip()
    return s


def classify_sql_error(exc: Exception) -> StoreError:
    """Map a SQLAlchemy failure onto the store error taxonomy."""
    text = str(exc).lower()
    if isinstance(exc, IntegrityError):
        return IntegrationResponseError(f"Database rejected the record: {exc}")
    if isinstance(exc, NoSuchTableError) or any(m in text for m in _MISSING_SCHEMA):
        return ConfigurationError(f"Catalog table is missing: {exc}")
    if any(m in text for m in _PERMISSION):
        return AuthorizationError(f"Database rejected the request: {exc}")
    if isinstance(exc, ProgrammingError):
        return ConfigurationError(f"Catalog schema error: {exc}")
    return ConnectivityError(f"Database unreachable: {exc}")


def create_catalog_engine(connection_string: str, timeout_seconds: float = 15.0) -> Engine:
    url = _normalize_connection_string(connection_string)
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": timeout_seconds},
            poolclass=StaticPool,
        )
    connect_args: Dict[str, Any] = {}
    if url.startswith("postgres"):
        # libpq wants whole seconds; statement_timeout is in milliseconds
        connect_args = {
            "connect_timeout": max(1, math.ceil(timeout_seconds)),
            "options": f"-c statement_timeout={int(timeout_seconds * 1000)}",
        }
    return create_engine(
        url,
        connect_args=connect_args,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=timeout_seconds,
    )


def _to_record(row: CatalogRecordRow) -> StoredRecord:
    return StoredRecord(
        id=row.id,
        type=RecordType(row.type),
        payload=row.payload,
        created_at=parse_timestamp(row.created_at),
    )


class SqlRemoteStore(CatalogBackend):
    """
    Catalog rows over SQLAlchemy. Use when DATABASE_URL is set and no Supabase
    credentials are present. Authorization is whatever the database role allows;
    ``access_token`` is accepted for interface parity and ignored.
    """

    origin = Origin.REMOTE

    def __init__(
        self,
        connection_string: Optional[str] = None,
        *,
        engine: Optional[Engine] = None,
        timeout_seconds: float = 15.0,
    ) -> None:
        if engine is None:
            if not connection_string:
                raise ConfigurationError("DATABASE_URL is not configured.")
            engine = create_catalog_engine(connection_string, timeout_seconds)
        self.engine = engine
        self.timeout_seconds = timeout_seconds
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except SQLAlchemyError as e:
            s.rollback()
            raise classify_sql_error(e) from e
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    # ------------------------------------------------------------------ #
    # CatalogBackend
    # ------------------------------------------------------------------ #
    async def _run(self, fn: Callable[[], T]) -> T:
        """Run blocking session work in a worker thread, bounded by the remote timeout."""
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise ConnectivityError(f"Database did not respond within {self.timeout_seconds:g}s") from e

    async def list(self, record_type: RecordType, *, access_token: Optional[str] = None) -> List[StoredRecord]:
        def _list() -> List[StoredRecord]:
            with self._session() as s:
                stmt = (
                    select(CatalogRecordRow)
                    .where(CatalogRecordRow.type == record_type.value)
                    .order_by(CatalogRecordRow.created_at.desc())
                )
                return [_to_record(r) for r in s.execute(stmt).scalars().all()]

        return await self._run(_list)

    async def insert(
        self,
        record_type: RecordType,
        payload: Dict[str, Any],
        *,
        record_id: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> StoredRecord:
        def _insert() -> StoredRecord:
            with self._session() as s:
                row = CatalogRecordRow(id=record_id or str(uuid4()), type=record_type.value, payload=payload)
                s.add(row)
                s.flush()
                s.refresh(row)
                return _to_record(row)

        return await self._run(_insert)

    async def update(
        self,
        record_id: str,
        payload: Dict[str, Any],
        *,
        access_token: Optional[str] = None,
    ) -> StoredRecord:
        def _update() -> StoredRecord:
            with self._session() as s:
                row = s.get(CatalogRecordRow, record_id)
                if row is None:
                    raise RecordNotFoundError(f"Record {record_id} does not exist")
                row.payload = payload
                s.flush()
                return _to_record(row)

        return await self._run(_update)

    async def delete(self, record_id: str, *, access_token: Optional[str] = None) -> None:
        def _delete() -> None:
            with self._session() as s:
                row = s.get(CatalogRecordRow, record_id)
                if row is None:
                    logger.info("Delete of unknown record %s ignored", record_id)
                    return
                s.delete(row)

        await self._run(_delete)
