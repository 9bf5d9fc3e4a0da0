"""Pytest fixtures for catalog storage, reconciliation and API tests."""

from typing import Any, Dict, List, Optional

import pytest

from careguard.database.local_store import LocalFallbackStore
from careguard.database.models import CatalogRecordRow
from careguard.database.redis import RedisCache
from careguard.database.remote_sql import SqlRemoteStore
from careguard.error_handler import ConnectivityError
from careguard.integrations.contracts.interfaces import CatalogBackend, Origin, RecordType, StoredRecord
from careguard.integrations.policy.reconciliation import CatalogStore
from careguard.utils.seed_loader import load_seed_catalog


class FlakyBackend(CatalogBackend):
    """Wraps a remote backend; set ``down`` to simulate an unreachable network."""

    origin = Origin.REMOTE

    def __init__(self, inner: CatalogBackend):
        self.inner = inner
        self.down = False
        self.writes: List[str] = []

    def _check(self):
        if self.down:
            raise ConnectivityError("network down")

    async def list(self, record_type: RecordType, *, access_token: Optional[str] = None) -> List[StoredRecord]:
        self._check()
        return await self.inner.list(record_type, access_token=access_token)

    async def insert(self, record_type, payload: Dict[str, Any], *, record_id=None, access_token=None):
        self._check()
        self.writes.append(f"insert:{record_type.value}:{record_id or ''}")
        return await self.inner.insert(record_type, payload, record_id=record_id, access_token=access_token)

    async def update(self, record_id: str, payload: Dict[str, Any], *, access_token=None):
        self._check()
        self.writes.append(f"update:{record_id}")
        return await self.inner.update(record_id, payload, access_token=access_token)

    async def delete(self, record_id: str, *, access_token=None):
        self._check()
        self.writes.append(f"delete:{record_id}")
        return await self.inner.delete(record_id, access_token=access_token)


@pytest.fixture
def seed():
    return load_seed_catalog()


@pytest.fixture
def cache():
    """In-memory key-value stand-in for Redis."""
    return RedisCache()


@pytest.fixture
def local_backend(seed, cache):
    return LocalFallbackStore(seed, persistence=cache)


@pytest.fixture
def local_store(local_backend, seed):
    """CatalogStore with no remote configured."""
    return CatalogStore(local_backend, seed)


@pytest.fixture
def sql_backend():
    """SqlRemoteStore over an in-memory SQLite database with the table created."""
    store = SqlRemoteStore(connection_string="sqlite://")
    store.create_tables()
    return store


@pytest.fixture
def flaky_backend(sql_backend):
    return FlakyBackend(sql_backend)


@pytest.fixture
def remote_store(flaky_backend, seed):
    """CatalogStore in remote mode over an empty SQLite table."""
    return CatalogStore(flaky_backend, seed)


@pytest.fixture
def seeded_remote_store(flaky_backend, sql_backend, seed):
    """Remote mode with the bundled catalog already loaded into the table."""
    for record_type in (RecordType.CATEGORY, RecordType.PRODUCT):
        for row in seed.records(record_type):
            _insert_sync(sql_backend, record_type, row)
    return CatalogStore(flaky_backend, seed)


def _insert_sync(backend: SqlRemoteStore, record_type: RecordType, row: StoredRecord) -> None:
    with backend.SessionLocal() as s:
        s.add(CatalogRecordRow(id=row.id, type=record_type.value, payload=row.payload))
        s.commit()
