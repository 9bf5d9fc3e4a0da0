"""
In-process catalog store used when no remote backend is configured.

Collections are seeded from the bundled catalog on first use and written back
to a key-value collaborator (``load(key)`` / ``save(key, blob)``) after every
change, one JSON array per collection. It implements the same CatalogBackend
interface as the remote adapters so the reconciliation policy can swap them.
"""

from __future__ import annotations

import copy
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from careguard.error_handler import RecordNotFoundError
from careguard.integrations.contracts.interfaces import CatalogBackend, Origin, RecordType, StoredRecord
from careguard.integrations.contracts.records import (
    RecordDecodeError,
    blob_entry_to_record,
    record_to_blob_entry,
)
from careguard.utils.seed_loader import SeedCatalog

logger = logging.getLogger(__name__)

_COLLECTION_NAMES = {
    RecordType.PRODUCT: "products",
    RecordType.CATEGORY: "categories",
    RecordType.INQUIRY: "inquiries",
}


class LocalFallbackStore(CatalogBackend):
    """
    In-memory stand-in for the remote catalog table.

    Identifiers are short sequence numbers shared by all record types.
    """

    origin = Origin.LOCAL

    def __init__(self, seed: SeedCatalog, persistence=None, namespace: str = "careguard") -> None:
        self._seed = seed
        self._persistence = persistence
        self._namespace = namespace
        self._collections: Optional[Dict[RecordType, List[StoredRecord]]] = None

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #
    def storage_key(self, record_type: RecordType) -> str:
        return f"{self._namespace}_{_COLLECTION_NAMES[record_type]}"

    def _read_blob(self, record_type: RecordType) -> Optional[List[Any]]:
        if self._persistence is None:
            return None
        raw = self._persistence.load(self.storage_key(record_type))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable local collection %s", self.storage_key(record_type))
            return None
        if not isinstance(data, list):
            logger.warning("Local collection %s is not a list; reseeding", self.storage_key(record_type))
            return None
        return data

    def _persist(self, record_type: RecordType) -> None:
        if self._persistence is None or self._collections is None:
            return
        entries = [record_to_blob_entry(r) for r in self._collections[record_type]]
        self._persistence.save(self.storage_key(record_type), json.dumps(entries, default=str))

    def _ensure_loaded(self) -> Dict[RecordType, List[StoredRecord]]:
        if self._collections is not None:
            return self._collections

        raw: Dict[RecordType, Optional[List[Any]]] = {t: self._read_blob(t) for t in RecordType}
        collections: Dict[RecordType, List[StoredRecord]] = {}
        pending: List[tuple] = []

        for record_type, entries in raw.items():
            if entries is None:
                collections[record_type] = self._seed.records(record_type)
                continue
            rows: List[StoredRecord] = []
            for entry in entries:
                try:
                    row = blob_entry_to_record(record_type, entry, fallback_id="")
                except RecordDecodeError as e:
                    logger.warning("Skipping local %s entry: %s", record_type.value, e)
                    continue
                rows.append(row)
                if not row.id:
                    pending.append(row)
            collections[record_type] = rows

        self._collections = collections
        # Legacy bare-string categories carry no id; give them fresh ones.
        for row in pending:
            row.id = self._next_id()
        for record_type, entries in raw.items():
            if entries is None or any(r.type == record_type for r in pending):
                self._persist(record_type)
        return collections

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _next_id(self) -> str:
        highest = 0
        for rows in (self._collections or {}).values():
            for r in rows:
                if r.id.isdigit():
                    highest = max(highest, int(r.id))
        return str(highest + 1)

    def _find(self, record_id: str) -> Optional[StoredRecord]:
        for rows in self._ensure_loaded().values():
            for r in rows:
                if r.id == record_id:
                    return r
        return None

    # ------------------------------------------------------------------ #
    # CatalogBackend
    # ------------------------------------------------------------------ #
    async def list(self, record_type: RecordType, *, access_token: Optional[str] = None) -> List[StoredRecord]:
        return copy.deepcopy(self._ensure_loaded()[record_type])

    async def insert(
        self,
        record_type: RecordType,
        payload: Dict[str, Any],
        *,
        record_id: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> StoredRecord:
        collections = self._ensure_loaded()
        if record_id and self._find(record_id) is not None:
            raise ValueError(f"Record {record_id} already exists")
        row = StoredRecord(
            id=record_id or self._next_id(),
            type=record_type,
            payload=copy.deepcopy(payload),
            created_at=datetime.now(timezone.utc),
        )
        collections[record_type].append(row)
        self._persist(record_type)
        return copy.deepcopy(row)

    async def update(
        self,
        record_id: str,
        payload: Dict[str, Any],
        *,
        access_token: Optional[str] = None,
    ) -> StoredRecord:
        row = self._find(record_id)
        if row is None:
            raise RecordNotFoundError(f"Record {record_id} does not exist")
        row.payload = copy.deepcopy(payload)
        self._persist(row.type)
        return copy.deepcopy(row)

    async def delete(self, record_id: str, *, access_token: Optional[str] = None) -> None:
        row = self._find(record_id)
        if row is None:
            raise RecordNotFoundError(f"Record {record_id} does not exist")
        self._collections[row.type].remove(row)
        self._persist(row.type)

    async def reset(self) -> None:
        """Restore bundled products and categories. Inquiries are kept."""
        collections = self._ensure_loaded()
        for record_type in (RecordType.PRODUCT, RecordType.CATEGORY):
            collections[record_type] = self._seed.records(record_type)
            self._persist(record_type)
        logger.info("Local catalog reset to bundled seed data")
