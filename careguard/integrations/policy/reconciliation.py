"""
Catalog reconciliation policy.

``CatalogStore`` owns the in-process view of products, categories and
inquiries and decides where each operation goes:

- unconfigured: every operation targets the local fallback store; nothing here
  raises ``ConnectivityError``
- configured and reachable: writes go to the remote backend, then all three
  collections are re-fetched and replace the view wholesale
- configured and unreachable: mutations raise ``ConnectivityError`` and leave
  the view untouched; reads keep the last successful sync, or the seed catalog
  when there has never been one

On every successful remote fetch an empty product or category list is replaced
by the bundled seed rows for that type. Inquiries are never seeded. The first
remote write touching a seeded type inserts every seed row of that type (same
ids) before applying the change, so the rest of the seed does not vanish.

In remote mode reads re-fetch once the view is older than ``refresh_seconds``,
and on every read while the last sync failed.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set

from careguard.error_handler import (
    ConfigurationError,
    ConnectivityError,
    ErrorHandler,
    RecordNotFoundError,
    StoreError,
)
from careguard.inquiry_export import inquiries_to_csv
from careguard.integrations.contracts.interfaces import (
    CatalogBackend,
    Category,
    Inquiry,
    Origin,
    Product,
    RecordType,
    StoredRecord,
)
from careguard.integrations.contracts.product_catalogues import (
    UNCATEGORIZED,
    ProductFilter,
    category_counts,
    fallback_category_name,
    filter_products,
    sort_categories,
    sort_products,
)
from careguard.integrations.contracts.records import (
    decode_record,
    decode_records,
    encode_payload,
    format_timestamp,
)
from careguard.utils.seed_loader import SeedCatalog
from careguard.validation import (
    FormValidationError,
    optional_str,
    validate_category_form,
    validate_inquiry_form,
    validate_product_form,
)

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    IDLE = "idle"
    SENDING = "sending"


def _clean_product_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Round-trip a submitted form through the codec so only known fields are stored."""
    product = decode_record(StoredRecord(id="", type=RecordType.PRODUCT, payload=dict(payload)), Origin.LOCAL)
    product.name = product.name.strip()
    product.category = product.category.strip()
    _, clean = encode_payload(product)
    return clean


class CatalogStore:
    def __init__(self, backend: CatalogBackend, seed: SeedCatalog, *, refresh_seconds: float = 30.0) -> None:
        self.backend = backend
        self.seed = seed
        self.refresh_seconds = refresh_seconds

        self.products: List[Product] = []
        self.categories: List[Category] = []
        self.inquiries: List[Inquiry] = []

        self.configured = backend.origin == Origin.REMOTE
        self.connected = False
        self.offline = False
        self.status = SyncStatus.IDLE
        self.last_error: Optional[StoreError] = None
        self.last_synced_at: Optional[datetime] = None

        self._has_synced = False
        self._loaded = False
        self._load_lock = asyncio.Lock()
        # Types currently shown from the seed because the remote had none
        self._seeded: Set[RecordType] = set()

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #
    def _is_stale(self) -> bool:
        if not self._loaded:
            return True
        if not self.configured:
            return False
        if self.last_error is not None or self.last_synced_at is None:
            return True
        age = (datetime.now(timezone.utc) - self.last_synced_at).total_seconds()
        return age >= self.refresh_seconds

    async def ensure_loaded(self) -> None:
        if not self._is_stale():
            return
        async with self._load_lock:
            if self._is_stale():
                await self.reload()

    async def reload(self, access_token: Optional[str] = None) -> None:
        """Re-fetch all three collections. Read failures are logged, never raised."""
        if not self.configured:
            await self._reload_local()
        else:
            await self._reload_remote(access_token)
        self._loaded = True

    async def _reload_local(self) -> None:
        rows = {t: await self.backend.list(t) for t in RecordType}
        self.products = sort_products(decode_records(rows[RecordType.PRODUCT], Origin.LOCAL, logger))
        self.categories = sort_categories(decode_records(rows[RecordType.CATEGORY], Origin.LOCAL, logger))
        self.inquiries = decode_records(rows[RecordType.INQUIRY], Origin.LOCAL, logger)
        self.last_synced_at = datetime.now(timezone.utc)

    async def _reload_remote(self, access_token: Optional[str]) -> None:
        try:
            rows = {t: await self.backend.list(t, access_token=access_token) for t in RecordType}
        except StoreError as e:
            logger.warning("Catalog reload failed (%s): %s", e.kind, e.message)
            self.last_error = e
            self.connected = False
            self.offline = isinstance(e, ConnectivityError)
            if not self._has_synced:
                self.products = sort_products(self.seed.products())
                self.categories = sort_categories(self.seed.categories())
                self.inquiries = []
            return

        products = decode_records(rows[RecordType.PRODUCT], Origin.REMOTE, logger)
        categories = decode_records(rows[RecordType.CATEGORY], Origin.REMOTE, logger)
        seeded: Set[RecordType] = set()
        if not products:
            products = self.seed.products()
            seeded.add(RecordType.PRODUCT)
        if not categories:
            categories = self.seed.categories()
            seeded.add(RecordType.CATEGORY)

        self.products = sort_products(products)
        self.categories = sort_categories(categories)
        self._seeded = seeded
        self.inquiries = decode_records(rows[RecordType.INQUIRY], Origin.REMOTE, logger)
        self.connected = True
        self.offline = False
        self.last_error = None
        self.last_synced_at = datetime.now(timezone.utc)
        self._has_synced = True
        logger.info(
            "Catalog synced: %d products, %d categories, %d inquiries",
            len(self.products), len(self.categories), len(self.inquiries),
        )

    async def _promote_seeded(self, record_type: RecordType, access_token: Optional[str]) -> None:
        """Insert every seed-substituted row of ``record_type`` remotely, keeping its id."""
        if not self.configured or record_type not in self._seeded:
            return
        records = self.products if record_type == RecordType.PRODUCT else self.categories
        pending = [r for r in records if r.origin == Origin.LOCAL]
        logger.info("Promoting %d seeded %s records to the remote backend", len(pending), record_type.value)
        for record in pending:
            _, payload = encode_payload(record)
            await self.backend.insert(record_type, payload, record_id=record.id, access_token=access_token)
            record.origin = Origin.REMOTE
        self._seeded.discard(record_type)

    async def _mutate(
        self,
        action: str,
        operation: Callable[[], Awaitable[Any]],
        access_token: Optional[str],
        *,
        promote: Sequence[RecordType] = (),
    ) -> Any:
        """Run a write against the backend, then re-fetch.

        Callers load the view first; records they pass to ``operation`` must be
        the ones currently held so promotion can mark them remote.
        """
        self.status = SyncStatus.SENDING
        try:
            try:
                for record_type in promote:
                    await self._promote_seeded(record_type, access_token)
                result = await operation()
            except ConnectivityError as e:
                logger.error("%s failed, backend unreachable: %s", action, e.message)
                self.connected = False
                self.offline = True
                self.last_error = e
                raise
            except ConfigurationError as e:
                logger.error("%s failed, backend not set up: %s", action, e.message)
                self.connected = False
                self.last_error = e
                raise
            except StoreError as e:
                logger.error("%s failed (%s): %s", action, e.kind, e.message)
                if self.configured:
                    # Earlier steps of a multi-write operation may have landed
                    await self.reload(access_token=access_token)
                self.last_error = e
                raise
            await self.reload(access_token=access_token)
            return result
        finally:
            self.status = SyncStatus.IDLE

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def list_products(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        admin_search: Optional[str] = None,
    ) -> List[Product]:
        return filter_products(self.products, ProductFilter(category=category, search=search, admin_search=admin_search))

    def get_product(self, product_id: str) -> Optional[Product]:
        for p in self.products:
            if p.id == product_id:
                return p
        return None

    def list_categories(self) -> List[Category]:
        return list(self.categories)

    def category_counts(self) -> Dict[str, int]:
        counts = category_counts(self.products)
        return {c.name: counts.get(c.name, 0) for c in self.categories}

    def find_category(self, name: str) -> Optional[Category]:
        target = (name or "").strip().lower()
        for c in self.categories:
            if c.name.lower() == target:
                return c
        return None

    def _get_category(self, category_id: str) -> Optional[Category]:
        for c in self.categories:
            if c.id == category_id:
                return c
        return None

    def list_inquiries(self) -> List[Inquiry]:
        """Newest first; inquiries without a timestamp sort last."""
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(self.inquiries, key=lambda i: i.timestamp or oldest, reverse=True)

    def _get_inquiry(self, inquiry_id: str) -> Optional[Inquiry]:
        for i in self.inquiries:
            if i.id == inquiry_id:
                return i
        return None

    # ------------------------------------------------------------------ #
    # Products
    # ------------------------------------------------------------------ #
    async def _write_product(self, product: Product, payload: Dict[str, Any], access_token: Optional[str]) -> StoredRecord:
        # Still local only when the view fell back to the seed without a sync;
        # insert with the id it already carries.
        if self.configured and product.origin == Origin.LOCAL:
            logger.info("Promoting local product %s to the remote backend", product.id)
            return await self.backend.insert(
                RecordType.PRODUCT, payload, record_id=product.id, access_token=access_token
            )
        return await self.backend.update(product.id, payload, access_token=access_token)

    async def add_product(self, payload: Dict[str, Any], access_token: Optional[str] = None) -> Product:
        validate_product_form(payload)
        await self.ensure_loaded()
        clean = _clean_product_payload(payload)

        async def op():
            return await self.backend.insert(RecordType.PRODUCT, clean, access_token=access_token)

        row = await self._mutate("add_product", op, access_token, promote=(RecordType.PRODUCT,))
        return self.get_product(row.id) or decode_record(row, self.backend.origin)

    async def update_product(self, product_id: str, payload: Dict[str, Any], access_token: Optional[str] = None) -> Product:
        validate_product_form(payload)
        await self.ensure_loaded()
        existing = self.get_product(product_id)
        if existing is None:
            raise RecordNotFoundError(f"Product {product_id} does not exist")
        clean = _clean_product_payload(payload)

        async def op():
            return await self._write_product(existing, clean, access_token)

        row = await self._mutate("update_product", op, access_token, promote=(RecordType.PRODUCT,))
        return self.get_product(product_id) or decode_record(row, self.backend.origin)

    async def delete_product(self, product_id: str, access_token: Optional[str] = None) -> None:
        await self.ensure_loaded()
        if self.get_product(product_id) is None:
            raise RecordNotFoundError(f"Product {product_id} does not exist")

        async def op():
            await self.backend.delete(product_id, access_token=access_token)

        await self._mutate("delete_product", op, access_token, promote=(RecordType.PRODUCT,))

    # ------------------------------------------------------------------ #
    # Categories
    # ------------------------------------------------------------------ #
    async def add_category(self, name: str, access_token: Optional[str] = None) -> Category:
        await self.ensure_loaded()
        value = validate_category_form(name, [c.name for c in self.categories])

        async def op():
            return await self.backend.insert(RecordType.CATEGORY, {"name": value}, access_token=access_token)

        row = await self._mutate("add_category", op, access_token, promote=(RecordType.CATEGORY,))
        return self.find_category(value) or decode_record(row, self.backend.origin)

    async def delete_category(self, category_id: str, access_token: Optional[str] = None) -> str:
        """Delete a category, moving its products to a fallback. Returns the fallback name."""
        await self.ensure_loaded()
        category = self._get_category(category_id)
        if category is None:
            raise RecordNotFoundError(f"Category {category_id} does not exist")

        affected = [p for p in self.products if p.category == category.name]
        remaining = sort_categories([c for c in self.categories if c.id != category.id])
        fallback = fallback_category_name(remaining, category.name)

        async def op():
            target = fallback
            if affected and target is None:
                logger.info("No categories left after removing %s; creating %s", category.name, UNCATEGORIZED)
                await self.backend.insert(RecordType.CATEGORY, {"name": UNCATEGORIZED}, access_token=access_token)
                target = UNCATEGORIZED
            for product in affected:
                _, payload = encode_payload(product)
                payload["category"] = target
                await self._write_product(product, payload, access_token)
            await self.backend.delete(category.id, access_token=access_token)
            return target

        promote = (RecordType.CATEGORY, RecordType.PRODUCT) if affected else (RecordType.CATEGORY,)
        target = await self._mutate("delete_category", op, access_token, promote=promote)
        if affected:
            logger.info("Reassigned %d products from %s to %s", len(affected), category.name, target)
        return target or ""

    # ------------------------------------------------------------------ #
    # Inquiries
    # ------------------------------------------------------------------ #
    async def add_inquiry(self, payload: Dict[str, Any], access_token: Optional[str] = None) -> Inquiry:
        validate_inquiry_form(payload)
        await self.ensure_loaded()
        product = self.get_product(optional_str(payload, "productId"))
        if product is None:
            raise FormValidationError(
                field_errors={"productId": "Product not found"},
                message="The selected product is no longer available.",
            )

        inquiry = Inquiry(
            id="",
            product_id=product.id,
            product_name=product.name,
            name=optional_str(payload, "name"),
            email=optional_str(payload, "email"),
            company=optional_str(payload, "company"),
            quantity=optional_str(payload, "quantity"),
            message=optional_str(payload, "message"),
            requirement=optional_str(payload, "requirement") or "Standard",
            timestamp=datetime.now(timezone.utc),
        )
        _, record = encode_payload(inquiry)

        async def op():
            return await self.backend.insert(RecordType.INQUIRY, record, access_token=access_token)

        row = await self._mutate("add_inquiry", op, access_token)
        return self._get_inquiry(row.id) or decode_record(row, self.backend.origin)

    async def delete_inquiry(self, inquiry_id: str, access_token: Optional[str] = None) -> None:
        await self.ensure_loaded()
        if self._get_inquiry(inquiry_id) is None:
            raise RecordNotFoundError(f"Inquiry {inquiry_id} does not exist")

        async def op():
            await self.backend.delete(inquiry_id, access_token=access_token)

        await self._mutate("delete_inquiry", op, access_token)

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #
    async def reset(self, access_token: Optional[str] = None) -> None:
        """Local mode restores the bundled catalog; remote mode only re-fetches."""
        if not self.configured:
            await self._mutate("reset", self.backend.reset, access_token)
            return
        await self.reload(access_token=access_token)

    def export_inquiries_csv(self) -> str:
        return inquiries_to_csv(self.list_inquiries())

    def status_snapshot(self) -> Dict[str, Any]:
        error = self.last_error
        if error is None and not self.configured:
            error = ConfigurationError("No remote backend configured; using local data.")
        return {
            "configured": self.configured,
            "connected": self.connected,
            "offline": self.offline,
            "status": self.status.value,
            "last_error": self.last_error.kind if self.last_error else None,
            "last_synced_at": format_timestamp(self.last_synced_at),
            "counts": {
                "products": len(self.products),
                "categories": len(self.categories),
                "inquiries": len(self.inquiries),
            },
            "banner": ErrorHandler.banner_for(error),
        }
