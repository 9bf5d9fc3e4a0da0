from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class RecordType(str, Enum):
    PRODUCT = "product"
    CATEGORY = "category"
    INQUIRY = "inquiry"


class Origin(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


# ---------------------------------------------------------------------------
# Catalog entities
# ---------------------------------------------------------------------------

@dataclass
class SizeChartEntry:
    label: str
    inches: str = ""
    cm: str = ""


@dataclass
class AdditionalInfo:
    material: str = ""
    compliance: str = ""
    packaging: str = ""


@dataclass
class Product:
    id: str
    name: str
    category: str                        # category *name*, not a foreign key
    description: str = ""
    image: str = ""
    extra_images: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)
    size_chart: List[SizeChartEntry] = field(default_factory=list)
    additional_info: AdditionalInfo = field(default_factory=AdditionalInfo)
    origin: Origin = Origin.LOCAL


@dataclass
class Category:
    id: str
    name: str
    origin: Origin = Origin.LOCAL


@dataclass
class Inquiry:
    id: str
    product_id: str                      # weak reference, may dangle
    product_name: str                    # snapshot at submission time
    name: str
    email: str
    company: str = ""
    quantity: str = ""
    message: str = ""
    requirement: str = "Standard"
    timestamp: Optional[datetime] = None
    origin: Origin = Origin.LOCAL


CatalogEntity = Union[Product, Category, Inquiry]


# ---------------------------------------------------------------------------
# Storage row
# ---------------------------------------------------------------------------

@dataclass
class StoredRecord:
    """One row of the shared ``careguard`` table."""
    id: str
    type: RecordType
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Backend contract
# ---------------------------------------------------------------------------

class CatalogBackend(ABC):
    """Row-level CRUD over the shared table, filtered/tagged by record type.

    Implemented by the local fallback store and by both remote adapters.
    ``access_token`` is the signed-in admin's session token; remote adapters
    forward it so the backend enforces authorization itself.
    """

    origin: Origin = Origin.LOCAL

    @abstractmethod
    async def list(self, record_type: RecordType, *, access_token: Optional[str] = None) -> List[StoredRecord]:
        ...

    @abstractmethod
    async def insert(
        self,
        record_type: RecordType,
        payload: Dict[str, Any],
        *,
        record_id: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> StoredRecord:
        ...

    @abstractmethod
    async def update(
        self,
        record_id: str,
        payload: Dict[str, Any],
        *,
        access_token: Optional[str] = None,
    ) -> StoredRecord:
        ...

    @abstractmethod
    async def delete(self, record_id: str, *, access_token: Optional[str] = None) -> None:
        ...

    async def reset(self) -> None:
        """Restore bundled defaults. Remote backends have nothing to restore."""
        return None


# ---------------------------------------------------------------------------
# Authentication contract
# ---------------------------------------------------------------------------

@dataclass
class AuthSession:
    access_token: str
    email: str
    expires_in: int = 3600                # seconds, as reported by the issuer


class AuthClient(ABC):
    """Email + password authentication. Admin access is gated on session presence only."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        """Register an account; None when the issuer requires email confirmation first."""
        ...

    async def sign_out(self, access_token: str) -> None:
        return None
