"""
Seed catalog loader (bundled products and categories).
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from careguard.integrations.contracts.interfaces import Category, Origin, Product, RecordType, StoredRecord
from careguard.integrations.contracts.records import decode_record

logger = logging.getLogger(__name__)

DEFAULT_SEED_PATH = Path(__file__).parent.parent / "seed_data" / "catalog.yml"


class SeedSizeRow(BaseModel):
    label: str
    inches: str = ""
    cm: str = ""


class SeedAdditionalInfo(BaseModel):
    material: str = ""
    compliance: str = ""
    packaging: str = ""


class SeedProduct(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    description: str = ""
    image: str = ""
    extra_images: List[str] = Field(default_factory=list, alias="extraImages")
    features: List[str] = Field(default_factory=list)
    size_chart: List[SeedSizeRow] = Field(default_factory=list, alias="sizeChart")
    additional_info: SeedAdditionalInfo = Field(default_factory=SeedAdditionalInfo, alias="additionalInfo")


class SeedCategory(BaseModel):
    id: str
    name: str = Field(min_length=1)


class SeedFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    products: List[SeedProduct] = Field(default_factory=list)
    categories: List[SeedCategory] = Field(default_factory=list)


@dataclass
class SeedCatalog:
    """Seed rows per record type. Accessors hand out copies so callers can mutate freely."""

    rows: Dict[RecordType, List[StoredRecord]] = field(default_factory=dict)

    def records(self, record_type: RecordType) -> List[StoredRecord]:
        return copy.deepcopy(self.rows.get(record_type, []))

    def products(self) -> List[Product]:
        return [decode_record(r, Origin.LOCAL) for r in self.records(RecordType.PRODUCT)]

    def categories(self) -> List[Category]:
        return [decode_record(r, Origin.LOCAL) for r in self.records(RecordType.CATEGORY)]


def load_seed_catalog(seed_path: Optional[Path] = None) -> SeedCatalog:
    if seed_path is None:
        seed_path = DEFAULT_SEED_PATH
    seed_path = Path(seed_path)

    if not seed_path.exists():
        raise FileNotFoundError(f"Seed catalog not found: {seed_path}")

    with open(seed_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    try:
        seed = SeedFile(**data)
    except ValidationError as e:
        logger.error("Seed catalog validation failed: %s", e)
        raise

    products = [
        StoredRecord(
            id=p.id,
            type=RecordType.PRODUCT,
            payload=p.model_dump(by_alias=True, exclude={"id"}),
        )
        for p in seed.products
    ]
    categories = [
        StoredRecord(id=c.id, type=RecordType.CATEGORY, payload={"name": c.name})
        for c in seed.categories
    ]
    logger.info("Loaded seed catalog from %s: %d products, %d categories", seed_path, len(products), len(categories))
    return SeedCatalog(rows={RecordType.PRODUCT: products, RecordType.CATEGORY: categories, RecordType.INQUIRY: []})
