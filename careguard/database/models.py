"""
SQLAlchemy model for the shared catalog table.
Used by remote_sql when DATABASE_URL is set.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4
from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CatalogRecordRow(Base):
    """One row per product, category or inquiry; ``type`` is the discriminator."""

    __tablename__ = "careguard"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: str(uuid4()))
    type: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    payload: Mapped[Any] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
