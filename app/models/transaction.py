"""Stored transaction model: canonical vendor orders after normalization."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import DateTime, Index, JSON, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class TransactionRecord(Base):
    """One vendor order as persisted after normalization.

    Identity is ``(user_id, platform_id, external_id)``: the same vendor
    order seen again through a poll or a webhook redelivery updates this row
    in place instead of creating a new one, and two accounts that see the
    same vendor order each keep their own row.
    """

    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    external_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Vendor-supplied order identifier",
    )
    platform_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    order_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    user_id: Mapped[Optional[str]] = mapped_column(
        String(100),
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 6),
        nullable=False,
    )
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        comment="ISO 4217 currency code",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        comment="completed | pending | failed",
    )
    customer: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
    )
    product: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
    )
    payment_method: Mapped[Optional[str]] = mapped_column(
        String(100),
    )
    metadata_json: Mapped[Optional[dict[str, Any]]] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        comment="Vendor order creation time",
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        comment="Vendor order last-update time",
    )
    synced_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "platform_id", "external_id", name="uq_transactions_identity"
        ),
        Index("ix_transactions_platform_order", "platform_id", "order_id"),
        Index("ix_transactions_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<TransactionRecord(platform_id={self.platform_id!r}, "
            f"external_id={self.external_id!r}, status={self.status!r})>"
        )
