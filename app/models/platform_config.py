"""Per-user platform integration configuration."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, JSON, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class PlatformConfigRecord(Base):
    """Credentials, flags and health snapshot for one user's platform."""

    __tablename__ = "payment_platforms"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    platform_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    api_key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )
    secret_key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )
    client_id: Mapped[Optional[str]] = mapped_column(String(255))
    client_secret: Mapped[Optional[str]] = mapped_column(String(255))
    webhook_url: Mapped[Optional[str]] = mapped_column(String(500))
    webhook_secret: Mapped[Optional[str]] = mapped_column(String(255))
    enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    sandbox: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )
    settings: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
    )
    status: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        comment="is_active | last_checked | uptime | latency | errors",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "platform_id", name="uq_payment_platforms_user"),
    )

    def __repr__(self) -> str:
        return (
            f"<PlatformConfigRecord(user_id={self.user_id!r}, "
            f"platform_id={self.platform_id!r}, enabled={self.enabled})>"
        )
