"""FastAPI dependencies shared by the route modules."""

from __future__ import annotations

from typing import Optional

import httpx
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.services.registry import PlatformRegistry
from app.services.store.platform_configs import PlatformConfigStore
from app.services.store.transactions import TransactionStore

_registry = PlatformRegistry()


def get_registry() -> PlatformRegistry:
    return _registry


def get_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Caller identity, set by the auth proxy in front of this service."""
    return (x_user_id or "").strip() or settings.default_user_id


def get_transaction_store(db: Session = Depends(get_db)) -> TransactionStore:
    return TransactionStore(db, enforce_monotonic_updates=settings.enforce_monotonic_updates)


def get_config_store(
    db: Session = Depends(get_db),
    registry: PlatformRegistry = Depends(get_registry),
) -> PlatformConfigStore:
    return PlatformConfigStore(db, registry)


def get_vendor_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for outbound vendor calls; None means real network I/O."""
    return None
