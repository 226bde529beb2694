"""SQLAlchemy models for the payment integration service."""

from app.models.platform_config import PlatformConfigRecord
from app.models.transaction import TransactionRecord

__all__ = [
    "PlatformConfigRecord",
    "TransactionRecord",
]
