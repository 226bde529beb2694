"""Pydantic schemas for webhook ingestion and vendor operations."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class WebhookAck(BaseModel):
    """Response returned to the vendor after a webhook delivery."""

    status: Literal["processed", "ignored"] = Field(
        ...,
        description="'ignored' for event types the adapter does not handle",
    )
    platform_id: str
    order_id: Optional[str] = None
    transaction_status: Optional[str] = None


class WebhookRegistrationRequest(BaseModel):
    """Request body for registering our endpoint with a vendor."""

    url: str = Field(..., min_length=1, description="Public webhook URL")


class SyncResponse(BaseModel):
    """Result of a polling sync against a vendor."""

    platform_id: str
    transactions_synced: int
