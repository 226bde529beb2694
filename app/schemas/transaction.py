"""Pydantic schemas for canonical and stored transactions."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

CanonicalStatus = Literal["completed", "pending", "failed"]


class Customer(BaseModel):
    """Buyer details. The record is required, each field is optional."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    document: Optional[str] = None


class Product(BaseModel):
    """First line item of the order."""

    id: Optional[str] = None
    name: Optional[str] = None
    price: Optional[Decimal] = None
    quantity: Optional[int] = None


class Transaction(BaseModel):
    """Vendor-independent transaction produced by every normalizer."""

    id: str = Field(
        ...,
        max_length=100,
        description="Vendor-supplied order identifier, unique per platform",
    )
    platform_id: str = Field(..., max_length=50)
    order_id: str = Field(
        ...,
        max_length=100,
        description="Vendor's human-facing order number",
    )
    amount: Decimal = Field(
        ...,
        max_digits=18,
        decimal_places=6,
        description="Order total in vendor currency units",
    )
    currency: str = Field(
        "BRL",
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code",
    )
    status: CanonicalStatus
    customer: Customer
    product: Product = Field(default_factory=Product)
    payment_method: Optional[str] = Field(
        None,
        max_length=100,
        description="Raw vendor payment method label",
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Vendor-specific extras (affiliate, subscription, fraud, split...)",
    )


class TransactionUpdate(BaseModel):
    """Partial update for a stored transaction (administrative edits)."""

    order_id: Optional[str] = Field(None, max_length=100)
    amount: Optional[Decimal] = Field(None, max_digits=18, decimal_places=6)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    status: Optional[CanonicalStatus] = None
    payment_method: Optional[str] = Field(None, max_length=100)
    metadata_json: Optional[dict[str, Any]] = None


class TransactionStatusUpdate(BaseModel):
    """Request body for PATCH /transactions/{id}/status."""

    status: CanonicalStatus


class TransactionResponse(BaseModel):
    """Schema returned when reading a stored transaction."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    external_id: str
    platform_id: str
    order_id: str
    user_id: Optional[str] = None
    amount: Decimal
    currency: str
    status: CanonicalStatus
    customer: dict[str, Any]
    product: Optional[dict[str, Any]] = None
    payment_method: Optional[str] = None
    metadata_json: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    synced_at: Optional[datetime] = None
