"""Pydantic schemas for the platform catalog and per-user configuration.

Every settings/status field carries a default so an integration never
exists in an "undefined settings" state: a platform the user has not
touched yet is indistinguishable from a disabled one.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PlatformInfo(BaseModel):
    """One catalog entry of the platform registry."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    logo: str
    category: str = "Pagamentos"


class PlatformFeatures(BaseModel):
    webhooks: bool = True
    refunds: bool = False
    subscriptions: bool = False
    split_payments: bool = False


class PlatformLimits(BaseModel):
    min_amount: Decimal = Decimal("0")
    max_amount: Decimal = Decimal("0")
    daily_transactions: int = 0
    monthly_transactions: int = 0


class PlatformSettings(BaseModel):
    """User-overridable integration settings."""

    features: PlatformFeatures = Field(default_factory=PlatformFeatures)
    limits: PlatformLimits = Field(default_factory=PlatformLimits)
    currencies: list[str] = Field(default_factory=lambda: ["BRL"])
    payment_methods: list[str] = Field(default_factory=list)
    countries: list[str] = Field(default_factory=lambda: ["BR"])
    test_mode: bool = True
    shop_domain: Optional[str] = Field(
        None,
        description="Merchant host for per-shop APIs, e.g. store.myshopify.com",
    )


class PlatformStatus(BaseModel):
    """Operational health snapshot, not transactional data."""

    is_active: bool = True
    last_checked: Optional[datetime] = None
    uptime: float = 0.0
    latency: float = 0.0
    errors: int = 0


class PlatformCredentials(BaseModel):
    api_key: str = ""
    secret_key: str = ""
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    webhook_url: Optional[str] = None
    webhook_secret: Optional[str] = None


class PlatformConfig(PlatformCredentials):
    """Flat read shape of one user's configuration for one platform.

    ``id`` is the registry platform id.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    enabled: bool = False
    sandbox: bool = True
    settings: PlatformSettings = Field(default_factory=PlatformSettings)
    status: PlatformStatus = Field(default_factory=PlatformStatus)


class PlatformConfigUpdate(BaseModel):
    """Partial update; only fields explicitly sent are applied."""

    api_key: Optional[str] = None
    secret_key: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    webhook_url: Optional[str] = None
    webhook_secret: Optional[str] = None
    enabled: Optional[bool] = None
    sandbox: Optional[bool] = None
    settings: Optional[PlatformSettings] = None


class PlatformConfigSave(PlatformCredentials):
    """Full credential edit submitted from the configuration form."""

    enabled: bool = False
    sandbox: bool = True
    settings: PlatformSettings = Field(default_factory=PlatformSettings)


class PlatformIntegration(BaseModel):
    """Registry entry, credentials, settings and health for one platform."""

    platform: PlatformInfo
    config: PlatformCredentials
    enabled: bool
    sandbox: bool
    settings: PlatformSettings
    status: PlatformStatus
