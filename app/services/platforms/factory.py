"""Build adapters from a user's stored platform configuration."""

from __future__ import annotations

from typing import Optional

import httpx

from app.core.exceptions import PlatformDisabledError, UnknownPlatformError
from app.schemas.platform import PlatformConfig
from app.services.platforms.adapter import PlatformAdapter, VendorProfile
from app.services.platforms.vendors import ADAPTER_PROFILES
from app.services.store.transactions import TransactionStore


def get_profile(platform_id: str) -> VendorProfile:
    profile = ADAPTER_PROFILES.get(platform_id)
    if profile is None:
        raise UnknownPlatformError(platform_id)
    return profile


def create_adapter(
    platform_id: str,
    config: PlatformConfig,
    store: TransactionStore,
    user_id: Optional[str] = None,
    *,
    require_enabled: bool = True,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PlatformAdapter:
    """Return an adapter bound to ``config``'s credentials and environment.

    Raises:
        UnknownPlatformError: No vendor profile exists for ``platform_id``.
        PlatformDisabledError: The config is disabled and ``require_enabled``.
    """
    profile = get_profile(platform_id)
    if require_enabled and not config.enabled:
        raise PlatformDisabledError(f"Platform {platform_id!r} is disabled")
    return PlatformAdapter(
        profile,
        config.api_key,
        config.secret_key,
        config.sandbox,
        store=store,
        user_id=user_id,
        timeout=timeout,
        transport=transport,
        shop_domain=config.settings.shop_domain,
    )
