"""Platform catalog, per-user configuration and vendor operations.

Sync and webhook registration call the vendor API with the credentials
stored for the requesting user.
"""

import time
from typing import List, Optional

import httpx
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from app.api.deps import (
    get_config_store,
    get_registry,
    get_transaction_store,
    get_user_id,
    get_vendor_transport,
)
from app.core.exceptions import IntegrationError
from app.core.logging import get_logger
from app.schemas.platform import (
    PlatformConfig,
    PlatformConfigSave,
    PlatformInfo,
    PlatformIntegration,
)
from app.schemas.webhook import SyncResponse, WebhookRegistrationRequest
from app.services.platforms.factory import create_adapter
from app.services.registry import PlatformRegistry
from app.services.store.platform_configs import PlatformConfigStore
from app.services.store.transactions import TransactionStore

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=List[PlatformInfo])
def list_platforms(registry: PlatformRegistry = Depends(get_registry)) -> List[PlatformInfo]:
    """Every supported platform, in display order."""
    return registry.list()


@router.get("/configs", response_model=List[PlatformConfig])
def list_platform_configs(
    user_id: str = Depends(get_user_id),
    configs: PlatformConfigStore = Depends(get_config_store),
) -> List[PlatformConfig]:
    """The user's configuration for every platform.

    Platforms the user never configured come back disabled and sandboxed.
    """
    return configs.get_all_configs(user_id)


@router.get("/{platform_id}/integration", response_model=PlatformIntegration)
def get_platform_integration(
    platform_id: str,
    user_id: str = Depends(get_user_id),
    configs: PlatformConfigStore = Depends(get_config_store),
) -> PlatformIntegration:
    return configs.get_integration(user_id, platform_id)


@router.put("/{platform_id}/config", response_model=PlatformConfig)
def save_platform_config(
    platform_id: str,
    payload: PlatformConfigSave,
    user_id: str = Depends(get_user_id),
    configs: PlatformConfigStore = Depends(get_config_store),
) -> PlatformConfig:
    """Save the full credential form for one platform."""
    return configs.save_config(user_id, platform_id, payload)


@router.post("/{platform_id}/toggle", response_model=PlatformConfig)
def toggle_platform(
    platform_id: str,
    user_id: str = Depends(get_user_id),
    configs: PlatformConfigStore = Depends(get_config_store),
) -> PlatformConfig:
    """Flip the enabled flag, leaving credentials and settings untouched."""
    current = configs.get_config(user_id, platform_id)
    logger.info(
        "Toggling %s for user %s: enabled %s -> %s",
        platform_id,
        user_id,
        current.enabled,
        not current.enabled,
    )
    return configs.update_config(user_id, platform_id, {"enabled": not current.enabled})


@router.post("/{platform_id}/sync", response_model=SyncResponse)
async def sync_platform(
    platform_id: str,
    user_id: str = Depends(get_user_id),
    configs: PlatformConfigStore = Depends(get_config_store),
    transactions: TransactionStore = Depends(get_transaction_store),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_vendor_transport),
) -> SyncResponse:
    """Poll the vendor and upsert every order it returns.

    The outcome (success, latency) is recorded on the platform status.
    """
    config = await run_in_threadpool(configs.get_config, user_id, platform_id)
    adapter = create_adapter(platform_id, config, transactions, user_id, transport=transport)

    started = time.perf_counter()
    try:
        synced = await adapter.sync_transactions()
    except IntegrationError:
        await run_in_threadpool(
            configs.record_health,
            user_id,
            platform_id,
            ok=False,
            latency_ms=_elapsed_ms(started),
        )
        raise
    await run_in_threadpool(
        configs.record_health, user_id, platform_id, ok=True, latency_ms=_elapsed_ms(started)
    )

    return SyncResponse(platform_id=platform_id, transactions_synced=synced)


@router.post("/{platform_id}/webhook-registration")
async def register_platform_webhook(
    platform_id: str,
    payload: WebhookRegistrationRequest,
    user_id: str = Depends(get_user_id),
    configs: PlatformConfigStore = Depends(get_config_store),
    transactions: TransactionStore = Depends(get_transaction_store),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_vendor_transport),
) -> dict:
    """Register our webhook URL with the vendor and remember it."""
    config = await run_in_threadpool(configs.get_config, user_id, platform_id)
    adapter = create_adapter(platform_id, config, transactions, user_id, transport=transport)

    await adapter.create_webhook(payload.url)
    await run_in_threadpool(
        configs.update_config, user_id, platform_id, {"webhook_url": payload.url}
    )

    return {
        "status": "registered",
        "platform_id": platform_id,
        "url": payload.url,
        "events": list(adapter.profile.webhook_events),
    }


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
