"""Inbound vendor webhooks.

Deliveries are idempotent: a redelivered event upserts the same row. When
the user configured a webhook secret for the platform, the body must be
signed with it (hex HMAC-SHA256 in ``X-Webhook-Signature``).
"""

import hashlib
import hmac
import json
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from app.api.deps import get_config_store, get_transaction_store, get_user_id
from app.core.logging import get_logger
from app.schemas.webhook import WebhookAck
from app.services.platforms.factory import create_adapter, get_profile
from app.services.store.platform_configs import PlatformConfigStore
from app.services.store.transactions import TransactionStore

logger = get_logger(__name__)

router = APIRouter()


def compute_signature(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(compute_signature(body, secret), signature.strip().lower())


@router.post("/{platform_id}", response_model=WebhookAck)
async def receive_webhook(
    platform_id: str,
    request: Request,
    x_webhook_signature: Optional[str] = Header(None),
    user_id: str = Depends(get_user_id),
    configs: PlatformConfigStore = Depends(get_config_store),
    transactions: TransactionStore = Depends(get_transaction_store),
) -> WebhookAck:
    """Apply one vendor event to the transaction store.

    Events that carry no order are acknowledged as ignored even when the
    platform is disabled; only lifecycle events need an enabled config.
    """
    config = await run_in_threadpool(configs.get_config, user_id, platform_id)

    body = await request.body()
    if config.webhook_secret and not verify_signature(
        body, x_webhook_signature, config.webhook_secret
    ):
        logger.warning("Rejected %s webhook: invalid signature", platform_id)
        raise HTTPException(status_code=401, detail="Invalid webhook signature.")

    try:
        payload = json.loads(body.decode("utf-8-sig"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid JSON: {exc}")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Expected a JSON object.")

    profile = get_profile(platform_id)
    event = payload.get(profile.event_field)
    if not profile.is_lifecycle_event(event):
        logger.info("Ignoring %s webhook event %r", platform_id, event)
        return WebhookAck(status="ignored", platform_id=platform_id)

    adapter = create_adapter(platform_id, config, transactions, user_id)
    record = await adapter.handle_webhook(payload)
    if record is None:
        return WebhookAck(status="ignored", platform_id=platform_id)

    return WebhookAck(
        status="processed",
        platform_id=platform_id,
        order_id=record.order_id,
        transaction_status=record.status,
    )
