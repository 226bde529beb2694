"""Systeme.io: marketing funnels with built-in checkout."""

from __future__ import annotations

from typing import Any, Mapping

from app.core.config import settings
from app.schemas.transaction import Transaction
from app.services.ingestion.normalizer import (
    build_customer,
    build_product,
    build_transaction,
    collect_blocks,
    first_item,
    normalize_date,
    require_amount,
    require_id,
    require_status,
    resolve_currency,
    to_str,
)
from app.services.ingestion.status_mapper import StatusMapper
from app.services.platforms.adapter import VendorProfile
from app.services.platforms.auth import key_headers

PLATFORM_ID = "systeme"

# Systeme only reports "completed" explicitly; open orders come as
# pending/processing and anything else is treated as failed.
status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("completed",),
    pending=("pending", "processing"),
    failed=("cancelled", "refunded", "failed"),
)


def normalize_order(order: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
    external_id = require_id(order, "id", PLATFORM_ID)
    return build_transaction(
        id=external_id,
        platform_id=PLATFORM_ID,
        order_id=to_str(order.get("order_number")) or external_id,
        amount=require_amount(order.get("total_amount"), PLATFORM_ID, "total_amount"),
        currency=resolve_currency(order.get("currency"), PLATFORM_ID, settings.default_currency),
        status=mapper(require_status(order, "status", PLATFORM_ID)),
        customer=build_customer(order.get("customer"), PLATFORM_ID),
        product=build_product(first_item(order.get("items")), id_key="product_id"),
        payment_method=to_str(order.get("payment_method")),
        created_at=normalize_date(order.get("created_at")),
        updated_at=normalize_date(order.get("updated_at")),
        metadata=collect_blocks(
            order,
            {
                "items": "items",
                "billingAddress": "billing_address",
                "affiliateId": "affiliate_id",
                "campaignId": "campaign_id",
            },
        ),
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://api.sandbox.systeme.io",
    production_url="https://api.systeme.io",
    orders_path="/api/v1/orders",
    orders_key="orders",
    webhook_path="/api/v1/webhooks",
    webhook_events=("order.created", "order.updated", "order.completed"),
    event_prefixes=("order.",),
    auth_headers=key_headers("X-Api-Key"),
    status_mapper=status_mapper,
    normalizer=normalize_order,
)
