"""Logzz: cash-on-delivery logistics platform."""

from __future__ import annotations

from typing import Any, Mapping

from app.core.config import settings
from app.schemas.transaction import Transaction
from app.services.ingestion.normalizer import (
    add_group,
    build_customer,
    build_product,
    build_transaction,
    collect_blocks,
    collect_fields,
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
from app.services.platforms.auth import bearer

PLATFORM_ID = "logzz"

# Delivered means paid on a cash-on-delivery platform
status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("approved", "delivered", "completed"),
    pending=("pending", "processing", "in_transit"),
    failed=("cancelled", "returned"),
)


def normalize_order(order: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
    external_id = require_id(order, "id", PLATFORM_ID)

    metadata = collect_blocks(
        order,
        {
            "items": "items",
            "shippingAddress": "shipping_address",
            "billingAddress": "billing_address",
        },
    )
    add_group(
        metadata,
        "tracking",
        collect_fields(
            order,
            {"code": "tracking_code", "carrier": "carrier", "status": "shipping_status"},
        ),
    )
    add_group(
        metadata,
        "warehouse",
        collect_fields(order, {"id": "warehouse_id", "name": "warehouse_name"}),
    )
    add_group(
        metadata,
        "affiliateInfo",
        collect_fields(
            order,
            {
                "id": "affiliate_id",
                "name": "affiliate_name",
                "commission": "affiliate_commission",
            },
        ),
    )

    return build_transaction(
        id=external_id,
        platform_id=PLATFORM_ID,
        order_id=to_str(order.get("order_number")) or external_id,
        amount=require_amount(order.get("total_amount"), PLATFORM_ID, "total_amount"),
        currency=resolve_currency(order.get("currency"), PLATFORM_ID, settings.default_currency),
        status=mapper(require_status(order, "status", PLATFORM_ID)),
        customer=build_customer(order.get("customer"), PLATFORM_ID),
        product=build_product(first_item(order.get("items")), id_key="sku"),
        payment_method=to_str(order.get("payment_method")),
        created_at=normalize_date(order.get("created_at")),
        updated_at=normalize_date(order.get("updated_at")),
        metadata=metadata,
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://api.sandbox.logzz.com.br",
    production_url="https://api.logzz.com.br",
    orders_path="/api/v1/orders",
    orders_key="orders",
    webhook_path="/api/v1/webhooks",
    webhook_events=(
        "order.created",
        "order.paid",
        "order.shipped",
        "order.delivered",
        "order.cancelled",
        "order.returned",
    ),
    event_prefixes=("order.",),
    auth_headers=bearer(),
    status_mapper=status_mapper,
    normalizer=normalize_order,
)
