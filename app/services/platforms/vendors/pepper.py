"""Pepper: checkout for infoproducts and physical goods."""

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
    dig,
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
from app.services.platforms.vendors.maxweb import UTM_FIELDS

PLATFORM_ID = "pepper"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("approved", "paid"),
    pending=("pending", "waiting_payment", "processing"),
    failed=("cancelled", "refunded"),
)


def normalize_order(order: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
    external_id = require_id(order, "id", PLATFORM_ID)

    metadata = collect_blocks(
        order,
        {
            "items": "items",
            "paymentInfo": "payment_info",
            "shippingAddress": "shipping_address",
            "billingAddress": "billing_address",
            "affiliateInfo": "affiliate_info",
            "tracking": "tracking_info",
        },
    )
    add_group(metadata, "utm", collect_fields(order, UTM_FIELDS))

    return build_transaction(
        id=external_id,
        platform_id=PLATFORM_ID,
        order_id=to_str(order.get("order_id")) or external_id,
        amount=require_amount(order.get("total_amount"), PLATFORM_ID, "total_amount"),
        currency=resolve_currency(order.get("currency"), PLATFORM_ID, settings.default_currency),
        status=mapper(require_status(order, "status", PLATFORM_ID)),
        customer=build_customer(order.get("customer"), PLATFORM_ID, name_key="full_name"),
        product=build_product(first_item(order.get("items")), id_key="product_id"),
        payment_method=to_str(dig(order, "payment_info", "method")),
        created_at=normalize_date(order.get("created_at")),
        updated_at=normalize_date(order.get("updated_at")),
        metadata=metadata,
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://api.sandbox.pepper.com.br",
    production_url="https://api.pepper.com.br",
    orders_path="/v1/orders",
    orders_key="orders",
    webhook_path="/v1/webhooks",
    webhook_events=(
        "order.created",
        "order.paid",
        "order.cancelled",
        "order.refunded",
        "order.shipped",
        "order.delivered",
    ),
    event_prefixes=("order.",),
    auth_headers=key_headers("X-Api-Key", "X-Secret-Key"),
    status_mapper=status_mapper,
    normalizer=normalize_order,
)
