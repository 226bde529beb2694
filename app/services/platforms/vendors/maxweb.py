"""MaxWeb: sales platform for physically shipped products."""

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
from app.services.platforms.auth import key_headers

PLATFORM_ID = "maxweb"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("approved", "paid", "delivered"),
    pending=("pending", "waiting_payment", "in_transit"),
    failed=("cancelled", "refunded"),
)

UTM_FIELDS = {
    "source": "utm_source",
    "medium": "utm_medium",
    "campaign": "utm_campaign",
    "content": "utm_content",
    "term": "utm_term",
}


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
            {"code": "tracking_code", "url": "tracking_url", "carrier": "shipping_carrier"},
        ),
    )
    add_group(
        metadata,
        "affiliate",
        collect_fields(
            order,
            {
                "id": "affiliate_id",
                "name": "affiliate_name",
                "commission": "affiliate_commission",
            },
        ),
    )
    add_group(
        metadata,
        "campaign",
        collect_fields(
            order,
            {"id": "campaign_id", "name": "campaign_name", "source": "traffic_source"},
        ),
    )
    add_group(metadata, "utm", collect_fields(order, UTM_FIELDS))

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
        metadata=metadata,
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://api.sandbox.maxweb.com.br",
    production_url="https://api.maxweb.com.br",
    orders_path="/api/v2/orders",
    orders_key="orders",
    webhook_path="/api/v2/webhooks",
    webhook_events=(
        "order.created",
        "order.approved",
        "order.paid",
        "order.shipped",
        "order.delivered",
        "order.cancelled",
        "order.refunded",
    ),
    event_prefixes=("order.",),
    auth_headers=key_headers("X-Api-Key", "X-Secret-Key"),
    status_mapper=status_mapper,
    normalizer=normalize_order,
)
