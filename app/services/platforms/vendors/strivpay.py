"""StrivPay: payment gateway. Webhooks name the event in ``type``."""

from __future__ import annotations

from typing import Any, Mapping

from app.core.config import settings
from app.schemas.transaction import Transaction
from app.services.ingestion.normalizer import (
    build_customer,
    build_product,
    build_transaction,
    collect_blocks,
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
from app.services.platforms.auth import bearer

PLATFORM_ID = "strivpay"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("paid",),
    pending=("pending", "processing"),
    failed=("failed", "cancelled", "refunded"),
)


def normalize_order(order: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
    external_id = require_id(order, "id", PLATFORM_ID)
    return build_transaction(
        id=external_id,
        platform_id=PLATFORM_ID,
        order_id=to_str(order.get("reference_id")) or external_id,
        amount=require_amount(order.get("amount"), PLATFORM_ID),
        currency=resolve_currency(order.get("currency"), PLATFORM_ID, settings.default_currency),
        status=mapper(require_status(order, "status", PLATFORM_ID)),
        customer=build_customer(order.get("customer"), PLATFORM_ID),
        product=build_product(
            first_item(order.get("items")),
            name_key="description",
            price_key="unit_amount",
        ),
        payment_method=to_str(dig(order, "payment_method", "type")),
        created_at=normalize_date(order.get("created_at")),
        updated_at=normalize_date(order.get("updated_at")),
        metadata=collect_blocks(
            order,
            {
                "items": "items",
                "paymentDetails": "payment_method",
                "shippingAddress": "shipping",
                "billingAddress": "billing",
            },
        ),
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://api.sandbox.strivpay.com",
    production_url="https://api.strivpay.com",
    orders_path="/v1/orders",
    orders_key="orders",
    webhook_path="/v1/webhooks",
    webhook_events=("order.created", "order.paid", "order.failed"),
    event_prefixes=("order.",),
    auth_headers=bearer(),
    status_mapper=status_mapper,
    normalizer=normalize_order,
    event_field="type",
)
