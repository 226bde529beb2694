"""Doppus: checkout for digital products, courses and memberships."""

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

PLATFORM_ID = "doppus"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("approved", "paid", "completed"),
    pending=("pending", "waiting_payment", "processing"),
    failed=("cancelled", "refunded", "expired"),
)


def normalize_order(order: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
    """Doppus order -> canonical transaction.

    Doppus has no currency field; every order is in BRL.
    """
    external_id = require_id(order, "id", PLATFORM_ID)
    customer_raw = order.get("customer")
    customer = build_customer(customer_raw, PLATFORM_ID)

    metadata = collect_blocks(
        order,
        {
            "items": "items",
            "payment": "payment_details",
            "affiliate": "affiliate",
            "membership": "membership",
            "course": "course",
        },
    )
    add_group(
        metadata,
        "customer",
        collect_fields(
            customer_raw,
            {"address": "address", "city": "city", "state": "state", "zipcode": "zipcode"},
        ),
    )

    return build_transaction(
        id=external_id,
        platform_id=PLATFORM_ID,
        order_id=to_str(order.get("order_number")) or external_id,
        amount=require_amount(order.get("total_amount"), PLATFORM_ID, "total_amount"),
        currency=resolve_currency(order.get("currency"), PLATFORM_ID, settings.default_currency),
        status=mapper(require_status(order, "status", PLATFORM_ID)),
        customer=customer,
        product=build_product(first_item(order.get("items")), id_key="product_id"),
        payment_method=to_str(order.get("payment_method")),
        created_at=normalize_date(order.get("created_at")),
        updated_at=normalize_date(order.get("updated_at")),
        metadata=metadata,
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://api.sandbox.doppus.com.br",
    production_url="https://api.doppus.com.br",
    orders_path="/v1/orders",
    orders_key="orders",
    webhook_path="/v1/webhooks",
    webhook_events=(
        "order.created",
        "order.paid",
        "order.cancelled",
        "order.refunded",
        "order.expired",
        "membership.activated",
        "membership.expired",
        "membership.cancelled",
    ),
    event_prefixes=("order.",),
    auth_headers=bearer("X-Merchant-Id"),
    status_mapper=status_mapper,
    normalizer=normalize_order,
)
