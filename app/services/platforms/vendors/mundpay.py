"""MundPay: payment gateway with split rules and affiliates."""

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
from app.services.platforms.auth import bearer

PLATFORM_ID = "mundpay"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("paid", "approved", "captured", "completed"),
    pending=("pending", "waiting_payment", "in_process", "authorized"),
    failed=("cancelled", "refunded", "chargeback", "expired", "declined", "failed"),
)


def normalize_order(order: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
    external_id = require_id(order, "id", PLATFORM_ID)
    customer_raw = order.get("customer")
    customer = build_customer(customer_raw, PLATFORM_ID, name_key="full_name")

    metadata = collect_blocks(
        order,
        {
            "items": "items",
            "payment": "payment_method",
            "affiliate": "affiliate",
            "antifraud": "antifraud",
        },
    )
    add_group(metadata, "customer", collect_fields(customer_raw, {"address": "address"}))
    add_group(
        metadata,
        "split",
        collect_fields(order, {"rules": "split_rules", "totalAmount": "split_amount"}),
    )

    return build_transaction(
        id=external_id,
        platform_id=PLATFORM_ID,
        order_id=to_str(order.get("reference_id")) or external_id,
        amount=require_amount(order.get("amount"), PLATFORM_ID),
        currency=resolve_currency(order.get("currency"), PLATFORM_ID, settings.default_currency),
        status=mapper(require_status(order, "status", PLATFORM_ID)),
        customer=customer,
        product=build_product(first_item(order.get("items")), price_key="unit_amount"),
        payment_method=to_str(dig(order, "payment_method", "type")),
        created_at=normalize_date(order.get("created_at")),
        updated_at=normalize_date(order.get("updated_at")),
        metadata=metadata,
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://api.sandbox.mundpay.com",
    production_url="https://api.mundpay.com",
    orders_path="/v2/orders",
    orders_key="orders",
    webhook_path="/v2/webhooks",
    webhook_events=(
        "order.created",
        "order.paid",
        "order.cancelled",
        "order.refunded",
        "order.chargeback",
        "order.chargeback_reversed",
        "order.expired",
        "order.failed",
        "affiliate.commission_paid",
        "split.processed",
    ),
    event_prefixes=("order.",),
    auth_headers=bearer("X-Account-Token"),
    status_mapper=status_mapper,
    normalizer=normalize_order,
)
