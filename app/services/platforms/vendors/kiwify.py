"""Kiwify: digital products and infoproducts checkout.

Orders share Hubla's shape, plus tracking (UTM / click ids) and checkout
blocks.
"""

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
from app.services.platforms.vendors.hubla import CUSTOMER_ADDRESS_FIELDS, METADATA_BLOCKS

PLATFORM_ID = "kiwify"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("approved", "paid", "completed"),
    pending=("pending", "waiting_payment", "processing", "in_analysis"),
    failed=("cancelled", "refunded", "chargeback", "expired", "declined", "failed"),
)


def normalize_order(order: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
    external_id = require_id(order, "id", PLATFORM_ID)
    customer_raw = order.get("customer")
    customer = build_customer(customer_raw, PLATFORM_ID)

    metadata = collect_blocks(
        order,
        {**METADATA_BLOCKS, "tracking": "tracking", "checkout": "checkout"},
    )
    add_group(metadata, "customer", collect_fields(customer_raw, CUSTOMER_ADDRESS_FIELDS))

    product = order.get("product")
    return build_transaction(
        id=external_id,
        platform_id=PLATFORM_ID,
        order_id=to_str(order.get("reference_id")) or external_id,
        amount=require_amount(order.get("amount"), PLATFORM_ID),
        currency=resolve_currency(order.get("currency"), PLATFORM_ID, settings.default_currency),
        status=mapper(require_status(order, "status", PLATFORM_ID)),
        customer=customer,
        product=build_product(product if isinstance(product, Mapping) else {}),
        payment_method=to_str(order.get("payment_method")),
        created_at=normalize_date(order.get("created_at")),
        updated_at=normalize_date(order.get("updated_at")),
        metadata=metadata,
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://api.sandbox.kiwify.com.br",
    production_url="https://api.kiwify.com.br",
    orders_path="/v1/orders",
    orders_key="orders",
    webhook_path="/v1/webhooks",
    webhook_events=(
        "order.created",
        "order.approved",
        "order.cancelled",
        "order.refunded",
        "order.chargeback",
        "order.expired",
        "membership.activated",
        "membership.cancelled",
        "membership.expired",
        "course.access_granted",
        "course.access_revoked",
        "commission.paid",
        "commission.cancelled",
        "checkout.abandoned",
        "checkout.recovered",
        "upsell.accepted",
        "upsell.declined",
        "downsell.accepted",
        "downsell.declined",
    ),
    event_prefixes=("order.",),
    auth_headers=bearer("X-Store-Id"),
    status_mapper=status_mapper,
    normalizer=normalize_order,
)
