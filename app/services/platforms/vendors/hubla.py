"""Hubla: creator economy platform (sales, courses, memberships)."""

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
from app.services.platforms.auth import key_headers

PLATFORM_ID = "hubla"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("approved", "paid", "completed"),
    pending=("pending", "waiting_payment", "processing", "in_analysis"),
    failed=("cancelled", "refunded", "chargeback", "expired", "declined", "failed"),
)

# Blocks copied as-is into metadata: {metadata key: sale key}
METADATA_BLOCKS = {
    "payment": "payment_details",
    "producer": "producer",
    "affiliate": "affiliate",
    "course": "course",
    "membership": "membership",
    "funnel": "funnel",
}

CUSTOMER_ADDRESS_FIELDS = {
    "address": "address",
    "city": "city",
    "state": "state",
    "zipcode": "zipcode",
    "country": "country",
}


def normalize_sale(sale: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
    external_id = require_id(sale, "id", PLATFORM_ID)
    customer_raw = sale.get("customer")
    customer = build_customer(customer_raw, PLATFORM_ID)

    metadata = collect_blocks(sale, METADATA_BLOCKS)
    add_group(metadata, "customer", collect_fields(customer_raw, CUSTOMER_ADDRESS_FIELDS))

    product = sale.get("product")
    return build_transaction(
        id=external_id,
        platform_id=PLATFORM_ID,
        order_id=to_str(sale.get("reference_id")) or external_id,
        amount=require_amount(sale.get("amount"), PLATFORM_ID),
        currency=resolve_currency(sale.get("currency"), PLATFORM_ID, settings.default_currency),
        status=mapper(require_status(sale, "status", PLATFORM_ID)),
        customer=customer,
        product=build_product(product if isinstance(product, Mapping) else {}),
        payment_method=to_str(sale.get("payment_method")),
        created_at=normalize_date(sale.get("created_at")),
        updated_at=normalize_date(sale.get("updated_at")),
        metadata=metadata,
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://api.sandbox.hubla.com.br",
    production_url="https://api.hubla.com.br",
    orders_path="/v1/sales",
    orders_key="sales",
    webhook_path="/v1/webhooks",
    webhook_events=(
        "sale.created",
        "sale.approved",
        "sale.cancelled",
        "sale.refunded",
        "sale.chargeback",
        "sale.expired",
        "membership.activated",
        "membership.cancelled",
        "membership.expired",
        "course.access_granted",
        "course.access_revoked",
        "commission.paid",
        "commission.cancelled",
    ),
    event_prefixes=("sale.",),
    auth_headers=key_headers("X-Api-Key", "X-Secret-Key"),
    status_mapper=status_mapper,
    normalizer=normalize_sale,
)
