"""Digistore24: digital products and affiliate marketplace.

Timestamps are unix seconds; customer names arrive split in two fields.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

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

PLATFORM_ID = "digistore24"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("completed", "delivered"),
    pending=("pending", "processing"),
    failed=("cancelled", "refunded", "chargeback"),
)


def _full_name(customer: Any) -> Optional[str]:
    if not isinstance(customer, Mapping):
        return None
    parts = [to_str(customer.get("first_name")), to_str(customer.get("last_name"))]
    return " ".join(part for part in parts if part) or None


def normalize_sale(sale: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
    external_id = require_id(sale, "sale_id", PLATFORM_ID)
    customer_raw = sale.get("customer")
    customer = build_customer(
        customer_raw,
        PLATFORM_ID,
        name=_full_name(customer_raw),
        name_key="first_name",
    )
    product = sale.get("product") if isinstance(sale.get("product"), Mapping) else {}

    metadata = collect_blocks(
        sale,
        {"affiliate": "affiliate", "payment": "payment", "marketing": "marketing"},
    )
    add_group(
        metadata,
        "product",
        collect_fields(
            product,
            {"description": "description", "category": "category", "language": "language"},
        ),
    )
    add_group(
        metadata,
        "customer",
        collect_fields(
            customer_raw,
            {"country": "country", "language": "language", "ip_country": "ip_country"},
        ),
    )

    return build_transaction(
        id=external_id,
        platform_id=PLATFORM_ID,
        order_id=to_str(sale.get("order_id")) or external_id,
        amount=require_amount(sale.get("total_amount"), PLATFORM_ID, "total_amount"),
        currency=resolve_currency(sale.get("currency"), PLATFORM_ID, settings.default_currency),
        status=mapper(require_status(sale, "status", PLATFORM_ID)),
        customer=customer,
        product=build_product(product),
        payment_method=to_str(sale.get("payment_method")),
        created_at=normalize_date(sale.get("created_at")),
        updated_at=normalize_date(sale.get("updated_at")),
        metadata=metadata,
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://api.sandbox.digistore24.com",
    production_url="https://api.digistore24.com",
    orders_path="/v1/sales",
    orders_key="sales",
    webhook_path="/v1/webhooks",
    webhook_events=(
        "sale.created",
        "sale.completed",
        "sale.cancelled",
        "sale.refunded",
        "sale.chargeback",
    ),
    event_prefixes=("sale.",),
    auth_headers=key_headers("X-DS-API-KEY"),
    status_mapper=status_mapper,
    normalizer=normalize_sale,
)
