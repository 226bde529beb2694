"""Shopify: Admin REST API of a single shop.

There is no shared host: every request goes to the merchant's own
``<shop>.myshopify.com`` domain, taken from the platform settings. Shopify
has no sandbox environment either, so both modes use the same template.
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

PLATFORM_ID = "shopify"

API_URL = "https://{shop_domain}/admin/api/2024-01"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("paid",),
    pending=("pending", "authorized", "partially_paid"),
    failed=("partially_refunded", "refunded", "voided", "failed"),
)


def normalize_order(order: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
    """Shopify order -> canonical transaction.

    The buyer name is split into ``first_name``/``last_name`` and the
    payment status lives in ``financial_status``.
    """
    external_id = require_id(order, "id", PLATFORM_ID)
    customer_raw = order.get("customer")
    name = None
    if isinstance(customer_raw, Mapping):
        parts = (to_str(customer_raw.get("first_name")), to_str(customer_raw.get("last_name")))
        name = " ".join(part for part in parts if part) or None

    metadata = collect_blocks(
        order,
        {
            "items": "line_items",
            "shippingAddress": "shipping_address",
            "billingAddress": "billing_address",
            "discountCodes": "discount_codes",
        },
    )
    add_group(
        metadata,
        "fulfillment",
        collect_fields(order, {"status": "fulfillment_status", "cancelReason": "cancel_reason"}),
    )

    return build_transaction(
        id=external_id,
        platform_id=PLATFORM_ID,
        order_id=to_str(order.get("name")) or external_id,
        amount=require_amount(order.get("total_price"), PLATFORM_ID, "total_price"),
        currency=resolve_currency(order.get("currency"), PLATFORM_ID, settings.default_currency),
        status=mapper(require_status(order, "financial_status", PLATFORM_ID)),
        customer=build_customer(customer_raw, PLATFORM_ID, name=name, name_key="first_name"),
        product=build_product(
            first_item(order.get("line_items")), id_key="product_id", name_key="title"
        ),
        payment_method=to_str(order.get("gateway")),
        created_at=normalize_date(order.get("created_at")),
        updated_at=normalize_date(order.get("updated_at")),
        metadata=metadata,
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url=API_URL,
    production_url=API_URL,
    orders_path="/orders.json",
    orders_key="orders",
    webhook_path="/webhooks.json",
    webhook_events=("orders/create", "orders/paid", "orders/cancelled", "orders/updated"),
    event_prefixes=("orders/",),
    auth_headers=key_headers("X-Shopify-Access-Token"),
    status_mapper=status_mapper,
    normalizer=normalize_order,
    event_field="topic",
    data_field="order",
)
