"""ClickBank: international affiliate marketplace.

ClickBank uses camelCase fields and delivers Instant Notifications (IPN)
whose ``transactionType`` (SALE, BILL, RFND...) names the event and whose
``order`` block carries the order.
"""

from __future__ import annotations

from typing import Any, Mapping

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

PLATFORM_ID = "clickbank"

# Orders without a currency are USD on ClickBank
DEFAULT_CURRENCY = "USD"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("complete", "approved", "shipped"),
    pending=("pending", "processing"),
    failed=("refunded", "chargeback", "cancelled"),
)


def normalize_order(order: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
    receipt = require_id(order, "receipt", PLATFORM_ID)
    customer = build_customer(order.get("customer"), PLATFORM_ID, name_key="fullName")

    metadata = collect_blocks(order, {"vendor": "vendor", "affiliate": "affiliate"})
    add_group(
        metadata,
        "customer",
        collect_fields(order.get("customer"), {"country": "country"}),
    )
    add_group(
        metadata,
        "upsell",
        collect_fields(
            order,
            {
                "isUpsell": "isUpsell",
                "parentReceipt": "parentReceipt",
                "upsellFlow": "upsellFlow",
            },
        ),
    )
    add_group(
        metadata,
        "tracking",
        collect_fields(
            order,
            {"trackingId": "trackingId", "hopCount": "hopCount", "referringUrl": "referringUrl"},
        ),
    )
    add_group(
        metadata,
        "subscription",
        collect_fields(
            order,
            {
                "isRecurring": "isRecurring",
                "rebillStatus": "rebillStatus",
                "nextBillDate": "nextBillDate",
                "subscriptionId": "subscriptionId",
            },
        ),
    )

    return build_transaction(
        id=receipt,
        platform_id=PLATFORM_ID,
        order_id=to_str(order.get("transactionId")) or receipt,
        amount=require_amount(order.get("totalOrderAmount"), PLATFORM_ID, "totalOrderAmount"),
        currency=resolve_currency(order.get("currency"), PLATFORM_ID, DEFAULT_CURRENCY),
        status=mapper(require_status(order, "status", PLATFORM_ID)),
        customer=customer,
        product=build_product(
            first_item(order.get("lineItems")),
            id_key="itemNo",
            name_key="productTitle",
        ),
        payment_method=to_str(order.get("paymentMethod")),
        created_at=normalize_date(order.get("transactionTime")),
        updated_at=normalize_date(order.get("lastUpdated")),
        metadata=metadata,
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://api.sandbox.clickbank.com",
    production_url="https://api.clickbank.com",
    orders_path="/rest/1.3/orders",
    orders_key="orders",
    webhook_path="/rest/1.3/notifications/endpoints",
    webhook_events=("SALE", "BILL", "RFND", "CGBK", "CANCEL", "UNCANCEL", "TEST"),
    # TEST notifications carry no order
    event_prefixes=("SALE", "BILL", "RFND", "CGBK", "CANCEL", "UNCANCEL"),
    auth_headers=bearer(),
    status_mapper=status_mapper,
    normalizer=normalize_order,
    event_field="transactionType",
    data_field="order",
    webhook_extra={"status": "ACTIVE", "notificationVersion": "2.0"},
)
