"""FortPay: Brazilian payment gateway with antifraud scoring."""

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

PLATFORM_ID = "fortpay"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("approved", "captured", "paid"),
    pending=("pending", "waiting_payment", "in_analysis"),
    failed=("cancelled", "declined", "refunded", "chargeback"),
)


def normalize_transaction(txn: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
    external_id = require_id(txn, "transaction_id", PLATFORM_ID)
    customer_raw = txn.get("customer")
    customer = build_customer(customer_raw, PLATFORM_ID)

    metadata = collect_blocks(
        txn,
        {"payment": "payment_details", "affiliate": "affiliate", "antifraud": "antifraud"},
    )
    add_group(
        metadata,
        "customer",
        collect_fields(
            customer_raw,
            {"ip": "ip", "userAgent": "user_agent", "address": "address"},
        ),
    )

    product = txn.get("product")
    return build_transaction(
        id=external_id,
        platform_id=PLATFORM_ID,
        order_id=to_str(txn.get("order_id")) or external_id,
        amount=require_amount(txn.get("amount"), PLATFORM_ID),
        currency=resolve_currency(txn.get("currency"), PLATFORM_ID, settings.default_currency),
        status=mapper(require_status(txn, "status", PLATFORM_ID)),
        customer=customer,
        product=build_product(product if isinstance(product, Mapping) else {}),
        payment_method=to_str(txn.get("payment_method")),
        created_at=normalize_date(txn.get("created_at")),
        updated_at=normalize_date(txn.get("updated_at")),
        metadata=metadata,
    )


PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://api.sandbox.fortpay.com.br",
    production_url="https://api.fortpay.com.br",
    orders_path="/v1/transactions",
    orders_key="transactions",
    webhook_path="/v1/webhooks",
    webhook_events=(
        "transaction.created",
        "transaction.approved",
        "transaction.captured",
        "transaction.cancelled",
        "transaction.refunded",
        "transaction.chargeback",
    ),
    event_prefixes=("transaction.",),
    auth_headers=bearer("X-Merchant-Id"),
    status_mapper=status_mapper,
    normalizer=normalize_transaction,
)
