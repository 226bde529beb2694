"""Shared shape of the flat-transaction vendors.

Nitro, Ticto, Twispay, Yapay and CartPanda return flat transaction objects
with an optional ``metadata`` object of their own, which is kept verbatim.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Mapping

from app.core.config import settings
from app.schemas.transaction import Transaction
from app.services.ingestion.normalizer import (
    build_customer,
    build_product,
    build_transaction,
    dig,
    normalize_date,
    require_amount,
    require_id,
    require_status,
    resolve_currency,
    to_str,
)
from app.services.ingestion.status_mapper import StatusMapper

GatewayNormalizer = Callable[[Mapping[str, Any], StatusMapper], Transaction]

WEBHOOK_EVENTS = (
    "transaction.created",
    "transaction.paid",
    "transaction.failed",
    "transaction.refunded",
)


def gateway_normalizer(platform_id: str) -> GatewayNormalizer:
    """Build the normalizer for a gateway vendor identified by ``platform_id``."""

    def normalize(txn: Mapping[str, Any], mapper: StatusMapper) -> Transaction:
        external_id = require_id(txn, "id", platform_id)
        product = txn.get("product")
        payment_method = txn.get("payment_method")
        if isinstance(payment_method, Mapping):
            payment_method = dig(payment_method, "type")

        raw_metadata = txn.get("metadata")
        metadata = copy.deepcopy(dict(raw_metadata)) if isinstance(raw_metadata, Mapping) else {}
        return build_transaction(
            id=external_id,
            platform_id=platform_id,
            order_id=to_str(txn.get("order_id")) or external_id,
            amount=require_amount(txn.get("amount"), platform_id),
            currency=resolve_currency(txn.get("currency"), platform_id, settings.default_currency),
            status=mapper(require_status(txn, "status", platform_id)),
            customer=build_customer(txn.get("customer"), platform_id),
            product=build_product(product if isinstance(product, Mapping) else {}),
            payment_method=to_str(payment_method),
            created_at=normalize_date(txn.get("created_at")),
            updated_at=normalize_date(txn.get("updated_at")),
            metadata=metadata,
        )

    normalize.__name__ = f"normalize_{platform_id}_transaction"
    return normalize
