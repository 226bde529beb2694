"""Ticto: digital products platform with signed API requests."""

from app.services.ingestion.status_mapper import StatusMapper
from app.services.platforms.adapter import VendorProfile
from app.services.platforms.auth import signed_headers
from app.services.platforms.vendors.gateway import WEBHOOK_EVENTS, gateway_normalizer

PLATFORM_ID = "ticto"

# Disputes and fraud reviews can still settle in the merchant's favour
status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("approved",),
    pending=(
        "pending",
        "waiting_payment",
        "processing",
        "analysis",
        "fraud_analysis",
        "dispute",
    ),
    failed=(
        "failed",
        "refunded",
        "partially_refunded",
        "cancelled",
        "expired",
        "chargeback",
        "high_risk",
        "blocked",
    ),
)

PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://sandbox.api.ticto.com.br/v1",
    production_url="https://api.ticto.com.br/v1",
    orders_path="/transactions",
    orders_key=None,
    webhook_path="/webhooks",
    webhook_events=WEBHOOK_EVENTS,
    event_prefixes=("transaction.",),
    auth_headers=signed_headers("X-Ticto-Key", "X-Ticto-Signature"),
    status_mapper=status_mapper,
    normalizer=gateway_normalizer(PLATFORM_ID),
)
