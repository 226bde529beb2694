"""Twispay: online card processor."""

from app.services.ingestion.status_mapper import StatusMapper
from app.services.platforms.adapter import VendorProfile
from app.services.platforms.auth import key_headers
from app.services.platforms.vendors.gateway import WEBHOOK_EVENTS, gateway_normalizer

PLATFORM_ID = "twispay"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("paid", "completed"),
    pending=("pending", "processing", "authorized"),
    failed=("failed", "refunded", "cancelled", "declined"),
)

PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://sandbox.twispay.com/api/v1",
    production_url="https://api.twispay.com/v1",
    orders_path="/transactions",
    orders_key="transactions",
    webhook_path="/webhooks",
    webhook_events=WEBHOOK_EVENTS,
    event_prefixes=("transaction.",),
    auth_headers=key_headers("X-Twispay-Access-Token"),
    status_mapper=status_mapper,
    normalizer=gateway_normalizer(PLATFORM_ID),
)
