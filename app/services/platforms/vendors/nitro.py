"""Nitro: card gateway; the listing endpoint returns a bare array."""

from app.services.ingestion.status_mapper import StatusMapper
from app.services.platforms.adapter import VendorProfile
from app.services.platforms.auth import key_headers
from app.services.platforms.vendors.gateway import WEBHOOK_EVENTS, gateway_normalizer

PLATFORM_ID = "nitro"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("completed",),
    pending=("pending",),
    failed=("failed", "refunded", "cancelled"),
)

PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://sandbox.nitro.com/api/v1",
    production_url="https://api.nitro.com/api/v1",
    orders_path="/transactions",
    orders_key=None,
    webhook_path="/webhooks",
    webhook_events=WEBHOOK_EVENTS,
    event_prefixes=("transaction.",),
    auth_headers=key_headers("X-API-Key", "X-Secret-Key"),
    status_mapper=status_mapper,
    normalizer=gateway_normalizer(PLATFORM_ID),
)
