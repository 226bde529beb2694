"""CartPanda: hosted checkout; orders arrive in the flat gateway shape."""

from app.services.ingestion.status_mapper import StatusMapper
from app.services.platforms.adapter import VendorProfile
from app.services.platforms.auth import bearer
from app.services.platforms.vendors.gateway import gateway_normalizer

PLATFORM_ID = "cartpanda"

status_mapper = StatusMapper(
    PLATFORM_ID,
    completed=("completed", "approved"),
    pending=("pending", "processing", "disputed"),
    failed=("failed", "declined", "refunded", "cancelled"),
)

PROFILE = VendorProfile(
    platform_id=PLATFORM_ID,
    sandbox_url="https://sandbox.cartpanda.com.br/api/v1",
    production_url="https://api.cartpanda.com.br/v1",
    orders_path="/orders",
    orders_key="orders",
    webhook_path="/webhooks",
    webhook_events=("order.created", "order.paid", "order.cancelled", "order.refunded"),
    event_prefixes=("order.",),
    auth_headers=bearer(),
    status_mapper=status_mapper,
    normalizer=gateway_normalizer(PLATFORM_ID),
)
