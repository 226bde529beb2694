"""Generic platform adapter driven by a per-vendor profile.

Every vendor speaks the same three-step dialect (list orders, register a
webhook, receive lifecycle events) with different hosts, headers, field
names and status vocabularies. Those differences live in a
``VendorProfile``; ``PlatformAdapter`` implements the dialect once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

import httpx
from fastapi.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import (
    ConfigurationError,
    IntegrationError,
    MissingCredentialsError,
    NormalizationError,
    VendorHttpError,
)
from app.core.logging import get_logger
from app.models.transaction import TransactionRecord
from app.schemas.transaction import Transaction
from app.services.ingestion.status_mapper import StatusMapper
from app.services.platforms.auth import AuthHeaders
from app.services.platforms.client import VendorHttpClient
from app.services.store.transactions import TransactionStore

logger = get_logger(__name__)

Normalizer = Callable[[Mapping[str, Any], StatusMapper], Transaction]


@dataclass(frozen=True)
class VendorProfile:
    """Everything that distinguishes one vendor integration from another.

    Attributes:
        platform_id: Registry id.
        sandbox_url: Base URL used when the config is in sandbox mode. May
            contain a ``{shop_domain}`` placeholder for per-shop APIs.
        production_url: Base URL used otherwise.
        orders_path: Listing endpoint, relative to the base URL.
        orders_key: Key holding the order array in the listing response;
            None when the vendor returns a bare array.
        webhook_path: Webhook registration endpoint.
        webhook_events: Events subscribed to on registration.
        event_prefixes: Lifecycle event prefixes that carry an order.
        auth_headers: Builds request headers from ``(api_key, secret_key)``.
        status_mapper: Vendor status vocabulary.
        normalizer: ``(payload, status_mapper) -> Transaction``.
        event_field: Webhook field naming the event.
        data_field: Webhook field holding the order payload.
        webhook_extra: Additional registration body fields.
    """

    platform_id: str
    sandbox_url: str
    production_url: str
    orders_path: str
    orders_key: Optional[str]
    webhook_path: str
    webhook_events: tuple[str, ...]
    event_prefixes: tuple[str, ...]
    auth_headers: AuthHeaders
    status_mapper: StatusMapper
    normalizer: Normalizer
    event_field: str = "event"
    data_field: str = "data"
    webhook_extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def needs_shop_domain(self) -> bool:
        return "{shop_domain}" in self.sandbox_url + self.production_url

    def base_url(self, sandbox: bool, shop_domain: Optional[str] = None) -> str:
        url = self.sandbox_url if sandbox else self.production_url
        if "{shop_domain}" not in url:
            return url
        if not shop_domain or not shop_domain.strip():
            raise ConfigurationError(f"{self.platform_id}: a shop domain is required")
        return url.format(shop_domain=shop_domain.strip())

    def is_lifecycle_event(self, event: Any) -> bool:
        return isinstance(event, str) and event.startswith(self.event_prefixes)


class PlatformAdapter:
    """Vendor integration bound to one user's credentials.

    Args:
        profile: Vendor description.
        api_key: Vendor API key.
        secret_key: Vendor secret / merchant id, depending on the vendor.
        sandbox: Selects the sandbox host. Fixed for the adapter's lifetime.
        store: Where normalized transactions are written.
        user_id: Owner stamped on every written transaction.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, used by tests.
        shop_domain: Merchant host, for vendors whose API lives on it.
    """

    def __init__(
        self,
        profile: VendorProfile,
        api_key: str,
        secret_key: str,
        sandbox: bool = True,
        *,
        store: TransactionStore,
        user_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        shop_domain: Optional[str] = None,
    ) -> None:
        self.profile = profile
        self.api_key = api_key or ""
        self.secret_key = secret_key or ""
        self.sandbox = sandbox
        self.shop_domain = shop_domain
        self.store = store
        self.user_id = user_id
        self.timeout = timeout if timeout is not None else settings.vendor_http_timeout_seconds
        self._transport = transport

    @property
    def platform_id(self) -> str:
        return self.profile.platform_id

    @property
    def base_url(self) -> str:
        """Vendor host for this environment.

        Raises ConfigurationError when a per-shop vendor has no shop domain.
        """
        return self.profile.base_url(self.sandbox, self.shop_domain)

    def __repr__(self) -> str:
        return (
            f"<PlatformAdapter(platform_id={self.platform_id!r}, "
            f"sandbox={self.sandbox}, shop_domain={self.shop_domain!r})>"
        )

    # ── Operations ───────────────────────────────────────────────────

    async def fetch_orders(self) -> list[Transaction]:
        """Fetch the vendor's order listing and normalize every order.

        Raises:
            MissingCredentialsError: Before any request, if a key is empty.
            VendorHttpError: Non-2xx, timeout or connection failure.
            NormalizationError: If any listed order lacks a required field.
        """
        try:
            async with self._client() as client:
                body = await client.get_json(self.profile.orders_path)
            orders = self._extract_orders(body)
            transactions = [
                self.profile.normalizer(order, self.profile.status_mapper)
                for order in orders
            ]
        except IntegrationError as exc:
            logger.error("Error fetching %s orders: %s", self.platform_id, exc)
            raise

        logger.info("Fetched %d %s orders", len(transactions), self.platform_id)
        return transactions

    async def sync_transactions(self) -> int:
        """Fetch every order and upsert them as one batch.

        Returns:
            Number of transactions written.
        """
        transactions = await self.fetch_orders()
        try:
            records = await run_in_threadpool(
                self.store.upsert_many, transactions, user_id=self.user_id
            )
        except IntegrationError as exc:
            logger.error("Error syncing %s transactions: %s", self.platform_id, exc)
            raise

        logger.info("Synced %d %s transactions", len(records), self.platform_id)
        return len(records)

    async def create_webhook(self, url: str) -> Any:
        """Register ``url`` for the vendor's lifecycle events."""
        body: dict[str, Any] = {
            "url": url,
            "events": list(self.profile.webhook_events),
            "active": True,
            **self.profile.webhook_extra,
        }
        try:
            async with self._client() as client:
                result = await client.post_json(self.profile.webhook_path, body)
        except IntegrationError as exc:
            logger.error("Error creating %s webhook: %s", self.platform_id, exc)
            raise

        logger.info("Registered %s webhook -> %s", self.platform_id, url)
        return result

    async def handle_webhook(self, payload: Mapping[str, Any]) -> Optional[TransactionRecord]:
        """Apply a webhook delivery.

        Returns:
            The upserted row, or None when the event is not an order
            lifecycle event (nothing is written in that case).
        """
        event = payload.get(self.profile.event_field) if isinstance(payload, Mapping) else None
        if not self.profile.is_lifecycle_event(event):
            logger.info("Ignoring %s webhook event %r", self.platform_id, event)
            return None

        try:
            data = payload.get(self.profile.data_field)
            if not isinstance(data, Mapping):
                raise NormalizationError(self.platform_id, self.profile.data_field)
            transaction = self.profile.normalizer(data, self.profile.status_mapper)
            record = await run_in_threadpool(
                self.store.upsert, transaction, user_id=self.user_id
            )
        except IntegrationError as exc:
            logger.error(
                "Error handling %s webhook %r: %s", self.platform_id, event, exc
            )
            raise

        logger.info(
            "Applied %s webhook %r: order=%s status=%s",
            self.platform_id,
            event,
            record.order_id,
            record.status,
        )
        return record

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _client(self) -> VendorHttpClient:
        if not self.api_key or not self.secret_key:
            raise MissingCredentialsError(
                f"{self.platform_id}: API key and secret key are required"
            )
        headers = {
            "Content-Type": "application/json",
            **self.profile.auth_headers(self.api_key, self.secret_key),
        }
        return VendorHttpClient(
            self.platform_id,
            self.base_url,
            headers,
            self.timeout,
            transport=self._transport,
        )

    def _extract_orders(self, body: Any) -> list[Mapping[str, Any]]:
        key = self.profile.orders_key
        if key is None:
            orders = body
        elif isinstance(body, Mapping):
            # Empty listings are sometimes sent without the key
            orders = body.get(key, [])
        else:
            orders = None

        if not isinstance(orders, list):
            raise VendorHttpError(
                self.platform_id,
                200,
                f"unexpected listing shape, expected an array under {key!r}",
            )
        for index, order in enumerate(orders):
            if not isinstance(order, Mapping):
                raise NormalizationError(self.platform_id, f"{key or 'orders'}[{index}]")
        return orders
