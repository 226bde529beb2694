"""Tests for PlatformAdapter: vendor HTTP, normalization and persistence.

Vendor APIs are replaced by ``httpx.MockTransport``; the transaction store
is the real one, backed by the SQLite test database.
"""

import threading

import httpx
import pytest

from app.core.exceptions import (
    ConfigurationError,
    MissingCredentialsError,
    NormalizationError,
    VendorHttpError,
    VendorTimeoutError,
)
from app.services.platforms.adapter import PlatformAdapter
from app.services.platforms.vendors import clickbank, doppus, nitro, pagtrust, shopify


def make_adapter(profile, store, stub, *, sandbox=True, api_key="key", secret_key="secret"):
    return PlatformAdapter(
        profile,
        api_key,
        secret_key,
        sandbox,
        store=store,
        user_id="u1",
        transport=stub.transport,
    )


class TestAdapterSetup:
    def test_sandbox_selects_sandbox_host(self, transaction_store, vendor_stub):
        adapter = make_adapter(doppus.PROFILE, transaction_store, vendor_stub())
        assert adapter.base_url == "https://api.sandbox.doppus.com.br"
        assert adapter.platform_id == "doppus"

    def test_production_host(self, transaction_store, vendor_stub):
        adapter = make_adapter(doppus.PROFILE, transaction_store, vendor_stub(), sandbox=False)
        assert adapter.base_url == "https://api.doppus.com.br"
        assert "sandbox=False" in repr(adapter)


class TestFetchOrders:
    @pytest.mark.asyncio
    async def test_fetch_normalizes_listing(self, transaction_store, vendor_stub, doppus_order):
        stub = vendor_stub({"orders": [doppus_order]})
        adapter = make_adapter(doppus.PROFILE, transaction_store, stub)

        transactions = await adapter.fetch_orders()

        assert len(transactions) == 1
        txn = transactions[0]
        assert txn.id == "1001"
        assert txn.status == "completed"
        assert txn.metadata["affiliate"] == doppus_order["affiliate"]

        request = stub.requests[0]
        assert request.method == "GET"
        assert str(request.url) == "https://api.sandbox.doppus.com.br/v1/orders"
        assert request.headers["Authorization"] == "Bearer key"
        assert request.headers["X-Merchant-Id"] == "secret"
        assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_bare_array_listing(self, transaction_store, vendor_stub):
        order = {
            "id": "n-1",
            "amount": 10,
            "status": "completed",
            "customer": {"name": "A", "email": "a@x.com"},
        }
        stub = vendor_stub([order])
        adapter = make_adapter(nitro.PROFILE, transaction_store, stub)

        transactions = await adapter.fetch_orders()

        assert [t.id for t in transactions] == ["n-1"]
        assert str(stub.requests[0].url) == "https://sandbox.nitro.com/api/v1/transactions"

    @pytest.mark.asyncio
    async def test_listing_without_key_is_empty(self, transaction_store, vendor_stub):
        adapter = make_adapter(doppus.PROFILE, transaction_store, vendor_stub({}))
        assert await adapter.fetch_orders() == []

    @pytest.mark.asyncio
    async def test_unexpected_listing_shape(self, transaction_store, vendor_stub):
        adapter = make_adapter(doppus.PROFILE, transaction_store, vendor_stub({"orders": "nope"}))
        with pytest.raises(VendorHttpError, match="unexpected listing shape"):
            await adapter.fetch_orders()

    @pytest.mark.asyncio
    async def test_non_2xx_raises_vendor_http_error(self, transaction_store, vendor_stub):
        stub = vendor_stub({"error": "boom"}, status_code=500)
        adapter = make_adapter(doppus.PROFILE, transaction_store, stub)

        with pytest.raises(VendorHttpError) as exc_info:
            await adapter.fetch_orders()
        assert exc_info.value.status_code == 500
        assert exc_info.value.platform_id == "doppus"

    @pytest.mark.asyncio
    async def test_non_json_success_body_is_a_vendor_http_error(self, transaction_store, vendor_stub):
        stub = vendor_stub(text="<html>maintenance</html>")
        adapter = make_adapter(doppus.PROFILE, transaction_store, stub)

        with pytest.raises(VendorHttpError, match="invalid JSON body") as exc_info:
            await adapter.fetch_orders()
        assert exc_info.value.status_code == 200
        assert exc_info.value.platform_id == "doppus"

    @pytest.mark.asyncio
    async def test_timeout_raises_vendor_timeout(self, transaction_store, vendor_stub):
        stub = vendor_stub(exc=httpx.ReadTimeout("timed out"))
        adapter = make_adapter(doppus.PROFILE, transaction_store, stub)

        with pytest.raises(VendorTimeoutError):
            await adapter.fetch_orders()

    @pytest.mark.asyncio
    async def test_connection_failure_is_a_vendor_http_error(self, transaction_store, vendor_stub):
        stub = vendor_stub(exc=httpx.ConnectError("refused"))
        adapter = make_adapter(doppus.PROFILE, transaction_store, stub)

        with pytest.raises(VendorHttpError) as exc_info:
            await adapter.fetch_orders()
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("api_key, secret_key", [("", "secret"), ("key", "")])
    async def test_missing_credentials_fail_before_any_request(
        self, transaction_store, vendor_stub, api_key, secret_key
    ):
        stub = vendor_stub({"orders": []})
        adapter = make_adapter(
            doppus.PROFILE, transaction_store, stub, api_key=api_key, secret_key=secret_key
        )

        with pytest.raises(MissingCredentialsError):
            await adapter.fetch_orders()
        assert stub.requests == []


class TestSyncTransactions:
    @pytest.mark.asyncio
    async def test_sync_persists_every_order(self, transaction_store, vendor_stub, pagtrust_transaction):
        second = dict(pagtrust_transaction, id="pt_556", order_id="ORD-556", status="captured")
        stub = vendor_stub({"transactions": [pagtrust_transaction, second]})
        adapter = make_adapter(pagtrust.PROFILE, transaction_store, stub)

        assert await adapter.sync_transactions() == 2

        rows = transaction_store.get_by_platform_id("pagtrust")
        assert sorted(r.external_id for r in rows) == ["pt_555", "pt_556"]
        assert all(r.user_id == "u1" for r in rows)
        stored = transaction_store.get_by_external_id("pagtrust", "pt_555")
        assert stored.metadata_json["fraud"] == pagtrust_transaction["fraud_analysis"]

    @pytest.mark.asyncio
    async def test_sync_is_idempotent(self, transaction_store, vendor_stub, doppus_order):
        stub = vendor_stub({"orders": [doppus_order]})
        adapter = make_adapter(doppus.PROFILE, transaction_store, stub)

        await adapter.sync_transactions()
        await adapter.sync_transactions()

        assert len(transaction_store.get_by_platform_id("doppus")) == 1

    @pytest.mark.asyncio
    async def test_one_bad_order_writes_nothing(self, transaction_store, vendor_stub, doppus_order):
        orders = [
            dict(doppus_order, id=1000 + n, order_number=f"DOP-{1000 + n}") for n in range(5)
        ]
        del orders[2]["customer"]
        stub = vendor_stub({"orders": orders})
        adapter = make_adapter(doppus.PROFILE, transaction_store, stub)

        with pytest.raises(NormalizationError) as exc_info:
            await adapter.sync_transactions()

        assert exc_info.value.field == "customer"
        assert transaction_store.get_by_platform_id("doppus") == []


class TestHandleWebhook:
    @pytest.mark.asyncio
    async def test_paid_order_is_persisted(self, transaction_store, vendor_stub, doppus_order):
        adapter = make_adapter(doppus.PROFILE, transaction_store, vendor_stub())

        record = await adapter.handle_webhook({"event": "order.paid", "data": doppus_order})

        assert record is not None
        assert record.order_id == "DOP-1001"
        assert record.status == "completed"
        assert record.user_id == "u1"
        assert record.metadata_json["course"] == doppus_order["course"]

    @pytest.mark.asyncio
    async def test_pending_then_paid_converges(self, transaction_store, vendor_stub, doppus_order):
        adapter = make_adapter(doppus.PROFILE, transaction_store, vendor_stub())
        pending = dict(doppus_order, status="waiting_payment", updated_at="2024-03-01T12:01:00Z")

        first = await adapter.handle_webhook({"event": "order.created", "data": pending})
        assert first.status == "pending"
        second = await adapter.handle_webhook({"event": "order.paid", "data": doppus_order})

        rows = transaction_store.get_by_platform_id("doppus")
        assert len(rows) == 1
        assert rows[0].status == "completed"
        assert second.id == first.id

    @pytest.mark.asyncio
    async def test_non_lifecycle_event_is_ignored(self, transaction_store, vendor_stub, doppus_order):
        adapter = make_adapter(doppus.PROFILE, transaction_store, vendor_stub())

        result = await adapter.handle_webhook(
            {"event": "membership.activated", "data": doppus_order}
        )

        assert result is None
        assert transaction_store.get_by_platform_id("doppus") == []

    @pytest.mark.asyncio
    async def test_missing_data_block_is_a_normalization_error(self, transaction_store, vendor_stub):
        adapter = make_adapter(doppus.PROFILE, transaction_store, vendor_stub())
        with pytest.raises(NormalizationError) as exc_info:
            await adapter.handle_webhook({"event": "order.paid"})
        assert exc_info.value.field == "data"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides, field",
        [({"id": "x" * 101}, "id"), ({"order_number": "N" * 101}, "order_id")],
    )
    async def test_oversized_identifiers_are_normalization_errors(
        self, transaction_store, vendor_stub, doppus_order, overrides, field
    ):
        adapter = make_adapter(doppus.PROFILE, transaction_store, vendor_stub())
        order = dict(doppus_order, **overrides)

        with pytest.raises(NormalizationError) as exc_info:
            await adapter.handle_webhook({"event": "order.paid", "data": order})

        assert exc_info.value.field == field
        assert transaction_store.get_by_platform_id("doppus") == []

    @pytest.mark.asyncio
    async def test_vendor_specific_event_and_data_fields(self, transaction_store, vendor_stub):
        adapter = make_adapter(clickbank.PROFILE, transaction_store, vendor_stub())
        notification = {
            "transactionType": "SALE",
            "order": {
                "receipt": "CB-1",
                "totalOrderAmount": 47,
                "status": "complete",
                "customer": {"fullName": "John Doe", "email": "john@example.com"},
            },
        }

        record = await adapter.handle_webhook(notification)

        assert record.external_id == "CB-1"
        assert record.currency == "USD"
        assert await adapter.handle_webhook({"transactionType": "TEST"}) is None

    @pytest.mark.asyncio
    async def test_store_writes_run_off_the_event_loop(
        self, transaction_store, vendor_stub, doppus_order, monkeypatch
    ):
        threads = []
        upsert = transaction_store.upsert

        def recording_upsert(*args, **kwargs):
            threads.append(threading.get_ident())
            return upsert(*args, **kwargs)

        monkeypatch.setattr(transaction_store, "upsert", recording_upsert)
        adapter = make_adapter(doppus.PROFILE, transaction_store, vendor_stub())

        record = await adapter.handle_webhook({"event": "order.paid", "data": doppus_order})

        assert record.status == "completed"
        assert len(threads) == 1
        assert threads[0] != threading.get_ident()

    @pytest.mark.asyncio
    async def test_webhook_does_not_call_the_vendor(self, transaction_store, vendor_stub, doppus_order):
        stub = vendor_stub()
        adapter = make_adapter(doppus.PROFILE, transaction_store, stub)
        await adapter.handle_webhook({"event": "order.paid", "data": doppus_order})
        assert stub.requests == []


class TestCreateWebhook:
    @pytest.mark.asyncio
    async def test_registration_body(self, transaction_store, vendor_stub):
        stub = vendor_stub({"id": "wh_1"})
        adapter = make_adapter(doppus.PROFILE, transaction_store, stub)

        result = await adapter.create_webhook("https://example.com/hooks/doppus")

        assert result == {"id": "wh_1"}
        request = stub.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.sandbox.doppus.com.br/v1/webhooks"
        assert stub.last_json() == {
            "url": "https://example.com/hooks/doppus",
            "events": list(doppus.PROFILE.webhook_events),
            "active": True,
        }

    @pytest.mark.asyncio
    async def test_vendor_extras_are_merged(self, transaction_store, vendor_stub):
        stub = vendor_stub({"ok": True})
        adapter = make_adapter(clickbank.PROFILE, transaction_store, stub)

        await adapter.create_webhook("https://example.com/hooks/clickbank")

        body = stub.last_json()
        assert body["status"] == "ACTIVE"
        assert body["notificationVersion"] == "2.0"
        assert "SALE" in body["events"]

    @pytest.mark.asyncio
    async def test_registration_with_html_reply_fails(self, transaction_store, vendor_stub):
        stub = vendor_stub(text="<html>Bad gateway</html>", status_code=201)
        adapter = make_adapter(doppus.PROFILE, transaction_store, stub)
        with pytest.raises(VendorHttpError, match="invalid JSON body"):
            await adapter.create_webhook("https://example.com/hooks/doppus")

    @pytest.mark.asyncio
    async def test_registration_failure_propagates(self, transaction_store, vendor_stub):
        stub = vendor_stub({"error": "forbidden"}, status_code=403)
        adapter = make_adapter(doppus.PROFILE, transaction_store, stub)
        with pytest.raises(VendorHttpError) as exc_info:
            await adapter.create_webhook("https://example.com/hooks/doppus")
        assert exc_info.value.status_code == 403


class TestPerShopVendor:
    @pytest.mark.asyncio
    async def test_sync_uses_the_shop_host(self, transaction_store, vendor_stub):
        order = {
            "id": 1,
            "name": "#1001",
            "total_price": "10.00",
            "financial_status": "paid",
            "customer": {"first_name": "Bob", "email": "bob@example.com"},
        }
        stub = vendor_stub({"orders": [order]})
        adapter = PlatformAdapter(
            shopify.PROFILE,
            "shpat_1",
            "secret",
            store=transaction_store,
            user_id="u1",
            transport=stub.transport,
            shop_domain="demo.myshopify.com",
        )

        assert await adapter.sync_transactions() == 1

        request = stub.requests[0]
        assert str(request.url) == "https://demo.myshopify.com/admin/api/2024-01/orders.json"
        assert request.headers["X-Shopify-Access-Token"] == "shpat_1"
        assert transaction_store.get_by_external_id("shopify", "1").order_id == "#1001"

    @pytest.mark.asyncio
    async def test_missing_shop_domain_fails_before_any_request(
        self, transaction_store, vendor_stub
    ):
        stub = vendor_stub({"orders": []})
        adapter = make_adapter(shopify.PROFILE, transaction_store, stub)

        with pytest.raises(ConfigurationError, match="shop domain"):
            await adapter.fetch_orders()
        assert stub.requests == []

    @pytest.mark.asyncio
    async def test_webhook_topic_and_order_fields(self, transaction_store, vendor_stub):
        adapter = make_adapter(shopify.PROFILE, transaction_store, vendor_stub())
        order = {
            "id": 2,
            "total_price": "5.50",
            "financial_status": "refunded",
            "customer": {"first_name": "Bob", "email": "bob@example.com"},
        }

        record = await adapter.handle_webhook({"topic": "orders/updated", "order": order})

        assert record.status == "failed"
        assert await adapter.handle_webhook({"topic": "carts/update", "order": order}) is None
