"""Tests for the normalizer utility functions.

The normalizer handles the messy reality of multi-vendor data:
inconsistent date formats, currency symbols vs codes, numbers sent as
strings, and required fields that are sometimes simply missing.

These are pure functions -- no database, no I/O.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from app.core.exceptions import NormalizationError
from app.services.ingestion.normalizer import (
    build_customer,
    build_product,
    build_transaction,
    collect_blocks,
    collect_fields,
    dig,
    first_item,
    normalize_currency,
    normalize_date,
    require,
    require_amount,
    require_id,
    resolve_currency,
    to_int,
)


# ==================================================================
# Currency normalization
# ==================================================================


class TestNormalizeCurrency:
    """Test normalize_currency() with ISO codes, aliases, and edge cases."""

    @pytest.mark.parametrize(
        "input_code, expected",
        [
            ("BRL", "BRL"),
            ("brl", "BRL"),
            ("Usd", "USD"),
            ("R$", "BRL"),
            ("US$", "USD"),
            ("€", "EUR"),
            ("  eur ", "EUR"),
            ("JPY", "JPY"),
        ],
    )
    def test_known_codes_and_aliases(self, input_code: str, expected: str):
        assert normalize_currency(input_code) == expected

    @pytest.mark.parametrize("bad_code", ["", "XX", "DOLLARS", "12$"])
    def test_unknown_code_raises(self, bad_code: str):
        with pytest.raises(ValueError, match="Unknown currency"):
            normalize_currency(bad_code)


class TestResolveCurrency:
    def test_absent_currency_uses_default(self):
        assert resolve_currency(None, "doppus", "BRL") == "BRL"
        assert resolve_currency("  ", "doppus", "BRL") == "BRL"

    def test_present_currency_is_normalized(self):
        assert resolve_currency("usd", "clickbank", "BRL") == "USD"

    def test_unrecognized_currency_is_a_normalization_error(self):
        with pytest.raises(NormalizationError) as exc_info:
            resolve_currency("not-a-currency", "hubla", "BRL")
        assert exc_info.value.field == "currency"
        assert exc_info.value.platform_id == "hubla"


# ==================================================================
# Date normalization
# ==================================================================


class TestNormalizeDate:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2024-03-01T12:00:00", datetime(2024, 3, 1, 12, 0, 0)),
            ("2024-03-01T12:00:00.250000", datetime(2024, 3, 1, 12, 0, 0, 250000)),
            ("2024-03-01 12:00:00", datetime(2024, 3, 1, 12, 0, 0)),
            ("2024-03-01", datetime(2024, 3, 1)),
            ("01/03/2024", datetime(2024, 3, 1)),
            ("01/03/2024 08:30:00", datetime(2024, 3, 1, 8, 30, 0)),
        ],
    )
    def test_supported_formats(self, raw: str, expected: datetime):
        assert normalize_date(raw) == expected

    def test_offsets_are_converted_to_naive_utc(self):
        assert normalize_date("2024-03-01T12:00:00Z") == datetime(2024, 3, 1, 12, 0, 0)
        assert normalize_date("2024-03-01T09:00:00-03:00") == datetime(2024, 3, 1, 12, 0, 0)

    def test_unix_seconds(self):
        assert normalize_date(1709294400) == datetime(2024, 3, 1, 12, 0, 0)

    def test_datetime_passthrough(self):
        value = datetime(2024, 1, 2, 3, 4, 5)
        assert normalize_date(value) == value

    @pytest.mark.parametrize("raw", [None, "", "yesterday", "2024-13-45", True])
    def test_absent_or_unparseable_is_none(self, raw):
        assert normalize_date(raw) is None


# ==================================================================
# Required fields
# ==================================================================


class TestRequiredFields:
    def test_require_returns_value(self):
        assert require({"id": 7}, "id", "kiwify") == 7

    @pytest.mark.parametrize("payload", [{}, {"id": None}, {"id": "   "}])
    def test_require_missing_raises_with_field_name(self, payload):
        with pytest.raises(NormalizationError) as exc_info:
            require(payload, "id", "kiwify")
        assert exc_info.value.field == "id"
        assert "kiwify" in str(exc_info.value)

    @pytest.mark.parametrize(
        "raw, expected",
        [(197, Decimal("197")), ("89.90", Decimal("89.90")), (0, Decimal("0"))],
    )
    def test_require_amount(self, raw, expected):
        assert require_amount(raw, "doppus") == expected

    @pytest.mark.parametrize("raw", [None, "abc", "NaN", "Infinity", float("nan"), True])
    def test_require_amount_rejects_missing_and_non_finite(self, raw):
        with pytest.raises(NormalizationError):
            require_amount(raw, "doppus", "total_amount")

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("10.005", Decimal("10.005")),
            ("1.1000000000", Decimal("1.1")),
            ("999999999999", Decimal("999999999999")),
        ],
    )
    def test_require_amount_keeps_precision(self, raw, expected):
        assert require_amount(raw, "doppus") == expected

    @pytest.mark.parametrize(
        "raw, reason", [("0.0000001", "too precise"), ("1e12", "out of range")]
    )
    def test_require_amount_rejects_unstorable_values(self, raw, reason):
        with pytest.raises(NormalizationError, match=reason) as exc_info:
            require_amount(raw, "doppus", "total_amount")
        assert exc_info.value.field == "total_amount"

    def test_require_id_stringifies(self):
        assert require_id({"id": 1001}, "id", "doppus") == "1001"
        assert require_id({"id": " x" + "1" * 99 + " "}, "id", "doppus") == "x" + "1" * 99

    def test_require_id_rejects_oversized_ids(self):
        with pytest.raises(NormalizationError, match="too long") as exc_info:
            require_id({"id": "x" * 101}, "id", "doppus")
        assert exc_info.value.field == "id"

    def test_customer_requires_name_and_email(self):
        with pytest.raises(NormalizationError) as exc_info:
            build_customer({"email": "a@b.com"}, "pepper", name_key="full_name")
        assert exc_info.value.field == "customer.full_name"

        with pytest.raises(NormalizationError) as exc_info:
            build_customer({"name": "Ana"}, "pepper")
        assert exc_info.value.field == "customer.email"

    def test_customer_object_is_required(self):
        with pytest.raises(NormalizationError) as exc_info:
            build_customer(None, "appmax")
        assert exc_info.value.field == "customer"

    def test_customer_name_override(self):
        customer = build_customer({"email": "a@b.com"}, "digistore24", name="Ana Lima")
        assert customer.name == "Ana Lima"
        assert customer.phone is None

    def test_schema_rejections_become_normalization_errors(self):
        with pytest.raises(NormalizationError, match="at most 100") as exc_info:
            build_transaction(
                id="1",
                platform_id="doppus",
                order_id="D" * 101,
                amount=Decimal("1"),
                status="completed",
                customer={"name": "Ana", "email": "ana@example.com"},
            )
        assert exc_info.value.field == "order_id"
        assert exc_info.value.platform_id == "doppus"


# ==================================================================
# Optional fields and metadata
# ==================================================================


class TestOptionalFields:
    def test_first_item_of_empty_or_missing_list(self):
        assert first_item([]) == {}
        assert first_item(None) == {}
        assert first_item([{"sku": "A"}, {"sku": "B"}]) == {"sku": "A"}

    def test_build_product_tolerates_missing_fields(self):
        product = build_product({"sku": 12, "price": "bad"}, id_key="sku")
        assert product.id == "12"
        assert product.price is None
        assert product.quantity is None

    def test_to_int(self):
        assert to_int("3") == 3
        assert to_int(2.0) == 2
        assert to_int("x") is None

    def test_dig_stops_at_missing_steps(self):
        payload = {"payment_method": {"type": "pix"}}
        assert dig(payload, "payment_method", "type") == "pix"
        assert dig(payload, "payment_method", "card", "brand") is None
        assert dig({"payment_method": "pix"}, "payment_method", "type") is None

    def test_collect_blocks_deep_copies(self):
        payload = {"split": {"rules": [{"recipient": "r1"}]}, "affiliate": None}
        metadata = collect_blocks(payload, {"split": "split", "affiliate": "affiliate"})

        assert metadata == {"split": {"rules": [{"recipient": "r1"}]}}
        payload["split"]["rules"].append({"recipient": "r2"})
        assert metadata["split"]["rules"] == [{"recipient": "r1"}]

    def test_collect_fields_skips_absent(self):
        payload = {"utm_source": "fb", "utm_medium": None}
        assert collect_fields(payload, {"source": "utm_source", "medium": "utm_medium"}) == {
            "source": "fb"
        }
        assert collect_fields(None, {"source": "utm_source"}) == {}
