"""Normalizer utility functions shared by every vendor normalizer.

These functions provide a single place to handle the messy reality of
multi-vendor data: inconsistent date formats, currency symbols vs codes,
numbers sent as strings, optional nested blocks, etc.

Required fields go through the ``require_*`` helpers, which raise
``NormalizationError``. Optional fields go through the ``to_*`` helpers,
which return None instead of raising.
"""

from __future__ import annotations

import copy
import math
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from app.core.exceptions import NormalizationError
from app.core.logging import get_logger
from app.schemas.transaction import Customer, Product, Transaction

logger = get_logger(__name__)

# Maps common currency symbols / aliases to ISO 4217 codes
_CURRENCY_ALIASES: dict[str, str] = {
    "R$": "BRL",
    "BRL": "BRL",
    "$": "USD",
    "US$": "USD",
    "USD": "USD",
    "€": "EUR",
    "EUR": "EUR",
    "£": "GBP",
    "GBP": "GBP",
    "MXN": "MXN",
    "MX$": "MXN",
    "ARS": "ARS",
    "COP": "COP",
    "CLP": "CLP",
}

# Date formats we accept, ordered from most specific to least
_DATE_FORMATS: list[str] = [
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y",
]

# Column limits of the stored transaction
MAX_ID_LENGTH = 100
MAX_AMOUNT_DIGITS = 18
AMOUNT_DECIMAL_PLACES = 6


def normalize_currency(code: str) -> str:
    """Normalize currency codes: 'brl' -> 'BRL', 'R$' -> 'BRL', etc.

    Args:
        code: Raw currency string from the vendor payload.

    Returns:
        Three-letter uppercase ISO 4217 currency code.

    Raises:
        ValueError: If the code cannot be resolved.
    """
    stripped = code.strip()
    upper = stripped.upper()
    if upper in _CURRENCY_ALIASES:
        return _CURRENCY_ALIASES[upper]
    # Symbols like R$ are matched with their original casing
    if stripped in _CURRENCY_ALIASES:
        return _CURRENCY_ALIASES[stripped]
    if len(stripped) == 3 and stripped.isalpha():
        return upper
    raise ValueError(f"Unknown currency code: {code!r}")


def resolve_currency(value: Any, platform_id: str, default: str) -> str:
    """Return the ISO code for ``value``, or ``default`` when it is absent.

    A currency that is present but unrecognizable is a normalization
    failure: labelling money with the wrong currency is worse than
    rejecting the order.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        return normalize_currency(str(value))
    except ValueError:
        raise NormalizationError(platform_id, "currency", f"unrecognized ({value!r})")


def normalize_date(value: Any) -> Optional[datetime]:
    """Parse a vendor timestamp into a naive UTC datetime.

    Accepts ISO-8601 strings (with or without offset / trailing ``Z``),
    the legacy formats in ``_DATE_FORMATS``, unix timestamps in seconds
    and ``datetime`` objects.

    Returns:
        Parsed datetime, or None if the value is absent or unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        logger.warning("Could not parse date: %r", value)
        return None
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            logger.warning("Could not parse unix timestamp: %r", value)
            return None

    stripped = str(value).strip()
    try:
        return _to_naive_utc(datetime.fromisoformat(stripped.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(stripped, fmt)
        except ValueError:
            continue
    logger.warning("Could not parse date: %s", value)
    return None


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# ------------------------------------------------------------------
# Required fields
# ------------------------------------------------------------------


def require(payload: Mapping[str, Any], key: str, platform_id: str, path: str = "") -> Any:
    """Return ``payload[key]`` or raise NormalizationError if missing/empty."""
    value = payload.get(key) if isinstance(payload, Mapping) else None
    if value is None or (isinstance(value, str) and not value.strip()):
        raise NormalizationError(platform_id, path or key)
    return value


def require_mapping(
    payload: Mapping[str, Any], key: str, platform_id: str, path: str = ""
) -> dict[str, Any]:
    """Return a nested object, raising if it is absent or not an object."""
    value = payload.get(key) if isinstance(payload, Mapping) else None
    if not isinstance(value, Mapping):
        raise NormalizationError(platform_id, path or key)
    return dict(value)


def require_id(payload: Mapping[str, Any], key: str, platform_id: str) -> str:
    """Vendor identifiers arrive as ints or strings; always store strings."""
    value = str(require(payload, key, platform_id)).strip()
    if len(value) > MAX_ID_LENGTH:
        raise NormalizationError(
            platform_id, key, f"too long ({len(value)} > {MAX_ID_LENGTH} characters)"
        )
    return value


def require_amount(value: Any, platform_id: str, field: str = "amount") -> Decimal:
    """Convert a required monetary value; absent or NaN is an error, not zero."""
    if value is None or isinstance(value, bool):
        raise NormalizationError(platform_id, field)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise NormalizationError(platform_id, field, f"not a number ({value!r})")
    if not amount.is_finite():
        raise NormalizationError(platform_id, field, f"not a finite number ({value!r})")
    # Checked on the normalized value so trailing zeros never count
    exact = amount.normalize().as_tuple()
    if isinstance(exact.exponent, int) and -exact.exponent > AMOUNT_DECIMAL_PLACES:
        raise NormalizationError(
            platform_id,
            field,
            f"too precise (over {AMOUNT_DECIMAL_PLACES} decimal places: {value!r})",
        )
    if amount.adjusted() >= MAX_AMOUNT_DIGITS - AMOUNT_DECIMAL_PLACES:
        raise NormalizationError(platform_id, field, f"out of range ({value!r})")
    return amount


def require_status(payload: Mapping[str, Any], key: str, platform_id: str) -> str:
    value = require(payload, key, platform_id)
    if not isinstance(value, str):
        raise NormalizationError(platform_id, key, f"not a string ({value!r})")
    return value


def build_customer(
    raw: Any,
    platform_id: str,
    *,
    name: Optional[str] = None,
    name_key: str = "name",
) -> Customer:
    """Build the canonical customer from the vendor customer object.

    The customer object itself, its name and its email are required.
    ``name`` overrides ``raw[name_key]`` for vendors that split it.
    """
    if not isinstance(raw, Mapping):
        raise NormalizationError(platform_id, "customer")
    resolved_name = name if name is not None else to_str(raw.get(name_key))
    if not resolved_name:
        raise NormalizationError(platform_id, f"customer.{name_key}")
    email = to_str(raw.get("email"))
    if not email:
        raise NormalizationError(platform_id, "customer.email")
    return Customer(
        name=resolved_name,
        email=email,
        phone=to_str(raw.get("phone")),
        document=to_str(raw.get("document")),
    )


def build_transaction(**fields: Any) -> Transaction:
    """Construct the canonical transaction from normalized fields.

    Any value the schema rejects (an order number over the stored length,
    an oversized payment method label...) becomes a ``NormalizationError``
    naming the offending field.
    """
    try:
        return Transaction(**fields)
    except ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "transaction"
        raise NormalizationError(
            str(fields.get("platform_id")), field, f"invalid ({error['msg']})"
        ) from exc


# ------------------------------------------------------------------
# Optional fields
# ------------------------------------------------------------------


def to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def to_decimal(value: Any) -> Optional[Decimal]:
    """Safely convert an optional value to Decimal."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        logger.warning("Ignoring non-numeric value %r", value)
        return None
    return result if result.is_finite() else None


def to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer value %r", value)
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return int(number)


def dig(payload: Any, *path: str) -> Any:
    """Walk nested objects, returning None as soon as a step is missing."""
    current = payload
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def first_item(items: Any) -> dict[str, Any]:
    """First line item of an order, or an empty dict for item-less orders."""
    if isinstance(items, list) and items and isinstance(items[0], Mapping):
        return dict(items[0])
    return {}


def build_product(
    item: Mapping[str, Any],
    *,
    id_key: str = "id",
    name_key: str = "name",
    price_key: str = "price",
    quantity_key: str = "quantity",
) -> Product:
    return Product(
        id=to_str(item.get(id_key)),
        name=to_str(item.get(name_key)),
        price=to_decimal(item.get(price_key)),
        quantity=to_int(item.get(quantity_key)),
    )


def collect_blocks(payload: Mapping[str, Any], blocks: Mapping[str, str]) -> dict[str, Any]:
    """Copy vendor blocks into metadata unchanged.

    Args:
        payload: The vendor order.
        blocks: ``{metadata_key: payload_key}``. Absent/None blocks are
            skipped; present ones are deep-copied so the stored metadata
            never aliases the caller's payload.
    """
    collected: dict[str, Any] = {}
    if not isinstance(payload, Mapping):
        return collected
    for meta_key, source_key in blocks.items():
        value = payload.get(source_key)
        if value is not None:
            collected[meta_key] = copy.deepcopy(value)
    return collected


def collect_fields(payload: Mapping[str, Any], fields: Mapping[str, str]) -> dict[str, Any]:
    """Group flat vendor fields (``utm_source``, ``utm_medium``...) into one block.

    Returns an empty dict when none of the fields are present.
    """
    if not isinstance(payload, Mapping):
        return {}
    return {
        out_key: copy.deepcopy(payload[src_key])
        for out_key, src_key in fields.items()
        if payload.get(src_key) is not None
    }


def add_group(metadata: dict[str, Any], key: str, group: Mapping[str, Any]) -> None:
    """Store ``group`` under ``key`` only when it carries something."""
    if group:
        metadata[key] = dict(group)
