"""Builders for the vendor authentication header schemes.

Each builder returns an ``auth_headers`` callable for a ``VendorProfile``:
``(api_key, secret_key) -> headers``.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Callable, Optional

AuthHeaders = Callable[[str, str], dict[str, str]]


def bearer(secret_header: Optional[str] = None) -> AuthHeaders:
    """``Authorization: Bearer <api_key>``, plus the secret under ``secret_header``."""

    def build(api_key: str, secret_key: str) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {api_key}"}
        if secret_header:
            headers[secret_header] = secret_key
        return headers

    return build


def key_headers(key_header: str, secret_header: Optional[str] = None) -> AuthHeaders:
    """API key (and optionally the secret) sent as plain custom headers."""

    def build(api_key: str, secret_key: str) -> dict[str, str]:
        headers = {key_header: api_key}
        if secret_header:
            headers[secret_header] = secret_key
        return headers

    return build


def sign(api_key: str, secret_key: str, timestamp: int) -> str:
    """Hex HMAC-SHA256 of ``"<api_key>:<timestamp>"`` keyed by the secret."""
    message = f"{api_key}:{timestamp}".encode("utf-8")
    return hmac.new(secret_key.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signed_headers(
    key_header: str,
    signature_header: str,
    clock: Callable[[], float] = time.time,
) -> AuthHeaders:
    """API key plus a per-request signature derived from the current time."""

    def build(api_key: str, secret_key: str) -> dict[str, str]:
        timestamp = int(clock())
        return {
            key_header: api_key,
            signature_header: sign(api_key, secret_key, timestamp),
            "X-Timestamp": str(timestamp),
        }

    return build
