"""Exception hierarchy for the payment integration layer."""

from __future__ import annotations

from typing import Optional


class IntegrationError(Exception):
    """Base exception for all integration-layer errors."""


# ── Vendor HTTP ──────────────────────────────────────────────────────


class VendorHttpError(IntegrationError):
    """A vendor API call did not produce a 2xx response.

    Attributes:
        platform_id: Registry id of the vendor that failed.
        status_code: HTTP status returned by the vendor, or None when no
            response was received (timeouts, connection failures).
    """

    def __init__(
        self,
        platform_id: str,
        status_code: Optional[int],
        message: str = "",
    ) -> None:
        self.platform_id = platform_id
        self.status_code = status_code
        detail = message or f"HTTP error! status: {status_code}"
        super().__init__(f"[{platform_id}] {detail}")


class VendorTimeoutError(VendorHttpError):
    """The vendor did not answer within the configured timeout."""

    def __init__(self, platform_id: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(platform_id, None, f"request timed out after {timeout}s")


class VendorConnectionError(VendorHttpError):
    """The vendor host could not be reached."""

    def __init__(self, platform_id: str, reason: str) -> None:
        super().__init__(platform_id, None, f"connection failed: {reason}")


# ── Normalization ────────────────────────────────────────────────────


class NormalizationError(IntegrationError):
    """A required field is missing or unparseable in a vendor payload."""

    def __init__(self, platform_id: str, field: str, reason: str = "missing") -> None:
        self.platform_id = platform_id
        self.field = field
        super().__init__(f"[{platform_id}] required field {field!r} is {reason}")


# ── Persistence ──────────────────────────────────────────────────────


class StoreError(IntegrationError):
    """Persistence-layer failure. The original exception is chained."""


class TransactionNotFoundError(StoreError):
    """Raised when a transaction id does not exist in the store."""


# ── Configuration ────────────────────────────────────────────────────


class ConfigurationError(IntegrationError):
    """Raised when platform configuration is invalid or missing."""


class UnknownPlatformError(ConfigurationError):
    """Raised when a platform id is not in the registry."""

    def __init__(self, platform_id: str) -> None:
        self.platform_id = platform_id
        super().__init__(f"Unknown platform {platform_id!r}")


class MissingCredentialsError(ConfigurationError):
    """Raised before any network call when api/secret keys are empty."""


class PlatformDisabledError(ConfigurationError):
    """Raised when an operation targets a platform the user has disabled."""
