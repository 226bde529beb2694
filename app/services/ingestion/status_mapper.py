"""Vendor status string -> canonical tri-state status.

Each vendor declares explicit allow-lists for ``completed`` and
``pending``. Everything else, including statuses we have never seen,
maps to ``failed``: an unknown status must never count money as received.
"""

from __future__ import annotations

from typing import Any, Iterable

from app.core.logging import get_logger

logger = get_logger(__name__)

COMPLETED = "completed"
PENDING = "pending"
FAILED = "failed"

CANONICAL_STATUSES: tuple[str, ...] = (COMPLETED, PENDING, FAILED)


def _key(status: str) -> str:
    return status.strip().lower()


class StatusMapper:
    """Callable mapping a vendor status to completed/pending/failed.

    Args:
        platform_id: Used only for log context.
        completed: Vendor statuses meaning the money was received.
        pending: Vendor statuses meaning the order may still be paid.
        failed: Known terminal statuses. They map to ``failed`` exactly
            like unknown ones; listing them only silences the
            unknown-status warning.
    """

    def __init__(
        self,
        platform_id: str,
        completed: Iterable[str],
        pending: Iterable[str] = (),
        failed: Iterable[str] = (),
    ) -> None:
        self.platform_id = platform_id
        self.completed = frozenset(_key(s) for s in completed)
        self.pending = frozenset(_key(s) for s in pending)
        self.failed = frozenset(_key(s) for s in failed)

        overlap = self.completed & self.pending
        if overlap:
            raise ValueError(
                f"{platform_id}: statuses mapped to both completed and pending: "
                f"{sorted(overlap)}"
            )

    def __call__(self, vendor_status: Any) -> str:
        if not isinstance(vendor_status, str):
            logger.warning(
                "Non-string status %r for %s, mapping to failed",
                vendor_status,
                self.platform_id,
            )
            return FAILED

        key = _key(vendor_status)
        if key in self.completed:
            return COMPLETED
        if key in self.pending:
            return PENDING
        if key not in self.failed:
            logger.warning(
                "Unknown status %r for %s, mapping to failed",
                vendor_status,
                self.platform_id,
            )
        return FAILED

    def __repr__(self) -> str:
        return (
            f"<StatusMapper(platform_id={self.platform_id!r}, "
            f"completed={sorted(self.completed)}, pending={sorted(self.pending)})>"
        )
