"""Persistence operations over canonical transactions.

Every write is keyed by transaction identity within the owning account, so
replaying the same vendor order (webhook redelivery, a second sync run)
converges to the same row and never moves a row to another account.
Storage failures are re-raised as ``StoreError`` with the SQLAlchemy
exception chained; nothing here retries.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterable, Iterator, Optional, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import StoreError, TransactionNotFoundError
from app.core.logging import get_logger
from app.models.transaction import TransactionRecord
from app.schemas.transaction import Transaction, TransactionUpdate

logger = get_logger(__name__)


class TransactionStore:
    """Repository for ``TransactionRecord`` rows.

    Args:
        db: SQLAlchemy session (one per request / sync run).
        enforce_monotonic_updates: When True, an incoming version whose
            vendor ``updated_at`` is strictly older than the stored one is
            ignored instead of regressing the row.
    """

    def __init__(self, db: Session, enforce_monotonic_updates: bool = True) -> None:
        self.db = db
        self.enforce_monotonic_updates = enforce_monotonic_updates

    # ── Reads ────────────────────────────────────────────────────────

    def get_by_id(self, record_id: UUID) -> Optional[TransactionRecord]:
        with self._storage_errors("get transaction"):
            return self.db.get(TransactionRecord, record_id)

    def get_by_external_id(
        self, platform_id: str, external_id: str, user_id: Optional[str] = None
    ) -> Optional[TransactionRecord]:
        query = select(TransactionRecord).where(
            TransactionRecord.platform_id == platform_id,
            TransactionRecord.external_id == external_id,
        )
        if user_id is not None:
            query = query.where(TransactionRecord.user_id == user_id)
        with self._storage_errors("get transaction by vendor id"):
            return self.db.scalars(query).first()

    def get_by_order_id(
        self, order_id: str, platform_id: Optional[str] = None
    ) -> Optional[TransactionRecord]:
        results = self.list(order_id=order_id, platform_id=platform_id, limit=1)
        return results[0] if results else None

    def get_by_user_id(self, user_id: str) -> list[TransactionRecord]:
        return self.list(user_id=user_id)

    def get_by_platform_id(self, platform_id: str) -> list[TransactionRecord]:
        return self.list(platform_id=platform_id)

    def get_by_status(self, status: str) -> list[TransactionRecord]:
        return self.list(status=status)

    def get_by_date_range(self, start: datetime, end: datetime) -> list[TransactionRecord]:
        """Transactions whose vendor ``created_at`` falls in [start, end]."""
        return self.list(date_from=start, date_to=end)

    def list(
        self,
        *,
        user_id: Optional[str] = None,
        platform_id: Optional[str] = None,
        status: Optional[str] = None,
        order_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[TransactionRecord]:
        """Filter transactions; every filter left as None is ignored."""
        query = select(TransactionRecord)

        if user_id is not None:
            query = query.where(TransactionRecord.user_id == user_id)
        if platform_id is not None:
            query = query.where(TransactionRecord.platform_id == platform_id)
        if status is not None:
            query = query.where(TransactionRecord.status == status)
        if order_id is not None:
            query = query.where(TransactionRecord.order_id == order_id)
        if date_from is not None:
            query = query.where(TransactionRecord.created_at >= date_from)
        if date_to is not None:
            query = query.where(TransactionRecord.created_at <= date_to)

        query = query.order_by(TransactionRecord.created_at.desc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)

        with self._storage_errors("list transactions"):
            return list(self.db.scalars(query).all())

    # ── Writes ───────────────────────────────────────────────────────

    def create(self, txn: Transaction, user_id: Optional[str] = None) -> TransactionRecord:
        record = TransactionRecord(**self._columns(txn, user_id))
        with self._storage_errors("create transaction"):
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        logger.info(
            "Created transaction %s/%s status=%s",
            record.platform_id,
            record.external_id,
            record.status,
        )
        return record

    def update(
        self,
        record_id: UUID,
        updates: Union[TransactionUpdate, dict[str, Any]],
    ) -> TransactionRecord:
        """Apply a partial update and return the post-write row."""
        if isinstance(updates, TransactionUpdate):
            changes = updates.model_dump(exclude_unset=True)
        else:
            changes = dict(updates)

        with self._storage_errors("update transaction"):
            record = self.db.get(TransactionRecord, record_id)
            if record is None:
                raise TransactionNotFoundError(f"Transaction {record_id} not found")
            for key, value in changes.items():
                setattr(record, key, value)
            self.db.commit()
            self.db.refresh(record)
        return record

    def update_status(self, record_id: UUID, status: str) -> TransactionRecord:
        return self.update(record_id, {"status": status})

    def delete(self, record_id: UUID) -> None:
        with self._storage_errors("delete transaction"):
            record = self.db.get(TransactionRecord, record_id)
            if record is None:
                raise TransactionNotFoundError(f"Transaction {record_id} not found")
            self.db.delete(record)
            self.db.commit()
        logger.info("Deleted transaction %s", record_id)

    def upsert(self, txn: Transaction, user_id: Optional[str] = None) -> TransactionRecord:
        """Create the transaction, or update the row with the same identity."""
        try:
            record = self._apply(txn, user_id)
            self.db.commit()
        except IntegrityError:
            # A concurrent delivery inserted the same order between our
            # lookup and insert; its row now exists, so apply as an update.
            self.db.rollback()
            logger.info(
                "Concurrent insert for %s/%s, re-applying as update",
                txn.platform_id,
                txn.id,
            )
            with self._storage_errors("upsert transaction"):
                record = self._apply(txn, user_id)
                self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Database error (upsert transaction): %s", exc)
            raise StoreError(f"upsert transaction: {exc}") from exc

        with self._storage_errors("refresh transaction"):
            self.db.refresh(record)
        return record

    def upsert_many(
        self, txns: Iterable[Transaction], user_id: Optional[str] = None
    ) -> list[TransactionRecord]:
        """Upsert a batch in one unit of work: all rows are written or none."""
        records: list[TransactionRecord] = []
        with self._storage_errors("upsert transaction batch"):
            for txn in txns:
                records.append(self._apply(txn, user_id))
            self.db.commit()
            for record in records:
                self.db.refresh(record)
        return records

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _apply(self, txn: Transaction, user_id: Optional[str]) -> TransactionRecord:
        """Insert or update one row inside the current DB transaction."""
        record = self._find_existing(txn, user_id)
        columns = self._columns(txn, user_id)

        if record is None:
            record = TransactionRecord(**columns)
            self.db.add(record)
            self.db.flush()
            logger.debug("Inserted %s/%s", txn.platform_id, txn.id)
            return record

        if self._is_stale(record, txn):
            logger.info(
                "Ignoring stale update for %s/%s: incoming updated_at=%s < stored=%s",
                txn.platform_id,
                txn.id,
                txn.updated_at,
                record.updated_at,
            )
            return record

        for key, value in columns.items():
            setattr(record, key, value)
        self.db.flush()
        logger.debug("Updated %s/%s -> %s", txn.platform_id, txn.id, txn.status)
        return record

    def _find_existing(
        self, txn: Transaction, user_id: Optional[str]
    ) -> Optional[TransactionRecord]:
        if user_id is None:
            owner = TransactionRecord.user_id.is_(None)
        else:
            owner = TransactionRecord.user_id == user_id
        record = self.db.scalars(
            select(TransactionRecord).where(
                owner,
                TransactionRecord.platform_id == txn.platform_id,
                TransactionRecord.external_id == txn.id,
            )
        ).first()
        if record is not None:
            return record
        return self.db.scalars(
            select(TransactionRecord).where(
                owner,
                TransactionRecord.platform_id == txn.platform_id,
                TransactionRecord.order_id == txn.order_id,
            )
        ).first()

    def _is_stale(self, record: TransactionRecord, txn: Transaction) -> bool:
        if not self.enforce_monotonic_updates:
            return False
        if record.updated_at is None or txn.updated_at is None:
            return False
        return txn.updated_at < record.updated_at

    @staticmethod
    def _columns(txn: Transaction, user_id: Optional[str]) -> dict[str, Any]:
        return {
            "user_id": user_id,
            "external_id": txn.id,
            "platform_id": txn.platform_id,
            "order_id": txn.order_id,
            "amount": txn.amount,
            "currency": txn.currency,
            "status": txn.status,
            "customer": txn.customer.model_dump(mode="json"),
            "product": txn.product.model_dump(mode="json"),
            "payment_method": txn.payment_method,
            "metadata_json": txn.metadata,
            "created_at": txn.created_at,
            "updated_at": txn.updated_at,
        }

    @contextmanager
    def _storage_errors(self, context: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Database error (%s): %s", context, exc)
            raise StoreError(f"{context}: {exc}") from exc
