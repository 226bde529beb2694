"""Query and administer stored transactions for the requesting user."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.api.deps import get_transaction_store, get_user_id
from app.core.logging import get_logger
from app.models.transaction import TransactionRecord
from app.schemas.transaction import (
    CanonicalStatus,
    TransactionResponse,
    TransactionStatusUpdate,
)
from app.services.store.transactions import TransactionStore

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=List[TransactionResponse])
def list_transactions(
    platform_id: Optional[str] = Query(None, description="Filter by platform id"),
    status: Optional[CanonicalStatus] = Query(None, description="Filter by canonical status"),
    order_id: Optional[str] = Query(None, description="Filter by vendor order number"),
    date_from: Optional[datetime] = Query(None, description="Created at >="),
    date_to: Optional[datetime] = Query(None, description="Created at <="),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(50, ge=1, le=500, description="Items per page"),
    user_id: str = Depends(get_user_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> List[TransactionRecord]:
    """List the user's transactions, newest first."""
    return store.list(
        user_id=user_id,
        platform_id=platform_id,
        status=status,
        order_id=order_id,
        date_from=date_from,
        date_to=date_to,
        offset=(page - 1) * limit,
        limit=limit,
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: UUID,
    user_id: str = Depends(get_user_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> TransactionRecord:
    return _get_owned(store, transaction_id, user_id)


@router.patch("/{transaction_id}/status", response_model=TransactionResponse)
def update_transaction_status(
    transaction_id: UUID,
    payload: TransactionStatusUpdate,
    user_id: str = Depends(get_user_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> TransactionRecord:
    """Manually override the canonical status (e.g. after a support ticket)."""
    record = _get_owned(store, transaction_id, user_id)
    logger.info(
        "Manual status change for %s: %s -> %s", transaction_id, record.status, payload.status
    )
    return store.update_status(transaction_id, payload.status)


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: UUID,
    user_id: str = Depends(get_user_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> Response:
    _get_owned(store, transaction_id, user_id)
    store.delete(transaction_id)
    return Response(status_code=204)


def _get_owned(store: TransactionStore, transaction_id: UUID, user_id: str) -> TransactionRecord:
    record = store.get_by_id(transaction_id)
    # Other users' transactions are reported as missing
    if record is None or record.user_id != user_id:
        raise HTTPException(
            status_code=404,
            detail=f"Transaction '{transaction_id}' not found.",
        )
    return record
