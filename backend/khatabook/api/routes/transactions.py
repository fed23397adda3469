"""Transaction list across all customers, with report filters."""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from khatabook.api.deps import get_db, get_current_user, transaction_filters
from khatabook.core.config import settings
from khatabook.models.user import User
from khatabook.schemas.transaction import TransactionFilters, TransactionResponse
from khatabook.services.query_service import LedgerSnapshot, filter_transactions, recent_transactions, sort_by_recency

router = APIRouter()


@router.get("", response_model=List[TransactionResponse])
def list_transactions(
    filters: TransactionFilters = Depends(transaction_filters),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Filtered, newest first."""
    snapshot = LedgerSnapshot.load(db, current_user.id)
    return sort_by_recency(filter_transactions(snapshot.transactions, filters))


@router.get("/recent", response_model=List[TransactionResponse])
def list_recent_transactions(
    limit: int = Query(settings.RECENT_TRANSACTIONS_LIMIT, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    snapshot = LedgerSnapshot.load(db, current_user.id)
    return recent_transactions(snapshot.transactions, limit)
