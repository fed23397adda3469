"""
Dashboard cards and chart data.

- Totals across customers and the most recent transactions
- Daily credit/debit activity (last N days)
- Credit vs debit breakdown
"""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from khatabook.api.deps import get_db, get_current_user
from khatabook.core.config import settings
from khatabook.models.user import User
from khatabook.schemas.reports import ChartSlice, DailyActivity, DashboardStats
from khatabook.services.query_service import LedgerSnapshot, credit_debit_breakdown, daily_activity, dashboard_stats

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    recent: int = Query(5, ge=0, le=50, description="How many recent transactions to include"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Total customers, total credit, total debit, pending balance."""
    snapshot = LedgerSnapshot.load(db, current_user.id)
    return dashboard_stats(snapshot.customers, snapshot.transactions, recent_limit=recent)


@router.get("/daily-activity", response_model=List[DailyActivity])
def get_daily_activity(
    days: int = Query(settings.DAILY_ACTIVITY_DAYS, ge=1, le=90, description="Number of days to fetch"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Bar chart data: [{date: "Oct 19", credit, debit}, ...], oldest first."""
    snapshot = LedgerSnapshot.load(db, current_user.id)
    return daily_activity(snapshot.transactions, days=days)


@router.get("/credit-debit", response_model=List[ChartSlice])
def get_credit_debit(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Pie chart slices. Empty list when nothing has been recorded."""
    snapshot = LedgerSnapshot.load(db, current_user.id)
    return credit_debit_breakdown(snapshot.customers)
