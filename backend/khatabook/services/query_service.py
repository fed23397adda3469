"""
Read-side helpers for dashboards, reports and search.

Everything here except LedgerSnapshot.load is pure: plain functions over
lists already in memory, recomputed on every call. A single merchant's
history is small enough that linear scans are fine.
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from khatabook.db.base import utcnow
from khatabook.models.customer import Customer
from khatabook.models.transaction import Transaction, TransactionType
from khatabook.schemas.transaction import TransactionFilters

ZERO = Decimal("0")

CREDIT_COLOR = "#10B981"
DEBIT_COLOR = "#EF4444"


class LedgerSnapshot:
    """Customers and transactions of one owner, loaded once per request."""

    def __init__(self, customers: List[Customer], transactions: List[Transaction]):
        self.customers = customers
        self.transactions = transactions
        self._names: Dict[int, str] = {c.id: c.name for c in customers}

    @classmethod
    def load(cls, db: Session, user_id: int, customer_id: Optional[int] = None) -> "LedgerSnapshot":
        customers = db.query(Customer).filter(Customer.user_id == user_id).all()
        q = db.query(Transaction).filter(Transaction.user_id == user_id)
        if customer_id is not None:
            q = q.filter(Transaction.customer_id == customer_id)
        return cls(customers, q.all())

    def customer_name(self, customer_id: int) -> str:
        return self._names.get(customer_id, "Unknown")


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _type_value(txn) -> str:
    return TransactionType(txn.type).value


def filter_transactions(transactions: Iterable, filters: TransactionFilters) -> list:
    """
    Apply every set filter. Amount and date bounds are inclusive and each
    bound applies on its own.
    """
    result = list(transactions)

    if filters.customer_id is not None:
        result = [t for t in result if t.customer_id == filters.customer_id]
    if filters.type is not None:
        result = [t for t in result if _type_value(t) == filters.type.value]
    if filters.payment_method is not None:
        result = [t for t in result if t.payment_method == filters.payment_method.value]
    if filters.min_amount is not None:
        result = [t for t in result if Decimal(str(t.amount)) >= filters.min_amount]
    if filters.max_amount is not None:
        result = [t for t in result if Decimal(str(t.amount)) <= filters.max_amount]
    if filters.date_from is not None:
        start = _as_naive_utc(filters.date_from)
        result = [t for t in result if _as_naive_utc(t.created_at) >= start]
    if filters.date_to is not None:
        end = _as_naive_utc(filters.date_to)
        result = [t for t in result if _as_naive_utc(t.created_at) <= end]

    return result


def sort_by_recency(transactions: Iterable) -> list:
    # id breaks ties between rows written within the same clock tick
    return sorted(transactions, key=lambda t: (t.created_at, t.id or 0), reverse=True)


def recent_transactions(transactions: Iterable, limit: int = 10) -> list:
    return sort_by_recency(transactions)[:max(limit, 0)]


def transactions_for_customer(transactions: Iterable, customer_id: int) -> list:
    return [t for t in transactions if t.customer_id == customer_id]


def search_customers(customers: Sequence, query: Optional[str]) -> list:
    """Blank query returns everyone; otherwise name (any case) or phone contains the query."""
    if not query or not query.strip():
        return list(customers)
    needle = query.strip()
    lowered = needle.lower()
    return [
        c for c in customers
        if lowered in (c.name or "").lower() or needle in (c.phone or "")
    ]


def summarize(transactions: Iterable) -> dict:
    total_credit = ZERO
    total_debit = ZERO
    count = 0
    for t in transactions:
        count += 1
        if _type_value(t) == TransactionType.CREDIT.value:
            total_credit += Decimal(str(t.amount))
        else:
            total_debit += Decimal(str(t.amount))
    return {
        "total_transactions": count,
        "total_credit": total_credit,
        "total_debit": total_debit,
    }


def dashboard_stats(customers: Sequence, transactions: Iterable, recent_limit: int = 5) -> dict:
    total_credit = sum((Decimal(str(c.total_credit or 0)) for c in customers), ZERO)
    total_debit = sum((Decimal(str(c.total_debit or 0)) for c in customers), ZERO)
    return {
        "total_customers": len(customers),
        "total_credit": total_credit,
        "total_debit": total_debit,
        "pending_balance": total_debit - total_credit,
        "recent_transactions": recent_transactions(transactions, recent_limit),
    }


def daily_activity(transactions: Iterable, days: int = 7, today: Optional[date] = None) -> List[dict]:
    """Credit/debit sums per day for the last `days` days, oldest first."""
    today = today or utcnow().date()
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    buckets = {day: {"credit": ZERO, "debit": ZERO} for day in window}

    for t in transactions:
        day = _as_naive_utc(t.created_at).date()
        if day in buckets:
            buckets[day][_type_value(t)] += Decimal(str(t.amount))

    return [
        {"date": day.strftime("%b %d"), "credit": buckets[day]["credit"], "debit": buckets[day]["debit"]}
        for day in window
    ]


def credit_debit_breakdown(customers: Sequence) -> List[dict]:
    """Pie chart slices. Empty when there is nothing to chart."""
    total_credit = sum((Decimal(str(c.total_credit or 0)) for c in customers), ZERO)
    total_debit = sum((Decimal(str(c.total_debit or 0)) for c in customers), ZERO)
    if total_credit == 0 and total_debit == 0:
        return []
    return [
        {"name": "Credit", "value": total_credit, "color": CREDIT_COLOR},
        {"name": "Debit", "value": total_debit, "color": DEBIT_COLOR},
    ]
