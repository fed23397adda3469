"""Pure read-side helpers over in-memory records."""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

from khatabook.models.transaction import PaymentMethod, TransactionType
from khatabook.schemas.transaction import TransactionFilters
from khatabook.services import query_service as qs

BASE = datetime(2026, 10, 10, 12, 0, 0)


def txn(id, customer_id, type, amount, days=0, method="cash", hours=0):
    return SimpleNamespace(
        id=id,
        customer_id=customer_id,
        type=type,
        amount=Decimal(str(amount)),
        payment_method=method,
        created_at=BASE + timedelta(days=days, hours=hours),
        item=None,
        note=None,
    )


def cust(id, name, phone, credit=0, debit=0):
    return SimpleNamespace(
        id=id, name=name, phone=phone,
        total_credit=Decimal(str(credit)), total_debit=Decimal(str(debit)),
        balance=Decimal(str(debit)) - Decimal(str(credit)),
    )


TXNS = [
    txn(1, 1, "credit", 100, days=0),
    txn(2, 1, "debit", 30, days=1, method="upi"),
    txn(3, 2, "credit", 250, days=2, method="pending"),
    txn(4, 2, "debit", 250, days=3, method="card"),
    txn(5, 3, "credit", 10, days=4),
]

CUSTOMERS = [
    cust(1, "Ravi Kumar", "9876543210", credit=100, debit=30),
    cust(2, "Sunita Devi", "9123456780", credit=250, debit=250),
    cust(3, "RAVINDRA Stores", "080-2345678", credit=10),
]


def ids(items):
    return [i.id for i in items]


def test_no_filters_returns_everything():
    assert ids(qs.filter_transactions(TXNS, TransactionFilters())) == [1, 2, 3, 4, 5]


def test_filter_by_customer_type_and_method():
    assert ids(qs.filter_transactions(TXNS, TransactionFilters(customer_id=2))) == [3, 4]
    assert ids(qs.filter_transactions(TXNS, TransactionFilters(type=TransactionType.DEBIT))) == [2, 4]
    assert ids(qs.filter_transactions(TXNS, TransactionFilters(payment_method=PaymentMethod.UPI))) == [2]
    combined = TransactionFilters(customer_id=1, type=TransactionType.CREDIT)
    assert ids(qs.filter_transactions(TXNS, combined)) == [1]


def test_amount_range_is_inclusive():
    f = TransactionFilters(min_amount=Decimal("30"), max_amount=Decimal("250"))
    assert ids(qs.filter_transactions(TXNS, f)) == [1, 2, 3, 4]
    assert ids(qs.filter_transactions(TXNS, TransactionFilters(min_amount=Decimal("100.01")))) == [3, 4]
    assert ids(qs.filter_transactions(TXNS, TransactionFilters(max_amount=Decimal("10")))) == [5]


def test_date_range_is_inclusive_at_both_ends():
    f = TransactionFilters(date_from=BASE + timedelta(days=1), date_to=BASE + timedelta(days=3))
    assert ids(qs.filter_transactions(TXNS, f)) == [2, 3, 4]


def test_date_bounds_apply_independently():
    assert ids(qs.filter_transactions(TXNS, TransactionFilters(date_from=BASE + timedelta(days=3)))) == [4, 5]
    assert ids(qs.filter_transactions(TXNS, TransactionFilters(date_to=BASE))) == [1]


def test_aware_bounds_are_compared_in_utc():
    # 17:30 IST on day 0 is 12:00 UTC
    ist = timezone(timedelta(hours=5, minutes=30))
    f = TransactionFilters(date_from=datetime(2026, 10, 10, 17, 30, tzinfo=ist), date_to=datetime(2026, 10, 10, 17, 30, tzinfo=ist))
    assert ids(qs.filter_transactions(TXNS, f)) == [1]


def test_recent_transactions_newest_first_with_limit():
    assert ids(qs.recent_transactions(TXNS, limit=3)) == [5, 4, 3]
    assert ids(qs.recent_transactions(TXNS, limit=0)) == []


def test_recency_ties_broken_by_id():
    same_time = [txn(7, 1, "credit", 1), txn(8, 1, "credit", 1), txn(6, 1, "credit", 1)]
    assert ids(qs.sort_by_recency(same_time)) == [8, 7, 6]


def test_transactions_for_customer():
    assert ids(qs.transactions_for_customer(TXNS, 3)) == [5]


def test_search_by_name_is_case_insensitive_substring():
    assert ids(qs.search_customers(CUSTOMERS, "ravi")) == [1, 3]
    assert ids(qs.search_customers(CUSTOMERS, "DEVI")) == [2]


def test_search_by_phone_substring():
    assert ids(qs.search_customers(CUSTOMERS, "98765")) == [1]
    assert ids(qs.search_customers(CUSTOMERS, "-2345")) == [3]


def test_blank_search_returns_all():
    assert ids(qs.search_customers(CUSTOMERS, "   ")) == [1, 2, 3]
    assert ids(qs.search_customers(CUSTOMERS, None)) == [1, 2, 3]


def test_search_without_match():
    assert qs.search_customers(CUSTOMERS, "zzz") == []


def test_summarize():
    assert qs.summarize(TXNS) == {
        "total_transactions": 5,
        "total_credit": Decimal("360"),
        "total_debit": Decimal("280"),
    }
    assert qs.summarize([]) == {"total_transactions": 0, "total_credit": 0, "total_debit": 0}


def test_dashboard_stats():
    stats = qs.dashboard_stats(CUSTOMERS, TXNS, recent_limit=2)
    assert stats["total_customers"] == 3
    assert stats["total_credit"] == Decimal("360")
    assert stats["total_debit"] == Decimal("280")
    assert stats["pending_balance"] == Decimal("-80")
    assert ids(stats["recent_transactions"]) == [5, 4]


def test_daily_activity_buckets_last_n_days():
    today = date(2026, 10, 14)  # BASE + 4 days
    rows = qs.daily_activity(TXNS, days=3, today=today)
    assert [r["date"] for r in rows] == ["Oct 12", "Oct 13", "Oct 14"]
    assert rows[0] == {"date": "Oct 12", "credit": Decimal("250"), "debit": Decimal("0")}
    assert rows[1] == {"date": "Oct 13", "credit": Decimal("0"), "debit": Decimal("250")}
    assert rows[2] == {"date": "Oct 14", "credit": Decimal("10"), "debit": Decimal("0")}


def test_daily_activity_with_no_transactions_is_all_zero():
    rows = qs.daily_activity([], days=7, today=date(2026, 10, 19))
    assert len(rows) == 7
    assert all(r["credit"] == 0 and r["debit"] == 0 for r in rows)
    assert rows[-1]["date"] == "Oct 19"


def test_credit_debit_breakdown():
    slices = qs.credit_debit_breakdown(CUSTOMERS)
    assert [(s["name"], s["value"]) for s in slices] == [("Credit", Decimal("360")), ("Debit", Decimal("280"))]
    assert qs.credit_debit_breakdown([cust(9, "New", "1")]) == []


def test_snapshot_names_unknown_customers():
    snapshot = qs.LedgerSnapshot(CUSTOMERS, TXNS)
    assert snapshot.customer_name(2) == "Sunita Devi"
    assert snapshot.customer_name(404) == "Unknown"
