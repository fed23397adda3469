from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from khatabook.schemas.transaction import TransactionResponse


class ReportSummary(BaseModel):
    total_transactions: int
    total_credit: Decimal
    total_debit: Decimal


class DashboardStats(BaseModel):
    total_customers: int
    total_credit: Decimal
    total_debit: Decimal
    pending_balance: Decimal
    recent_transactions: List[TransactionResponse]


class DailyActivity(BaseModel):
    date: str  # "Mon DD"
    credit: Decimal
    debit: Decimal


class ChartSlice(BaseModel):
    name: str
    value: Decimal
    color: Optional[str] = None


class ReconcileResult(BaseModel):
    customer_id: int
    drift_found: bool
    total_credit: Decimal
    total_debit: Decimal
    balance: Decimal


class BackupValidation(BaseModel):
    customers: int
    transactions: int
    export_date: Optional[str] = None
    applied: bool = False
