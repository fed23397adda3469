from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from khatabook.models.transaction import TransactionType, PaymentMethod


class TransactionCreate(BaseModel):
    type: TransactionType
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2, allow_inf_nan=False)
    item: Optional[str] = None
    quantity: Optional[Decimal] = Field(default=None, ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    note: Optional[str] = None


class TransactionResponse(BaseModel):
    id: int
    customer_id: int
    user_id: int
    type: TransactionType
    amount: Decimal
    item: Optional[str] = None
    quantity: Optional[Decimal] = None
    payment_method: PaymentMethod
    note: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TransactionFilters(BaseModel):
    """All fields optional; unset fields do not filter."""
    customer_id: Optional[int] = None
    type: Optional[TransactionType] = None
    payment_method: Optional[PaymentMethod] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


class TransactionDeleteResult(BaseModel):
    id: int
    deleted: bool
