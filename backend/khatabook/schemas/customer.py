from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator


class CustomerCreate(BaseModel):
    name: str
    phone: str
    address: Optional[str] = None

    @field_validator('name', 'phone')
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('must not be blank')
        return v


class CustomerUpdate(BaseModel):
    """Totals are not editable here; only the ledger service moves them."""
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class CustomerResponse(BaseModel):
    id: int
    user_id: int
    name: str
    phone: str
    address: Optional[str] = None
    total_credit: Decimal
    total_debit: Decimal
    balance: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class CustomerQRPayload(BaseModel):
    type: str = "customer"
    id: int
    name: str
    timestamp: int  # epoch milliseconds
