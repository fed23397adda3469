import enum

from sqlalchemy import Column, Integer, ForeignKey, Numeric, DateTime, String
from sqlalchemy.orm import relationship
from khatabook.db.base import Base, utcnow


class TransactionType(str, enum.Enum):
    CREDIT = "credit"  # sale on credit, customer owes more
    DEBIT = "debit"  # payment received


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    UPI = "upi"
    CARD = "card"
    PENDING = "pending"


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(16), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    item = Column(String(255), nullable=True)
    quantity = Column(Numeric(12, 3), nullable=True)
    payment_method = Column(String(16), nullable=False, default=PaymentMethod.CASH.value)
    note = Column(String(1024), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    customer = relationship("Customer", back_populates="transactions")
