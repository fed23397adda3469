from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime
from sqlalchemy.orm import relationship
from khatabook.db.base import Base, utcnow


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(64), nullable=False)
    address = Column(String(512), nullable=True)
    # Running totals. Written only by the ledger service.
    total_credit = Column(Numeric(12, 2), nullable=False, default=0)
    total_debit = Column(Numeric(12, 2), nullable=False, default=0)
    balance = Column(Numeric(12, 2), nullable=False, default=0)  # total_debit - total_credit
    created_at = Column(DateTime, nullable=False, default=utcnow)

    owner = relationship("User", backref="customers")
    transactions = relationship(
        "Transaction",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
