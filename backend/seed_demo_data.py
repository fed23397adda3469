#!/usr/bin/env python
"""Create a demo owner with a few customers and transactions for local development."""
from decimal import Decimal

from khatabook.core.security import get_password_hash
from khatabook.db.init_db import init_db
from khatabook.db.session import SessionLocal
from khatabook.models.transaction import PaymentMethod, TransactionType
from khatabook.models.user import User
from khatabook.schemas.customer import CustomerCreate
from khatabook.schemas.transaction import TransactionCreate
from khatabook.services.customer_service import create_customer
from khatabook.services.ledger_service import record_transaction

DEMO_EMAIL = "owner@khatabook.local"
DEMO_PASSWORD = "Owner@123456"

DEMO_LEDGER = [
    ("Ravi Kumar", "9876543210", [
        (TransactionType.CREDIT, "450", "Rice 5kg", PaymentMethod.PENDING),
        (TransactionType.DEBIT, "200", None, PaymentMethod.UPI),
    ]),
    ("Sunita Devi", "9123456780", [
        (TransactionType.CREDIT, "120.50", "Milk", PaymentMethod.PENDING),
        (TransactionType.CREDIT, "75", "Bread", PaymentMethod.PENDING),
    ]),
    ("Arjun Stores", "9988776655", [
        (TransactionType.DEBIT, "1000", None, PaymentMethod.CASH),
    ]),
]


def main():
    init_db()
    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == DEMO_EMAIL).first():
            print(f"Demo user {DEMO_EMAIL} already exists, nothing to do")
            return

        owner = User(email=DEMO_EMAIL, name="Demo Kirana", hashed_password=get_password_hash(DEMO_PASSWORD))
        db.add(owner)
        db.commit()
        db.refresh(owner)

        for name, phone, entries in DEMO_LEDGER:
            customer = create_customer(db, owner.id, CustomerCreate(name=name, phone=phone))
            for txn_type, amount, item, method in entries:
                record_transaction(db, owner.id, customer.id, TransactionCreate(
                    type=txn_type, amount=Decimal(amount), item=item, payment_method=method,
                ))

        print("=" * 60)
        print("DEMO DATA CREATED")
        print(f"Email:    {DEMO_EMAIL}")
        print(f"Password: {DEMO_PASSWORD}")
        print("=" * 60)
    finally:
        db.close()


if __name__ == "__main__":
    main()
