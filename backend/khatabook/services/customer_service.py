"""Customer records for one owner. Running totals are left to ledger_service."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from khatabook.core.exceptions import CustomerNotFound
from khatabook.models.customer import Customer
from khatabook.models.transaction import Transaction
from khatabook.schemas.customer import CustomerCreate, CustomerUpdate
from khatabook.services.query_service import search_customers
from khatabook.services.subscriptions import CUSTOMERS, TRANSACTIONS, ChangeEvent, change_hub

logger = logging.getLogger(__name__)


def get_owned_customer(db: Session, user_id: int, customer_id: int) -> Customer:
    """Customer owned by user_id. Another owner's customer is reported as missing."""
    customer = db.query(Customer).filter(
        Customer.id == customer_id,
        Customer.user_id == user_id,
    ).first()
    if not customer:
        raise CustomerNotFound(customer_id)
    return customer


def list_customers(db: Session, user_id: int, search: Optional[str] = None) -> List[Customer]:
    """Owner's customers by name, narrowed by search_customers when a query is given."""
    customers = db.query(Customer).filter(Customer.user_id == user_id).order_by(Customer.name).all()
    return search_customers(customers, search)


def create_customer(db: Session, user_id: int, data: CustomerCreate) -> Customer:
    customer = Customer(
        user_id=user_id,
        name=data.name,
        phone=data.phone,
        address=data.address,
        total_credit=0,
        total_debit=0,
        balance=0,
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    logger.info(f"Customer {customer.id} created for user {user_id}")
    change_hub.publish(ChangeEvent(user_id, CUSTOMERS, "create", customer.id, customer.id))
    return customer


def update_customer(db: Session, user_id: int, customer_id: int, data: CustomerUpdate) -> Customer:
    customer = get_owned_customer(db, user_id, customer_id)
    if data.name is not None:
        if not data.name.strip():
            raise ValueError("Name cannot be empty")
        customer.name = data.name.strip()
    if data.phone is not None:
        if not data.phone.strip():
            raise ValueError("Phone cannot be empty")
        customer.phone = data.phone.strip()
    if data.address is not None:
        customer.address = data.address
    db.commit()
    db.refresh(customer)
    change_hub.publish(ChangeEvent(user_id, CUSTOMERS, "update", customer.id, customer.id))
    return customer


def delete_customer(db: Session, user_id: int, customer_id: int) -> int:
    """
    Delete a customer together with its transactions in one commit.

    Returns the number of transactions removed.
    """
    customer = get_owned_customer(db, user_id, customer_id)
    removed = db.query(Transaction).filter(
        Transaction.customer_id == customer.id
    ).delete(synchronize_session=False)
    db.delete(customer)
    db.commit()
    logger.info(f"Customer {customer_id} deleted with {removed} transactions")
    change_hub.publish(ChangeEvent(user_id, CUSTOMERS, "delete", customer_id, customer_id))
    if removed:
        change_hub.publish(ChangeEvent(user_id, TRANSACTIONS, "delete", customer_id))
    return removed
