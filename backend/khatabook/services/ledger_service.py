"""
Ledger mutations. The only code allowed to move a customer's running totals.

Each mutation writes the transaction row and the customer's totals in a
single commit. Totals move by SQL-side increments
(total = total + delta), never by read-modify-write, so two writers
holding stale copies of the same customer cannot lose each other's update.

Invariant per customer:
    total_credit = sum of credit amounts
    total_debit  = sum of debit amounts
    balance      = total_debit - total_credit
"""
import logging
from decimal import Decimal
from typing import Tuple

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from khatabook.models.customer import Customer
from khatabook.models.transaction import Transaction, TransactionType
from khatabook.schemas.transaction import TransactionCreate
from khatabook.services.customer_service import get_owned_customer
from khatabook.services.subscriptions import publish_ledger_change

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Decimal rounded to paise. SQLite hands sums back as floats."""
    return Decimal(str(value if value is not None else 0)).quantize(CENT)


def signed_deltas(txn_type: str, amount: Decimal) -> Tuple[Decimal, Decimal]:
    """(credit_delta, debit_delta) contributed by one transaction."""
    amount = Decimal(str(amount))
    if TransactionType(txn_type) == TransactionType.CREDIT:
        return amount, ZERO
    return ZERO, amount


def _apply_delta(db: Session, customer_id: int, credit_delta: Decimal, debit_delta: Decimal) -> None:
    db.query(Customer).filter(Customer.id == customer_id).update(
        {
            Customer.total_credit: Customer.total_credit + credit_delta,
            Customer.total_debit: Customer.total_debit + debit_delta,
            Customer.balance: Customer.balance + (debit_delta - credit_delta),
        },
        synchronize_session=False,
    )


def record_transaction(db: Session, user_id: int, customer_id: int, data: TransactionCreate) -> Transaction:
    """
    Create a transaction and apply it to the customer's totals.

    Raises:
        CustomerNotFound: customer missing or owned by someone else.
            Nothing is written in that case.
    """
    customer = get_owned_customer(db, user_id, customer_id)

    txn = Transaction(
        customer_id=customer.id,
        user_id=user_id,
        type=TransactionType(data.type).value,
        amount=data.amount,
        item=data.item,
        quantity=data.quantity,
        payment_method=data.payment_method.value,
        note=data.note,
    )
    credit_delta, debit_delta = signed_deltas(txn.type, data.amount)

    try:
        db.add(txn)
        db.flush()
        _apply_delta(db, customer.id, credit_delta, debit_delta)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Ledger write failed for customer {customer_id}", exc_info=True)
        raise

    db.refresh(txn)
    db.refresh(customer)
    logger.info(
        f"[LEDGER] +{txn.type} {txn.amount} on customer {customer.id}: "
        f"credit={customer.total_credit} debit={customer.total_debit} balance={customer.balance}"
    )
    publish_ledger_change(user_id, customer.id, "create", txn.id)
    return txn


def delete_transaction(db: Session, user_id: int, customer_id: int, transaction_id: int) -> bool:
    """
    Delete a transaction and reverse its effect on the customer's totals.

    Unknown ids (or ids belonging to another customer/owner) are a no-op:
    returns False and raises nothing.
    """
    txn = db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.customer_id == customer_id,
        Transaction.user_id == user_id,
    ).first()
    if not txn:
        logger.info(f"[LEDGER] delete of unknown transaction {transaction_id} ignored")
        return False

    credit_delta, debit_delta = signed_deltas(txn.type, txn.amount)
    try:
        db.delete(txn)
        _apply_delta(db, customer_id, -credit_delta, -debit_delta)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Ledger delete failed for transaction {transaction_id}", exc_info=True)
        raise

    logger.info(f"[LEDGER] -{txn.type} {txn.amount} reversed on customer {customer_id}")
    publish_ledger_change(user_id, customer_id, "delete", transaction_id)
    return True


def ledger_sums(db: Session, customer_id: int) -> Tuple[Decimal, Decimal]:
    """(sum of credit amounts, sum of debit amounts) straight from the transactions table."""
    credit_sum, debit_sum = db.query(
        func.coalesce(func.sum(case((Transaction.type == TransactionType.CREDIT.value, Transaction.amount), else_=0)), 0),
        func.coalesce(func.sum(case((Transaction.type == TransactionType.DEBIT.value, Transaction.amount), else_=0)), 0),
    ).filter(Transaction.customer_id == customer_id).one()
    return to_money(credit_sum), to_money(debit_sum)


def reconcile_customer(db: Session, user_id: int, customer_id: int) -> Tuple[Customer, bool]:
    """
    Recompute a customer's totals from their transactions and store them.

    Returns (customer, drift_found).
    """
    customer = get_owned_customer(db, user_id, customer_id)
    credit_sum, debit_sum = ledger_sums(db, customer.id)
    expected = (credit_sum, debit_sum, debit_sum - credit_sum)
    current = (
        to_money(customer.total_credit),
        to_money(customer.total_debit),
        to_money(customer.balance),
    )
    drift_found = expected != current

    if drift_found:
        logger.warning(
            f"[LEDGER] drift on customer {customer.id}: stored={current} recomputed={expected}"
        )
        customer.total_credit, customer.total_debit, customer.balance = expected
        db.commit()
        db.refresh(customer)
        publish_ledger_change(user_id, customer.id, "update")
    return customer, drift_found
