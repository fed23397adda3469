"""Customers and their ledgers: CRUD, per-customer transactions, QR codes."""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from khatabook.api.deps import get_db, get_current_user
from khatabook.core.audit import AuditLog
from khatabook.core.exceptions import BusinessError, CustomerNotFound, InvalidQRPayload
from khatabook.models.user import User
from khatabook.schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse, CustomerQRPayload
from khatabook.schemas.reports import ReconcileResult
from khatabook.schemas.transaction import TransactionCreate, TransactionResponse, TransactionDeleteResult
from khatabook.services import customer_service, ledger_service, qr_service
from khatabook.services.query_service import LedgerSnapshot, sort_by_recency, transactions_for_customer

router = APIRouter()


def _owned_customer(db: Session, user: User, customer_id: int):
    try:
        return customer_service.get_owned_customer(db, user.id, customer_id)
    except CustomerNotFound:
        raise BusinessError.not_found("Customer", reason=f"id={customer_id} user={user.id}")


@router.get("", response_model=List[CustomerResponse])
def list_customers(
    search: Optional[str] = Query(None, description="Part of a name (any case) or phone number"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return customer_service.list_customers(db, current_user.id, search)


@router.post("", response_model=CustomerResponse, status_code=201)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer = customer_service.create_customer(db, current_user.id, data)
    AuditLog.log_action("create", "customer", customer.id, current_user, changes={"name": customer.name})
    return customer


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _owned_customer(db, current_user, customer_id)


@router.patch("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    updates: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Name, phone and address only. Totals follow the ledger."""
    try:
        customer = customer_service.update_customer(db, current_user.id, customer_id, updates)
    except CustomerNotFound:
        raise BusinessError.not_found("Customer", reason=f"id={customer_id} user={current_user.id}")
    except ValueError as e:
        raise BusinessError.bad_request(str(e))
    AuditLog.log_action(
        "update", "customer", customer_id, current_user,
        changes=updates.model_dump(exclude_none=True),
    )
    return customer


@router.delete("/{customer_id}", response_model=dict)
def delete_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Delete a customer and every transaction recorded against them."""
    try:
        removed = customer_service.delete_customer(db, current_user.id, customer_id)
    except CustomerNotFound:
        raise BusinessError.not_found("Customer", reason=f"id={customer_id} user={current_user.id}")
    AuditLog.log_action("delete", "customer", customer_id, current_user, changes={"transactions_removed": removed})
    return {"message": "Customer deleted", "id": customer_id, "transactions_removed": removed}


# ==============================================================================
# LEDGER
# ==============================================================================

@router.get("/{customer_id}/transactions", response_model=List[TransactionResponse])
def list_customer_transactions(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Newest first."""
    customer = _owned_customer(db, current_user, customer_id)
    snapshot = LedgerSnapshot.load(db, current_user.id)
    return sort_by_recency(transactions_for_customer(snapshot.transactions, customer.id))


@router.post("/{customer_id}/transactions", response_model=TransactionResponse, status_code=201)
def add_transaction(
    customer_id: int,
    data: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        txn = ledger_service.record_transaction(db, current_user.id, customer_id, data)
    except CustomerNotFound:
        raise BusinessError.not_found("Customer", reason=f"id={customer_id} user={current_user.id}")
    except SQLAlchemyError as e:
        raise BusinessError.server_error(e)
    AuditLog.log_action(
        "create", "transaction", txn.id, current_user,
        changes={"customer_id": customer_id, "type": txn.type, "amount": str(txn.amount)},
    )
    return txn


@router.delete("/{customer_id}/transactions/{transaction_id}", response_model=TransactionDeleteResult)
def remove_transaction(
    customer_id: int,
    transaction_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Unknown transaction ids are ignored: deleted=false, no error."""
    try:
        deleted = ledger_service.delete_transaction(db, current_user.id, customer_id, transaction_id)
    except SQLAlchemyError as e:
        raise BusinessError.server_error(e)
    if deleted:
        AuditLog.log_action("delete", "transaction", transaction_id, current_user, changes={"customer_id": customer_id})
    return TransactionDeleteResult(id=transaction_id, deleted=deleted)


@router.post("/{customer_id}/reconcile", response_model=ReconcileResult)
def reconcile(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Recompute running totals from the transactions and repair any drift."""
    try:
        customer, drift_found = ledger_service.reconcile_customer(db, current_user.id, customer_id)
    except CustomerNotFound:
        raise BusinessError.not_found("Customer", reason=f"id={customer_id} user={current_user.id}")
    if drift_found:
        AuditLog.log_action("reconcile", "customer", customer_id, current_user)
    return ReconcileResult(
        customer_id=customer.id,
        drift_found=drift_found,
        total_credit=customer.total_credit,
        total_debit=customer.total_debit,
        balance=customer.balance,
    )


# ==============================================================================
# QR CODES
# ==============================================================================

@router.get("/{customer_id}/qr")
def customer_qr_png(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Scannable PNG, served as a download."""
    customer = _owned_customer(db, current_user, customer_id)
    buffer = qr_service.render_qr_png(qr_service.customer_qr_payload(customer))
    return StreamingResponse(
        buffer,
        media_type="image/png",
        headers={"Content-Disposition": f"attachment; filename={qr_service.qr_filename(customer.name)}"},
    )


@router.get("/{customer_id}/qr/payload", response_model=CustomerQRPayload)
def customer_qr_payload(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    customer = _owned_customer(db, current_user, customer_id)
    return CustomerQRPayload.model_validate_json(qr_service.customer_qr_payload(customer))


@router.post("/scan", response_model=CustomerResponse)
def scan_customer_qr(
    payload: str = Body(..., embed=True, max_length=2048),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Look up the customer behind a scanned QR payload."""
    try:
        decoded = qr_service.parse_customer_qr(payload)
    except InvalidQRPayload as e:
        raise BusinessError.bad_request(str(e))
    return _owned_customer(db, current_user, decoded.id)
