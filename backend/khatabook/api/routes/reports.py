"""Reports: filtered summary plus CSV and PDF downloads."""
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from khatabook.api.deps import get_db, get_current_user, transaction_filters
from khatabook.core.audit import AuditLog
from khatabook.models.user import User
from khatabook.schemas.reports import ReportSummary
from khatabook.schemas.transaction import TransactionFilters
from khatabook.services.export_service import report_filename, transactions_csv
from khatabook.services.pdf_service import generate_report_pdf
from khatabook.services.query_service import LedgerSnapshot, filter_transactions, sort_by_recency, summarize

router = APIRouter()


@router.get("/summary", response_model=ReportSummary)
def report_summary(
    filters: TransactionFilters = Depends(transaction_filters),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    snapshot = LedgerSnapshot.load(db, current_user.id)
    return summarize(filter_transactions(snapshot.transactions, filters))


@router.get("/export.csv")
def export_csv(
    filters: TransactionFilters = Depends(transaction_filters),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Filtered transactions as CSV, newest first."""
    snapshot = LedgerSnapshot.load(db, current_user.id)
    rows = sort_by_recency(filter_transactions(snapshot.transactions, filters))
    AuditLog.log_action("export", "report_csv", None, current_user, changes={"rows": len(rows)})
    return StreamingResponse(
        iter([transactions_csv(rows, snapshot)]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={report_filename('csv')}"},
    )


@router.get("/export.pdf")
def export_pdf(
    filters: TransactionFilters = Depends(transaction_filters),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    snapshot = LedgerSnapshot.load(db, current_user.id)
    rows = sort_by_recency(filter_transactions(snapshot.transactions, filters))
    buffer = generate_report_pdf(rows, snapshot, shop_name=current_user.name or None)
    AuditLog.log_action("export", "report_pdf", None, current_user, changes={"rows": len(rows)})
    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={report_filename('pdf')}"},
    )
