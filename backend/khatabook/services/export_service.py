"""JSON backup, CSV report and backup validation."""
import csv
import io
import json
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, ValidationError

from khatabook.core.exceptions import InvalidBackup
from khatabook.db.base import utcnow
from khatabook.schemas.customer import CustomerResponse
from khatabook.schemas.transaction import TransactionResponse
from khatabook.services.query_service import LedgerSnapshot

logger = logging.getLogger(__name__)

CSV_HEADER = ["Date", "Customer", "Type", "Amount", "Item", "Payment Method", "Note"]


class BackupFile(BaseModel):
    customers: List[CustomerResponse]
    transactions: List[TransactionResponse]
    exportDate: Optional[str] = None


def build_backup(snapshot: LedgerSnapshot, exported_at: Optional[datetime] = None) -> dict:
    """Everything one owner has, as plain JSON-ready data."""
    exported_at = exported_at or utcnow()
    return {
        "customers": [CustomerResponse.model_validate(c).model_dump(mode="json") for c in snapshot.customers],
        "transactions": [TransactionResponse.model_validate(t).model_dump(mode="json") for t in snapshot.transactions],
        "exportDate": exported_at.isoformat(),
    }


def backup_filename(exported_at: Optional[datetime] = None) -> str:
    return f"khatabook-backup-{(exported_at or utcnow()).date().isoformat()}.json"


def validate_backup(raw: bytes) -> BackupFile:
    """
    Parse and check a backup file. Nothing is written.

    Raises:
        InvalidBackup: not JSON, wrong shape, or a transaction that points
            at a customer missing from the file.
    """
    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidBackup(f"Backup is not valid JSON: {e}") from e

    try:
        backup = BackupFile.model_validate(data)
    except ValidationError as e:
        raise InvalidBackup(f"Backup does not match the export format ({e.error_count()} errors)") from e

    customer_ids = {c.id for c in backup.customers}
    orphans = [t.id for t in backup.transactions if t.customer_id not in customer_ids]
    if orphans:
        raise InvalidBackup(f"Transactions reference unknown customers: {orphans[:10]}")

    logger.info(
        f"Backup validated: {len(backup.customers)} customers, {len(backup.transactions)} transactions"
    )
    return backup


def transactions_csv(transactions: Iterable, snapshot: LedgerSnapshot) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADER)

    for t in transactions:
        writer.writerow([
            t.created_at.strftime("%Y-%m-%d %H:%M") if t.created_at else "",
            snapshot.customer_name(t.customer_id),
            t.type,
            f"{t.amount:.2f}",
            t.item or "",
            t.payment_method,
            t.note or "",
        ])

    return output.getvalue()


def report_filename(extension: str, when: Optional[datetime] = None) -> str:
    return f"transactions-{(when or utcnow()).date().isoformat()}.{extension}"
