"""Owner settings: profile, JSON backup export, backup validation."""
import json
import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from khatabook.api.deps import get_db, get_current_user
from khatabook.core.audit import AuditLog
from khatabook.core.exceptions import BusinessError, InvalidBackup
from khatabook.db.base import utcnow
from khatabook.models.user import User
from khatabook.schemas.reports import BackupValidation
from khatabook.schemas.user import ProfileUpdate, UserResponse
from khatabook.services.export_service import backup_filename, build_backup, validate_backup
from khatabook.services.query_service import LedgerSnapshot

router = APIRouter()
logger = logging.getLogger(__name__)

MAX_BACKUP_BYTES = 10 * 1024 * 1024


@router.get("/profile", response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/profile", response_model=UserResponse)
def update_profile(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Shop name and photo URL."""
    logger.info(f"[SETTINGS] Profile update from user {current_user.id}: {data.model_dump(exclude_none=True)}")
    if data.name is not None:
        current_user.name = data.name.strip()
    if data.photo_url is not None:
        current_user.photo_url = data.photo_url or None
    db.commit()
    db.refresh(current_user)
    AuditLog.log_action("update", "profile", current_user.id, current_user, changes=data.model_dump(exclude_none=True))
    return current_user


@router.get("/export")
def export_backup(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """All customers and transactions as a downloadable JSON file."""
    exported_at = utcnow()
    snapshot = LedgerSnapshot.load(db, current_user.id)
    body = json.dumps(build_backup(snapshot, exported_at), indent=2, ensure_ascii=False)
    AuditLog.log_action(
        "export", "backup", None, current_user,
        changes={"customers": len(snapshot.customers), "transactions": len(snapshot.transactions)},
    )
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": f"attachment; filename={backup_filename(exported_at)}"},
    )


@router.post("/import", response_model=BackupValidation)
def validate_import(file: UploadFile = File(...), current_user: User = Depends(get_current_user)):
    """
    Check a backup file and report what it contains.

    Nothing is written: whether an import should merge, replace or
    be rejected is still an open product decision.
    """
    # Plain def: JSON parsing runs in the threadpool
    raw = file.file.read(MAX_BACKUP_BYTES + 1)
    if len(raw) > MAX_BACKUP_BYTES:
        raise BusinessError.bad_request("Backup file is too large")
    try:
        backup = validate_backup(raw)
    except InvalidBackup as e:
        raise BusinessError.bad_request(str(e))
    AuditLog.log_action(
        "validate", "backup", None, current_user,
        changes={"customers": len(backup.customers), "transactions": len(backup.transactions)},
    )
    return BackupValidation(
        customers=len(backup.customers),
        transactions=len(backup.transactions),
        export_date=backup.exportDate,
        applied=False,
    )
