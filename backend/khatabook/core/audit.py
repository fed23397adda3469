"""
Audit logging for security-critical and ledger-mutating operations.

Every entry is one JSON object on the "audit" logger.

LOGGING SENSITIVE DATA: auth logs never include passwords or tokens.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Any, Optional, Dict

from khatabook.models.user import User

audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging."""

    @staticmethod
    def log_authentication(
        action: str,  # "login", "logout", "register"
        email: str,
        ip_address: str,
        success: bool,
        reason: str = "",
    ):
        """
        Log authentication events.

        Usage:
            AuditLog.log_authentication("login", "owner@shop.in", "192.168.1.1", True)
            AuditLog.log_authentication("login", "owner@shop.in", "192.168.1.1", False, reason="Invalid password")
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"auth.{action}",
            "email": email,
            "ip_address": ip_address,
            "success": success,
        }

        if reason and not success:
            log_entry["reason"] = reason

        if success:
            audit_logger.info(json.dumps(log_entry))
        else:
            audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "export", "reconcile"
        resource_type: str,  # "customer", "transaction", "backup", "profile"
        resource_id: Optional[int],
        user: User,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log ledger-affecting actions: who, what, when and what changed.

        Usage:
            AuditLog.log_action("create", "transaction", 12, current_user, changes={"type": "credit", "amount": "100"})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "user_id": user.id,
            "user_email": user.email,
            "resource_id": resource_id,
        }

        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))
