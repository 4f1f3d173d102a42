"""
Audit logging for security-critical and stock-affecting operations.

Each event is one JSON line on the ``audit`` logger so it can be shipped
separately from application logs. Passwords and tokens are never included.
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

audit_logger = logging.getLogger("audit")


def _emit(entry: Dict[str, Any], level: int = logging.INFO) -> None:
    entry = {"timestamp": datetime.utcnow().isoformat(), **entry}
    audit_logger.log(level, json.dumps(entry, default=str))


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
            AuditLog.log_authentication("login", "user@example.com", "192.168.1.1", True)
            AuditLog.log_authentication("login", "user@example.com", "192.168.1.1", False, reason="Invalid password")
        """
        entry = {
            "event_type": f"auth.{action}",
            "email": email,
            "ip_address": ip_address,
            "success": success,
        }
        if reason and not success:
            entry["reason"] = reason
        _emit(entry, logging.INFO if success else logging.WARNING)

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "adjust"
        resource_type: str,  # "sale", "medicine", "supplier", "customer"
        resource_id: int,
        user,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log business-critical mutations: who, what, when.

        Usage:
            AuditLog.log_action("create", "sale", 12, current_user, changes={"invoice": "INV-000012"})
            AuditLog.log_action("delete", "medicine", 4, current_user)
        """
        entry = {
            "event_type": f"{resource_type}.{action}",
            "user_id": user.id,
            "user_email": user.email,
            "resource_id": resource_id,
        }
        if changes:
            entry["changes"] = changes
        _emit(entry)

    @staticmethod
    def log_access_denied(
        action: str,  # "GET", "POST", "DELETE" ...
        resource: str,  # request path
        user_id: int,
        reason: str,
    ):
        """Log role mismatches (potential privilege probing)."""
        _emit(
            {
                "event_severity": "WARNING",
                "event_type": "access_denied",
                "action": action,
                "resource": resource,
                "user_id": user_id,
                "reason": reason,
            },
            logging.WARNING,
        )
