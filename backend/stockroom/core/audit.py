"""
Audit logging for stock and budget events.

Every change to inventory rows and every budget decision is written to the
"audit" logger as one JSON line, so it can be shipped to centralized logging
separately from application logs.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for inventory and approval events."""

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "import"
        resource_type: str,  # "product", "category", "supplier", "movement", "budget_request"
        resource_id: Any,
        actor: Optional[str] = None,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log a change to a stored resource.

        Usage:
            AuditLog.log_action("create", "movement", movement.id, actor="warehouse", changes={"quantity": 5})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "resource_id": str(resource_id) if resource_id is not None else None,
        }
        if actor:
            log_entry["actor"] = actor
        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str, ensure_ascii=False))

    @staticmethod
    def log_decision(request_id: str, request_no: str, decision: str, approver_name: str):
        """Log a budget request leaving PENDING. Written once per request."""
        log_entry = {
            "timestamp": _now(),
            "event_type": "budget_request.decision",
            "resource_id": request_id,
            "request_no": request_no,
            "decision": decision,
            "approver_name": approver_name,
        }
        audit_logger.info(json.dumps(log_entry, ensure_ascii=False))

    @staticmethod
    def log_refused(action: str, resource_type: str, resource_id: Any, reason: str):
        """
        Log an operation refused by a business guard, e.g. deleting a
        category that still has products, or deciding an already decided request.
        """
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": f"{resource_type}.{action}.refused",
            "resource_id": str(resource_id),
            "reason": reason,
        }
        audit_logger.warning(json.dumps(log_entry, ensure_ascii=False))

    @staticmethod
    def log_notification(request_id: str, delivered: bool, detail: str = ""):
        """Log the outcome of an approval email. Failures are operator-only."""
        log_entry = {
            "timestamp": _now(),
            "event_type": "notification.delivered" if delivered else "notification.failed",
            "resource_id": request_id,
        }
        if detail:
            log_entry["detail"] = detail

        if delivered:
            audit_logger.info(json.dumps(log_entry, ensure_ascii=False))
        else:
            audit_logger.warning(json.dumps(log_entry, ensure_ascii=False))
