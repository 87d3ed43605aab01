"""
Audit logging for business-critical operations.

Every event is written twice: one JSON line on the "audit" logger (for log
shipping) and one row in audit_logs (for the owner-facing trail). Audit
writes use their own session and never raise into the request that
triggered them.

Call these AFTER the business transaction commits.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Any, Optional, Dict

from jewelshop.db.session import SessionLocal
from jewelshop.models.audit_log import AuditLogEntry

# Separate logger for audit events (can be shipped to centralized logging)
audit_logger = logging.getLogger("audit")
logger = logging.getLogger(__name__)


class AuditLog:
    """Central audit logging for business and security events."""

    @staticmethod
    def record(
        user_id: Optional[str],
        action: str,  # "ai_invoice_create", "file_upload", "voice_transcription", ...
        entity: str,  # "invoice", "file", "ai_action", ...
        entity_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        success: bool = True,
        request_id: Optional[str] = None,
        route: Optional[str] = None,
    ) -> None:
        """
        Usage:
            AuditLog.record(user_id, "ai_invoice_create", "invoice", invoice.id,
                            {"invoiceNumber": "INV-0001"}, request_id=rid, route="/ai/execute-action")
        """
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": f"{entity}.{action}",
            "user_id": user_id,
            "entity_id": entity_id,
            "success": success,
            "request_id": request_id,
            "route": route,
        }
        if metadata:
            log_entry["metadata"] = metadata

        if success:
            audit_logger.info(json.dumps(log_entry, default=str))
        else:
            audit_logger.warning(json.dumps(log_entry, default=str))

        db = SessionLocal()
        try:
            db.add(AuditLogEntry(
                user_id=user_id,
                action=action,
                entity=entity,
                entity_id=entity_id,
                details=json.loads(json.dumps(metadata, default=str)) if metadata else None,
                success=success,
                request_id=request_id,
                route=route,
            ))
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to persist audit event {action} for user {user_id}: {e}")
        finally:
            db.close()

    @staticmethod
    def log_access_denied(
        action: str,  # "read", "upload", "sign"
        resource_type: str,  # "file", "ai_action", "chat_session"
        resource_id: str,
        user_id: str,
        reason: str,
    ) -> None:
        """
        Log denied access attempts (potential attacks).

        SECURITY: Track users reaching for other owners' files or records.
        Logged only; not persisted.
        """
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_severity": "WARNING",
            "event_type": "access_denied",
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "user_id": user_id,
            "reason": reason,
        }

        audit_logger.warning(json.dumps(log_entry))
