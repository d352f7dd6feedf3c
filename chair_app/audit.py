# chair_app/audit.py
"""Audit trail written to the ``auditlog`` table.

Writes go through their own session so a failed audit insert can never roll
back (or be rolled back by) the caller's unit of work.
"""

import logging
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from sqlmodel import Session

from chair_app.models import AuditLog

logger = logging.getLogger(__name__)


def log_interaction(
    session: Session,
    operation_type: str,
    message: str,
    document_type: Optional[str] = None,
    document_id: Optional[Any] = None,
    user_id: Optional[Any] = None,
    success: bool = True,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """Record an operation in the audit log. Never raises.

    Args:
        session: The request session; only its engine is reused.
        operation_type: create, update, delete, fetch, customerLookup,
            bookingAttempt, statusChange, error or system.
        message: Short human-readable summary.
        document_type: Table/document kind affected (e.g. "appointment").
        document_id: Id of the affected row, if any.
        user_id: Actor performing the action (customer id, user email, "system").
        success: Whether the operation succeeded.
        details: Extra structured data (payload, old/new values, errors).
    """
    try:
        entry = AuditLog(
            operation_type=operation_type,
            message=message,
            document_type=document_type or "N/A",
            document_id=str(document_id) if document_id is not None else "N/A",
            user_id=str(user_id) if user_id is not None else "anonymous",
            success=success,
            details=jsonable_encoder(details or {}),
        )

        with Session(session.get_bind()) as audit_session:
            audit_session.add(entry)
            audit_session.commit()
    except Exception:  # audit must never break the caller
        logger.exception(
            "Failed to write audit log: %s - %s (document=%s/%s)",
            operation_type,
            message,
            document_type,
            document_id,
        )
        return

    logger.debug("Audit log: %s - %s", operation_type, message)
