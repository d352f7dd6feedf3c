# chair_app/deps.py

import logging
from typing import Optional

from fastapi import Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from chair_app.audit import log_interaction
from chair_app.auth import get_current_user

logger = logging.getLogger(__name__)

STAFF_ROLES = ("admin", "receptionist", "barber")


def require_role(user: dict, *roles: str):
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_staff_user(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, *STAFF_ROLES)
    return current_user


def get_admin_user(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, "admin")
    return current_user


def database_error(
    session: Session,
    exc: SQLAlchemyError,
    action: str,
    document_type: str,
    user_id: Optional[str] = None,
    status_code: int = 503,
    detail: str = "Database unavailable. Please try again later.",
) -> HTTPException:
    """Roll back, log and audit a database failure; return the HTTPException to raise."""
    session.rollback()
    logger.exception("Database error while trying to %s", action)
    log_interaction(
        session,
        "error",
        f"Failed to {action}: {exc.__class__.__name__}",
        document_type,
        user_id=user_id,
        success=False,
        details={"errorDetails": str(exc)},
    )
    return HTTPException(status_code=status_code, detail=detail)
