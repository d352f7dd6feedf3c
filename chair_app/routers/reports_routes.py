# chair_app/routers/reports_routes.py

from collections import Counter
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from chair_app.db import get_session
from chair_app.deps import get_admin_user
from chair_app.models import Appointment, AuditLog, Barber, Service
from chair_app.schemas import AppointmentStatus, AuditLogPublic, ReportSummary

router = APIRouter(
    prefix="/reports",
    tags=["reports"],
)


def summarize(rows, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
    """Build the dashboard summary from (appointment, service, barber) rows."""
    status_counts = Counter({status.value: 0 for status in AppointmentStatus})
    services: dict[int, dict] = {}
    barbers: dict[int, dict] = {}
    total_revenue = 0.0
    completed = 0

    for appointment, service, barber in rows:
        status_counts[appointment.status] += 1
        if appointment.status != AppointmentStatus.completed.value:
            continue

        completed += 1
        total_revenue += service.price

        perf = services.setdefault(
            service.id, {"service_id": service.id, "name": service.name, "count": 0, "total_revenue": 0.0}
        )
        perf["count"] += 1
        perf["total_revenue"] += service.price

        activity = barbers.setdefault(barber.id, {"barber_id": barber.id, "name": barber.name, "count": 0})
        activity["count"] += 1

    return {
        "start": start,
        "end": end,
        "status_counts": dict(status_counts),
        "total_completed_appointments": completed,
        "total_revenue": round(total_revenue, 2),
        "average_appointment_value": round(total_revenue / completed, 2) if completed else 0.0,
        "services": sorted(services.values(), key=lambda s: s["total_revenue"], reverse=True),
        "barbers": sorted(barbers.values(), key=lambda b: b["count"], reverse=True),
    }


@router.get("/summary", response_model=ReportSummary)
def report_summary(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    if start is not None and end is not None and start >= end:
        raise HTTPException(status_code=422, detail="start must be earlier than end")

    stmt = (
        select(Appointment, Service, Barber)
        .join(Service, Service.id == Appointment.service_id)
        .join(Barber, Barber.id == Appointment.barber_id)
    )
    if start is not None:
        stmt = stmt.where(Appointment.date_time >= start)
    if end is not None:
        stmt = stmt.where(Appointment.date_time < end)

    return summarize(session.exec(stmt).all(), start, end)


@router.get("/logs", response_model=List[AuditLogPublic])
def list_audit_logs(
    operation_type: Optional[str] = Query(default=None, alias="operationType"),
    limit: int = Query(default=100, ge=1, le=1000),
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    stmt = select(AuditLog)
    if operation_type is not None:
        stmt = stmt.where(AuditLog.operation_type == operation_type)

    stmt = stmt.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit)
    return session.exec(stmt).all()
