# chair_app/routers/appointments_routes.py

import logging
from datetime import datetime, timedelta, date
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from chair_app.audit import log_interaction
from chair_app.booking import BookingError, book_appointment, change_status
from chair_app.db import get_session
from chair_app.deps import database_error, get_staff_user
from chair_app.models import Appointment, Service
from chair_app.schemas import (
    AppointmentPublic,
    AppointmentStatus,
    BookedSlotPublic,
    BookingRequest,
    BookingResponse,
    StatusUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["appointments"],
)


@router.post("/book-appointment", response_model=BookingResponse, status_code=201)
def create_booking(
    booking: BookingRequest,
    session: Session = Depends(get_session),
):
    payload = booking.model_dump(by_alias=True)

    try:
        appointment = book_appointment(session, booking)
    except BookingError as rejection:
        logger.warning("Booking rejected (%s): %s", rejection.reason, rejection.message)
        log_interaction(
            session,
            "bookingAttempt",
            rejection.message,
            "appointment",
            user_id="customer",
            success=False,
            details={"reason": rejection.reason, "payload": payload},
        )
        raise HTTPException(status_code=rejection.status_code, detail=rejection.as_detail())
    except SQLAlchemyError as exc:
        raise database_error(
            session,
            exc,
            "book appointment",
            "appointment",
            status_code=500,
            detail="Failed to book appointment. An unexpected error occurred.",
        ) from exc

    return {"message": "Appointment booked successfully!", "appointmentId": appointment.id}


@router.get("/appointments", response_model=List[BookedSlotPublic])
def list_booked_slots(
    barber_id: int = Query(alias="barberId"),
    on_date: date = Query(alias="date"),
    session: Session = Depends(get_session),
):
    """Public view of a barber's day: start and duration only."""
    day_start_dt = datetime.combine(on_date, datetime.min.time())
    day_end_dt = day_start_dt + timedelta(days=1)

    rows = session.exec(
        select(Appointment.id, Appointment.date_time, Service.duration)
        .join(Service, Service.id == Appointment.service_id)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.date_time >= day_start_dt)
        .where(Appointment.date_time < day_end_dt)
        .where(Appointment.status != AppointmentStatus.cancelled.value)
        .order_by(Appointment.date_time)
    ).all()

    return [
        {"id": appt_id, "date_time": starts_at, "duration": duration}
        for appt_id, starts_at, duration in rows
    ]


@router.get("/appointments/manage", response_model=List[AppointmentPublic])
def list_appointments(
    status: Optional[str] = "all",
    barber_id: Optional[int] = None,
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_staff_user),
):
    statuses = [s.value for s in AppointmentStatus]
    if status != "all" and status not in statuses:
        raise HTTPException(status_code=422, detail=f"status must be one of {', '.join(statuses)} or 'all'")

    # barbers only see their own book
    if current_user["role"] == "barber" and current_user["barber_id"] is not None:
        barber_id = current_user["barber_id"]

    stmt = select(Appointment)

    if barber_id is not None:
        stmt = stmt.where(Appointment.barber_id == barber_id)

    if on_date is not None:
        day_start_dt = datetime.combine(on_date, datetime.min.time())
        day_end_dt = day_start_dt + timedelta(days=1)
        stmt = stmt.where(Appointment.date_time >= day_start_dt).where(Appointment.date_time < day_end_dt)

    if status != "all":
        stmt = stmt.where(Appointment.status == status)

    stmt = stmt.order_by(Appointment.date_time)

    return session.exec(stmt).all()


@router.get("/appointments/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_staff_user),
):
    appointment = session.get(Appointment, appt_id)
    if appointment is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


@router.patch("/appointments/{appt_id}/status", response_model=AppointmentPublic)
def update_appointment_status(
    appt_id: int,
    update: StatusUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_staff_user),
):
    appointment = session.get(Appointment, appt_id)
    if appointment is None:
        raise HTTPException(status_code=404, detail="Appointment not found")

    old_status = appointment.status
    try:
        appointment = change_status(session, appointment, update.status, current_user["email"])
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "update appointment status", "appointment", current_user["email"]) from exc

    log_interaction(
        session,
        "statusChange",
        f"Appointment status changed from '{old_status}' to '{appointment.status}'.",
        "appointment",
        appointment.id,
        current_user["email"],
        details={"oldValue": old_status, "newValue": appointment.status},
    )

    return appointment
