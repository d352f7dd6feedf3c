# chair_app/booking.py
"""Booking decision: validate a booking request and commit the appointment."""

import logging
from contextlib import contextmanager
from datetime import datetime, date, time, timedelta
from threading import Lock
from typing import Optional
from uuid import uuid4

from sqlmodel import Session, select

from chair_app.audit import log_interaction
from chair_app.config import SHOP_TIMEZONE
from chair_app.core import BookedSlot, has_conflict, is_within_availability, to_shop_time
from chair_app.models import Appointment, Barber, Customer, Service
from chair_app.schemas import AppointmentStatus, AvailabilityBlock, BookingRequest

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    "customer_name": "Name",
    "customer_email": "Email",
    "customer_phone": "Phone",
    "barber_id": "Barber",
    "service_id": "Service",
    "date_time": "Date/Time",
}

# Entry type written to an appointment's log for a status change
STATUS_LOG_TYPES = {
    AppointmentStatus.cancelled: "cancellation",
    AppointmentStatus.confirmed: "confirmation",
}

# One lock per (barber, calendar day): check-then-insert runs under it.
# Entries are [lock, holders] and are dropped when the last holder leaves.
_slot_locks: dict[tuple[int, date], list] = {}
_slot_locks_guard = Lock()


class BookingError(Exception):
    reason = "BookingError"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def as_detail(self) -> dict:
        return {"reason": self.reason, "message": self.message}


class MissingFields(BookingError):
    reason = "MissingFields"


class NotFound(BookingError):
    reason = "NotFound"
    status_code = 404


class OutsideAvailability(BookingError):
    reason = "OutsideAvailability"


class SlotConflict(BookingError):
    reason = "SlotConflict"
    status_code = 409


@contextmanager
def slot_lock(barber_id: int, on_date: date):
    key = (barber_id, on_date)
    with _slot_locks_guard:
        entry = _slot_locks.setdefault(key, [Lock(), 0])
        entry[1] += 1

    try:
        with entry[0]:
            yield
    finally:
        with _slot_locks_guard:
            entry[1] -= 1
            if entry[1] == 0:
                del _slot_locks[key]


def log_entry(entry_type: str, message: str, user: Optional[str] = None, details: Optional[dict] = None) -> dict:
    return {
        "key": f"log-{uuid4().hex}",
        "timestamp": datetime.utcnow().isoformat(),
        "type": entry_type,
        "message": message,
        "user": user,
        "details": details or {},
    }


def barber_blocks(barber: Barber) -> list[AvailabilityBlock]:
    return [AvailabilityBlock.model_validate(block) for block in barber.daily_availability or []]


def day_appointments(session: Session, barber_id: int, on_date: date) -> list[BookedSlot]:
    """(start, duration) of the barber's non-cancelled appointments on ``on_date``."""
    day_start = datetime.combine(on_date, time.min)
    day_end = day_start + timedelta(days=1)

    rows = session.exec(
        select(Appointment.date_time, Service.duration)
        .join(Service, Service.id == Appointment.service_id)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.date_time >= day_start)
        .where(Appointment.date_time < day_end)
        .where(Appointment.status != AppointmentStatus.cancelled.value)
    ).all()

    return [(start, duration) for start, duration in rows]


def find_or_create_customer(session: Session, request: BookingRequest) -> Customer:
    customer = session.exec(
        select(Customer).where(Customer.email == request.customer_email)
    ).first()

    if customer is None:
        customer = Customer(
            name=request.customer_name,
            email=request.customer_email,
            phone=request.customer_phone,
            loyalty_points=0,
        )
        session.add(customer)
        session.commit()
        session.refresh(customer)

        log_interaction(
            session,
            "create",
            f"New customer created: {customer.name} ({customer.email}). "
            f"Account creation intent: {request.create_account}",
            "customer",
            customer.id,
            customer.id,
            details={"createAccountIntent": request.create_account},
        )
        if request.create_account:
            log_interaction(
                session,
                "system",
                f"Customer {customer.name} (ID: {customer.id}) opted to create an account.",
                "customer",
                customer.id,
                "system",
            )
        return customer

    if customer.phone != request.customer_phone:
        old_phone = customer.phone
        customer.phone = request.customer_phone
        session.add(customer)
        session.commit()
        session.refresh(customer)

        log_interaction(
            session,
            "update",
            f"Customer phone updated: {customer.name}",
            "customer",
            customer.id,
            customer.id,
            details={"oldValue": old_phone, "newValue": customer.phone},
        )

    if request.create_account:
        log_interaction(
            session,
            "system",
            f"Existing customer {customer.name} (ID: {customer.id}) opted to create an account.",
            "customer",
            customer.id,
            "system",
        )

    return customer


def book_appointment(session: Session, request: BookingRequest, tz_name: str = SHOP_TIMEZONE) -> Appointment:
    """Run the booking checks and persist a pending appointment.

    Raises a ``BookingError`` subclass when the request is rejected; database
    errors propagate to the caller untouched.
    """
    # 1) Presence of required fields, before any lookup
    missing = [label for field, label in REQUIRED_FIELDS.items() if getattr(request, field) is None]
    if missing:
        raise MissingFields(f"Missing required fields ({', '.join(missing)}).")

    # 2) Service and barber
    service = session.get(Service, request.service_id)
    if service is None:
        raise NotFound("Service not found.")
    barber = session.get(Barber, request.barber_id)
    if barber is None:
        raise NotFound("Barber not found.")

    # 3) Requested interval, in shop-local time
    requested_start = to_shop_time(request.date_time, tz_name)
    requested_end = requested_start + timedelta(minutes=service.duration)

    with slot_lock(barber.id, requested_start.date()):
        # 4) Barber's weekly availability
        if not is_within_availability(barber_blocks(barber), requested_start, requested_end):
            raise OutsideAvailability("Selected barber is not available at this time.")

        # 5) Existing appointments that day
        existing = day_appointments(session, barber.id, requested_start.date())
        if has_conflict(existing, requested_start, requested_end):
            raise SlotConflict("This time slot is no longer available. Please choose another.")

        # 6) Customer
        customer = find_or_create_customer(session, request)

        # 7) Appointment
        appointment = Appointment(
            customer_id=customer.id,
            barber_id=barber.id,
            service_id=service.id,
            date_time=requested_start,
            status=AppointmentStatus.pending.value,
            notes=request.notes,
            log=[log_entry("creation", f"Appointment created by {customer.name}.", str(customer.id))],
        )
        session.add(appointment)
        session.commit()
        session.refresh(appointment)

    logger.info(
        "Booked appointment %s: barber=%s service=%s start=%s",
        appointment.id,
        barber.id,
        service.id,
        requested_start.isoformat(),
    )
    log_interaction(
        session,
        "create",
        f"Appointment booked for {customer.name} with {barber.name} for {service.name}.",
        "appointment",
        appointment.id,
        customer.id,
        details={"payload": request.model_dump(by_alias=True)},
    )

    return appointment


def change_status(
    session: Session,
    appointment: Appointment,
    new_status: AppointmentStatus,
    changed_by: Optional[str] = None,
) -> Appointment:
    """Set a new status and append the change to the appointment's log."""
    old_status = appointment.status
    entry = log_entry(
        STATUS_LOG_TYPES.get(new_status, "update"),
        f"Status changed from '{old_status}' to '{new_status.value}'.",
        changed_by or "Admin/System",
        {"oldStatus": old_status, "newStatus": new_status.value, "changedBy": changed_by},
    )

    appointment.status = new_status.value
    # reassign so the JSON column is marked dirty
    appointment.log = [*(appointment.log or []), entry]
    session.add(appointment)
    session.commit()
    session.refresh(appointment)

    return appointment
