from datetime import date, datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from chair_app import booking
from chair_app.booking import (
    MissingFields,
    NotFound,
    OutsideAvailability,
    SlotConflict,
    book_appointment,
    change_status,
)
from chair_app.models import Appointment, AuditLog, Customer
from chair_app.schemas import AppointmentStatus, BookingRequest


def make_request(barber_id, service_id, starts_at, **overrides) -> BookingRequest:
    fields = {
        "customer_name": "Dana Reyes",
        "customer_email": "dana@example.com",
        "customer_phone": "555-0100",
        "barber_id": barber_id,
        "service_id": service_id,
        "date_time": starts_at,
    }
    fields.update(overrides)
    return BookingRequest(**fields)


class UntouchableSession:
    def __getattr__(self, name):
        raise AssertionError(f"session.{name} should not be used")


def test_booking_creates_pending_appointment_with_creation_log(session, barber, haircut) -> None:
    appointment = book_appointment(session, make_request(barber.id, haircut.id, datetime(2030, 1, 7, 10, 0)))

    assert appointment.id is not None
    assert appointment.status == AppointmentStatus.pending.value
    assert appointment.date_time == datetime(2030, 1, 7, 10, 0)
    assert len(appointment.log) == 1
    assert appointment.log[0]["type"] == "creation"
    assert appointment.log[0]["message"] == "Appointment created by Dana Reyes."


def test_overlapping_request_is_rejected_as_slot_conflict(session, barber, haircut) -> None:
    book_appointment(session, make_request(barber.id, haircut.id, datetime(2030, 1, 7, 10, 0)))

    with pytest.raises(SlotConflict):
        book_appointment(
            session,
            make_request(barber.id, haircut.id, datetime(2030, 1, 7, 10, 15), customer_email="lee@example.com"),
        )


def test_abutting_request_is_accepted(session, barber, haircut) -> None:
    book_appointment(session, make_request(barber.id, haircut.id, datetime(2030, 1, 7, 10, 0)))

    second = book_appointment(
        session,
        make_request(barber.id, haircut.id, datetime(2030, 1, 7, 10, 30), customer_email="lee@example.com"),
    )

    assert second.date_time == datetime(2030, 1, 7, 10, 30)


def test_day_without_block_is_outside_availability(session, barber, haircut) -> None:
    with pytest.raises(OutsideAvailability):
        book_appointment(session, make_request(barber.id, haircut.id, datetime(2030, 1, 8, 10, 0)))


def test_service_running_past_block_end_is_outside_availability(session, barber, hot_towel_shave) -> None:
    with pytest.raises(OutsideAvailability):
        book_appointment(session, make_request(barber.id, hot_towel_shave.id, datetime(2030, 1, 7, 16, 30)))


def test_missing_barber_is_rejected_before_any_lookup() -> None:
    request = make_request(None, 1, datetime(2030, 1, 7, 10, 0))

    with pytest.raises(MissingFields) as exception_info:
        book_appointment(UntouchableSession(), request)

    assert "Barber" in exception_info.value.message


def test_blank_customer_name_counts_as_missing() -> None:
    request = make_request(1, 1, datetime(2030, 1, 7, 10, 0), customer_name="   ")

    with pytest.raises(MissingFields):
        book_appointment(UntouchableSession(), request)


def test_unknown_service_skips_availability_and_conflict_checks(session, barber, monkeypatch) -> None:
    def fail(*args, **kwargs):
        raise AssertionError("checks should not run")

    monkeypatch.setattr(booking, "is_within_availability", fail)
    monkeypatch.setattr(booking, "has_conflict", fail)

    with pytest.raises(NotFound) as exception_info:
        book_appointment(session, make_request(barber.id, 999, datetime(2030, 1, 7, 10, 0)))

    assert exception_info.value.message == "Service not found."
    assert exception_info.value.status_code == 404


def test_unknown_barber_is_not_found(session, haircut) -> None:
    with pytest.raises(NotFound) as exception_info:
        book_appointment(session, make_request(999, haircut.id, datetime(2030, 1, 7, 10, 0)))

    assert exception_info.value.message == "Barber not found."


def test_cancelled_appointment_frees_its_slot(session, barber, haircut) -> None:
    first = book_appointment(session, make_request(barber.id, haircut.id, datetime(2030, 1, 7, 10, 0)))
    change_status(session, first, AppointmentStatus.cancelled, "desk@thechair.test")

    again = book_appointment(
        session,
        make_request(barber.id, haircut.id, datetime(2030, 1, 7, 10, 0), customer_email="lee@example.com"),
    )

    assert again.id != first.id


def test_aware_datetime_is_converted_to_shop_time(session, barber, haircut) -> None:
    # 15:00 UTC is 10:00 in New York in January
    appointment = book_appointment(
        session,
        make_request(barber.id, haircut.id, datetime(2030, 1, 7, 15, 0, tzinfo=timezone.utc)),
    )

    assert appointment.date_time == datetime(2030, 1, 7, 10, 0)


def test_existing_customer_is_reused_and_phone_updated(session, barber, haircut) -> None:
    session.add(Customer(name="Dana Reyes", email="dana@example.com", phone="555-0000", loyalty_points=7))
    session.commit()

    appointment = book_appointment(session, make_request(barber.id, haircut.id, datetime(2030, 1, 7, 11, 0)))

    customers = session.exec(select(Customer)).all()
    assert len(customers) == 1
    assert customers[0].id == appointment.customer_id
    assert customers[0].phone == "555-0100"
    assert customers[0].loyalty_points == 7


def test_account_creation_intent_is_audited(session, barber, haircut) -> None:
    book_appointment(
        session,
        make_request(barber.id, haircut.id, datetime(2030, 1, 7, 11, 0), create_account=True),
    )

    system_logs = session.exec(select(AuditLog).where(AuditLog.operation_type == "system")).all()
    assert len(system_logs) == 1
    assert "opted to create an account" in system_logs[0].message


def test_audit_failure_does_not_fail_booking(session, barber, haircut, monkeypatch) -> None:
    class FailingAuditSession(Session):
        def commit(self):
            raise OperationalError("INSERT INTO auditlog", {}, Exception("disk I/O error"))

    # only the audit writer's own session is swapped out
    monkeypatch.setattr("chair_app.audit.Session", FailingAuditSession)

    appointment = book_appointment(session, make_request(barber.id, haircut.id, datetime(2030, 1, 7, 12, 0)))

    assert appointment.id is not None
    assert session.exec(select(AuditLog)).all() == []


def test_change_status_appends_typed_log_entry(session, barber, haircut) -> None:
    appointment = book_appointment(session, make_request(barber.id, haircut.id, datetime(2030, 1, 7, 10, 0)))

    updated = change_status(session, appointment, AppointmentStatus.confirmed, "desk@thechair.test")

    assert updated.status == "confirmed"
    assert [entry["type"] for entry in updated.log] == ["creation", "confirmation"]
    assert updated.log[-1]["details"] == {
        "oldStatus": "pending",
        "newStatus": "confirmed",
        "changedBy": "desk@thechair.test",
    }


def test_stored_times_read_back_as_naive_shop_local(engine, session, barber, haircut) -> None:
    appointment = book_appointment(
        session,
        make_request(barber.id, haircut.id, datetime(2030, 1, 7, 15, 0, tzinfo=timezone.utc)),
    )

    with Session(engine) as fresh:
        stored = fresh.get(Appointment, appointment.id)
        audit = fresh.exec(select(AuditLog).where(AuditLog.document_type == "appointment")).one()

        assert stored.date_time == datetime(2030, 1, 7, 10, 0)
        assert stored.date_time.tzinfo is None
        assert audit.timestamp.tzinfo is None

    assert Appointment.__table__.c.date_time.type.timezone is False


def test_slot_lock_entry_lives_only_while_held() -> None:
    key = (1, date(2030, 2, 1))

    with booking.slot_lock(*key):
        assert list(booking._slot_locks) == [key]
        assert booking._slot_locks[key][0].locked()

    assert booking._slot_locks == {}


def test_slot_locks_do_not_accumulate_across_days(session, barber, haircut) -> None:
    book_appointment(session, make_request(barber.id, haircut.id, datetime(2030, 1, 7, 10, 0)))
    with pytest.raises(SlotConflict):
        book_appointment(
            session,
            make_request(barber.id, haircut.id, datetime(2030, 1, 7, 10, 0), customer_email="lee@example.com"),
        )
    with pytest.raises(OutsideAvailability):
        book_appointment(session, make_request(barber.id, haircut.id, datetime(2030, 1, 8, 10, 0)))

    assert booking._slot_locks == {}
