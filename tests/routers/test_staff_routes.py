from datetime import datetime

from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from chair_app.auth import ensure_admin_user
from chair_app.db import get_session
from chair_app.main import app
from chair_app.models import Appointment, AuditLog, Customer, User
from chair_app.routers.reports_routes import summarize


def test_login_returns_bearer_token(client, admin_headers) -> None:
    response = client.post(
        "/auth/login",
        data={"username": "ADMIN@thechair.test", "password": "correct-horse"},
    )

    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"

    me = client.get("/me", headers={"Authorization": f"Bearer {response.json()['access_token']}"})
    assert me.json()["role"] == "admin"


def test_login_rejects_bad_password(client, admin_headers) -> None:
    response = client.post("/auth/login", data={"username": "admin@thechair.test", "password": "wrong-horse"})

    assert response.status_code == 401


def test_invalid_token_is_rejected(client) -> None:
    response = client.get("/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_admin_creates_barber_account(client, barber, admin_headers) -> None:
    response = client.post(
        "/users",
        json={
            "username": "marco",
            "email": "Marco@thechair.test",
            "password": "scissors-123",
            "role": "barber",
            "barber_id": barber.id,
        },
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["email"] == "marco@thechair.test"


def test_barber_account_requires_profile(client, admin_headers) -> None:
    response = client.post(
        "/users",
        json={"username": "x", "email": "x@thechair.test", "password": "scissors-123", "role": "barber"},
        headers=admin_headers,
    )

    assert response.status_code == 422


def test_receptionist_cannot_create_users(client, receptionist_headers) -> None:
    response = client.post(
        "/users",
        json={"username": "x", "email": "x@thechair.test", "password": "scissors-123", "role": "admin"},
        headers=receptionist_headers,
    )

    assert response.status_code == 403


def test_ensure_admin_user_is_idempotent(session) -> None:
    assert ensure_admin_user(session, "Owner@thechair.test", "owner-password") is True
    assert ensure_admin_user(session, "owner@thechair.test", "owner-password") is False


def test_summarize_counts_completed_revenue(session, barber, haircut, hot_towel_shave) -> None:
    customer = Customer(name="Dana", email="dana@example.com")
    session.add(customer)
    session.commit()
    session.refresh(customer)

    def appt(service, hour, status):
        return Appointment(
            customer_id=customer.id,
            barber_id=barber.id,
            service_id=service.id,
            date_time=datetime(2030, 1, 7, hour),
            status=status,
        )

    rows = [
        (appt(haircut, 9, "completed"), haircut, barber),
        (appt(hot_towel_shave, 10, "completed"), hot_towel_shave, barber),
        (appt(haircut, 12, "completed"), haircut, barber),
        (appt(haircut, 14, "cancelled"), haircut, barber),
    ]

    summary = summarize(rows)

    assert summary["status_counts"] == {"pending": 0, "confirmed": 0, "cancelled": 1, "completed": 3}
    assert summary["total_completed_appointments"] == 3
    assert summary["total_revenue"] == 90.0
    assert summary["average_appointment_value"] == 30.0
    assert [s["name"] for s in summary["services"]] == ["Haircut", "Hot Towel Shave"]
    assert summary["barbers"] == [{"barber_id": barber.id, "name": "Marco", "count": 3}]


def test_report_summary_endpoint(client, barber, haircut, admin_headers, receptionist_headers) -> None:
    booked = client.post(
        "/book-appointment",
        json={
            "customerName": "Dana Reyes",
            "customerEmail": "dana@example.com",
            "customerPhone": "555-0100",
            "barberId": barber.id,
            "serviceId": haircut.id,
            "dateTime": "2030-01-07T10:00:00",
        },
    ).json()
    client.patch(
        f"/appointments/{booked['appointmentId']}/status",
        json={"status": "completed"},
        headers=receptionist_headers,
    )

    response = client.get(
        "/reports/summary",
        params={"start": "2030-01-01T00:00:00", "end": "2030-02-01T00:00:00"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["total_revenue"] == 25.0

    assert client.get("/reports/summary", headers=receptionist_headers).status_code == 403


def test_audit_log_listing_filters_by_operation(client, barber, haircut, admin_headers) -> None:
    client.post(
        "/book-appointment",
        json={
            "customerName": "Dana Reyes",
            "customerEmail": "dana@example.com",
            "customerPhone": "555-0100",
            "barberId": barber.id,
            "serviceId": haircut.id,
            "dateTime": "2030-01-08T10:00:00",
        },
    )

    response = client.get("/reports/logs", params={"operationType": "bookingAttempt"}, headers=admin_headers)

    assert response.status_code == 200
    logs = response.json()
    assert len(logs) == 1
    assert logs[0]["success"] is False


def test_create_user_database_failure_is_reported_and_audited(client, engine, session, admin_headers) -> None:
    class ReadOnlySession(Session):
        def commit(self):
            raise OperationalError("INSERT INTO user", {}, Exception("attempt to write a readonly database"))

    def override_get_session():
        with ReadOnlySession(engine) as request_session:
            yield request_session

    app.dependency_overrides[get_session] = override_get_session

    response = client.post(
        "/users",
        json={"username": "x", "email": "x@thechair.test", "password": "scissors-123", "role": "receptionist"},
        headers=admin_headers,
    )

    assert response.status_code == 503
    assert session.exec(select(User).where(User.email == "x@thechair.test")).first() is None
    errors = session.exec(select(AuditLog).where(AuditLog.operation_type == "error")).all()
    assert [(log.document_type, log.success) for log in errors] == [("user", False)]
