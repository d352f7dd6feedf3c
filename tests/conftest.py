import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, create_engine

from chair_app.auth import create_access_token, hash_password
from chair_app.db import get_session, init_db
from chair_app.main import app
from chair_app.models import Barber, Service, User

MONDAY_9_TO_5 = [{"dayOfWeek": "monday", "startTime": "09:00", "endTime": "17:00"}]


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def barber(session) -> Barber:
    barber = Barber(name="Marco", slug="marco", daily_availability=MONDAY_9_TO_5)
    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber


@pytest.fixture
def haircut(session) -> Service:
    service = Service(name="Haircut", slug="haircut", duration=30, price=25.0)
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@pytest.fixture
def hot_towel_shave(session) -> Service:
    service = Service(name="Hot Towel Shave", slug="hot-towel-shave", duration=60, price=40.0)
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


def _user_headers(session, email: str, role: str, barber_id=None) -> dict:
    user = User(
        username=email.split("@")[0],
        email=email,
        password_hash=hash_password("correct-horse"),
        role=role,
        barber_id=barber_id,
    )
    session.add(user)
    session.commit()
    token = create_access_token({"sub": email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(session) -> dict:
    return _user_headers(session, "admin@thechair.test", "admin")


@pytest.fixture
def receptionist_headers(session) -> dict:
    return _user_headers(session, "desk@thechair.test", "receptionist")
