# chair_app/routers/users_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from chair_app.audit import log_interaction
from chair_app.db import get_session
from chair_app.models import Barber, User
from chair_app.schemas import UserCreate, UserPublic, UserRole
from chair_app.auth import get_current_user, hash_password
from chair_app.deps import database_error, get_admin_user

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(
    current_user: dict = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return session.get(User, current_user["id"])


@router.get("/users", response_model=List[UserPublic])
def list_users(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    return session.exec(select(User).order_by(User.email)).all()


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    # 1) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == user.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 2) Barber accounts point at a barber profile
    if user.role == UserRole.barber and user.barber_id is None:
        raise HTTPException(status_code=422, detail="barber_id is required for barber accounts")
    if user.barber_id is not None and session.get(Barber, user.barber_id) is None:
        raise HTTPException(status_code=404, detail="Barber Not Found")

    # 3) Create user in DB
    db_user = User(
        username=user.username,
        email=user.email,
        phone_number=user.phone_number,
        password_hash=hash_password(user.password),
        role=user.role.value,
        barber_id=user.barber_id,
    )

    session.add(db_user)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "create user", "user", current_user["email"]) from exc
    session.refresh(db_user)  # fills db_user.id

    log_interaction(
        session, "create", f"Created {db_user.role} user: {db_user.email}", "user", db_user.id, current_user["email"],
    )
    return db_user


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    db_user = session.get(User, user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")
    if db_user.id == current_user["id"]:
        raise HTTPException(status_code=409, detail="You cannot delete your own account")

    session.delete(db_user)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "delete user", "user", current_user["email"]) from exc

    log_interaction(session, "delete", f"Deleted user with ID: {user_id}", "user", user_id, current_user["email"])
