# chair_app/routers/testimonials_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from chair_app.audit import log_interaction
from chair_app.db import get_session
from chair_app.deps import database_error, get_admin_user
from chair_app.models import Testimonial
from chair_app.schemas import TestimonialCreate, TestimonialPublic, TestimonialUpdate

router = APIRouter(
    prefix="/testimonials",
    tags=["testimonials"],
)


@router.get("", response_model=List[TestimonialPublic])
def list_testimonials(session: Session = Depends(get_session)):
    return session.exec(select(Testimonial).order_by(Testimonial.date.desc())).all()


@router.get("/{testimonial_id}", response_model=TestimonialPublic)
def get_testimonial(testimonial_id: int, session: Session = Depends(get_session)):
    testimonial = session.get(Testimonial, testimonial_id)
    if testimonial is None:
        raise HTTPException(status_code=404, detail="Testimonial not found")
    return testimonial


@router.post("", response_model=TestimonialPublic, status_code=201)
def create_testimonial(
    testimonial: TestimonialCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    # date defaults to now on the table model
    db_testimonial = Testimonial(**testimonial.model_dump(exclude_none=True))

    session.add(db_testimonial)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "create testimonial", "testimonial", current_user["email"]) from exc
    session.refresh(db_testimonial)

    log_interaction(
        session,
        "create",
        f"Created new testimonial from {db_testimonial.customer_name}",
        "testimonial",
        db_testimonial.id,
        current_user["email"],
        details={"payload": testimonial.model_dump()},
    )
    return db_testimonial


@router.put("/{testimonial_id}", response_model=TestimonialPublic)
def update_testimonial(
    testimonial_id: int,
    update: TestimonialUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    db_testimonial = session.get(Testimonial, testimonial_id)
    if db_testimonial is None:
        raise HTTPException(status_code=404, detail="Testimonial not found")

    changes = update.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    for field, value in changes.items():
        setattr(db_testimonial, field, value)

    session.add(db_testimonial)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "update testimonial", "testimonial", current_user["email"]) from exc
    session.refresh(db_testimonial)

    log_interaction(
        session,
        "update",
        f"Updated testimonial: {db_testimonial.customer_name}",
        "testimonial",
        db_testimonial.id,
        current_user["email"],
        details={"payload": changes},
    )
    return db_testimonial


@router.delete("/{testimonial_id}", status_code=204)
def delete_testimonial(
    testimonial_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    db_testimonial = session.get(Testimonial, testimonial_id)
    if db_testimonial is None:
        raise HTTPException(status_code=404, detail="Testimonial not found")

    session.delete(db_testimonial)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "delete testimonial", "testimonial", current_user["email"]) from exc

    log_interaction(
        session, "delete", f"Deleted testimonial with ID: {testimonial_id}", "testimonial", testimonial_id, current_user["email"],
    )
