# chair_app/routers/contact_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from chair_app.audit import log_interaction
from chair_app.db import get_session
from chair_app.deps import database_error, get_staff_user
from chair_app.models import Contact
from chair_app.schemas import ContactCreate, ContactPublic, ContactStatus, ContactUpdate

router = APIRouter(
    prefix="/contact",
    tags=["contact"],
)


@router.post("", response_model=ContactPublic, status_code=201)
def submit_contact(
    contact: ContactCreate,
    session: Session = Depends(get_session),
):
    db_contact = Contact(**contact.model_dump(), status=ContactStatus.new.value)

    session.add(db_contact)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "submit contact message", "contact", "client-submit") from exc
    session.refresh(db_contact)

    log_interaction(
        session,
        "create",
        f'New contact message from {db_contact.name} ({db_contact.email}) - Subject: "{db_contact.subject}".',
        "contact",
        db_contact.id,
        "client-submit",
        details={"payload": contact.model_dump()},
    )
    return db_contact


@router.get("", response_model=List[ContactPublic])
def list_contacts(
    status: Optional[ContactStatus] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_staff_user),
):
    stmt = select(Contact)
    if status is not None:
        stmt = stmt.where(Contact.status == status.value)

    return session.exec(stmt.order_by(Contact.sent_at.desc())).all()


@router.get("/{contact_id}", response_model=ContactPublic)
def get_contact(
    contact_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_staff_user),
):
    contact = session.get(Contact, contact_id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact message not found")
    return contact


@router.patch("/{contact_id}", response_model=ContactPublic)
def update_contact(
    contact_id: int,
    update: ContactUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_staff_user),
):
    contact = session.get(Contact, contact_id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact message not found")

    changes = update.model_dump(exclude_unset=True, mode="json")
    if not changes:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    old_status = contact.status
    for field, value in changes.items():
        setattr(contact, field, value)

    session.add(contact)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "update contact message", "contact", current_user["email"]) from exc
    session.refresh(contact)

    log_interaction(
        session, "update", f"Updated contact message: {contact_id}", "contact", contact_id, current_user["email"],
        details={"oldValue": old_status, "newValue": contact.status, "payload": changes},
    )
    return contact


@router.delete("/{contact_id}", status_code=204)
def delete_contact(
    contact_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_staff_user),
):
    contact = session.get(Contact, contact_id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact message not found")

    session.delete(contact)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "delete contact message", "contact", current_user["email"]) from exc

    log_interaction(session, "delete", f"Deleted contact message with ID: {contact_id}", "contact", contact_id, current_user["email"])
