# chair_app/routers/customers_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from chair_app.audit import log_interaction
from chair_app.db import get_session
from chair_app.deps import database_error, get_staff_user
from chair_app.models import Appointment, Customer
from chair_app.schemas import CustomerCreate, CustomerPublic, CustomerUpdate

router = APIRouter(
    prefix="/customers",
    tags=["customers"],
)


@router.get("", response_model=List[CustomerPublic])
def list_customers(
    email: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_staff_user),
):
    stmt = select(Customer)
    if email is not None:
        stmt = stmt.where(Customer.email == email.strip().lower())

    customers = session.exec(stmt.order_by(Customer.name)).all()
    log_interaction(
        session, "customerLookup" if email else "fetch", f"Fetched customer(s): {email or 'all'}",
        "customer", user_id=current_user["email"], details={"resultCount": len(customers)},
    )
    return customers


@router.get("/{customer_id}", response_model=CustomerPublic)
def get_customer(
    customer_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_staff_user),
):
    customer = session.get(Customer, customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.post("", response_model=CustomerPublic, status_code=201)
def create_customer(
    customer: CustomerCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_staff_user),
):
    # 1) Check if email already exists
    existing = session.exec(
        select(Customer).where(Customer.email == customer.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Customer with this email already exists.")

    # 2) Create customer in DB
    db_customer = Customer(**customer.model_dump())
    session.add(db_customer)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "create customer", "customer", current_user["email"]) from exc
    session.refresh(db_customer)

    log_interaction(
        session, "create", f"Created new customer: {db_customer.name} ({db_customer.email})",
        "customer", db_customer.id, current_user["email"], details={"payload": customer.model_dump()},
    )
    return db_customer


@router.put("/{customer_id}", response_model=CustomerPublic)
def update_customer(
    customer_id: int,
    update: CustomerUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_staff_user),
):
    db_customer = session.get(Customer, customer_id)
    if db_customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")

    changes = update.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    if changes.get("email") and changes["email"] != db_customer.email:
        taken = session.exec(
            select(Customer).where(Customer.email == changes["email"]).where(Customer.id != customer_id)
        ).first()
        if taken is not None:
            raise HTTPException(status_code=409, detail="Another customer with this email already exists.")

    for field, value in changes.items():
        setattr(db_customer, field, value)

    session.add(db_customer)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "update customer", "customer", current_user["email"]) from exc
    session.refresh(db_customer)

    log_interaction(
        session, "update", f"Updated customer: {customer_id}", "customer", customer_id, current_user["email"],
        details={"payload": changes},
    )
    return db_customer


@router.delete("/{customer_id}", status_code=204)
def delete_customer(
    customer_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_staff_user),
):
    db_customer = session.get(Customer, customer_id)
    if db_customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")

    booked = session.exec(select(Appointment.id).where(Appointment.customer_id == customer_id)).first()
    if booked is not None:
        raise HTTPException(status_code=409, detail="Customer has appointments and cannot be deleted")

    session.delete(db_customer)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "delete customer", "customer", current_user["email"]) from exc

    log_interaction(session, "delete", f"Deleted customer with ID: {customer_id}", "customer", customer_id, current_user["email"])
