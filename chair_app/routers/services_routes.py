# chair_app/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from chair_app.audit import log_interaction
from chair_app.db import get_session
from chair_app.deps import database_error, get_admin_user
from chair_app.models import Appointment, Service
from chair_app.schemas import ServiceCreate, ServicePublic, ServiceUpdate

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[ServicePublic])
def list_services(session: Session = Depends(get_session)):
    return session.exec(select(Service).order_by(Service.name)).all()


@router.get("/{service_id}", response_model=ServicePublic)
def get_service(service_id: int, session: Session = Depends(get_session)):
    service = session.get(Service, service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return service


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    existing = session.exec(select(Service).where(Service.slug == service.slug)).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Service slug already in use")

    db_service = Service(**service.model_dump())
    session.add(db_service)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "create service", "service", current_user["email"]) from exc
    session.refresh(db_service)

    log_interaction(
        session, "create", f"Created new service: {db_service.name}", "service", db_service.id, current_user["email"],
        details={"payload": service.model_dump()},
    )
    return db_service


@router.put("/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: int,
    update: ServiceUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    db_service = session.get(Service, service_id)
    if db_service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    changes = update.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    if "slug" in changes and changes["slug"] != db_service.slug:
        taken = session.exec(select(Service).where(Service.slug == changes["slug"])).first()
        if taken is not None:
            raise HTTPException(status_code=409, detail="Service slug already in use")

    for field, value in changes.items():
        setattr(db_service, field, value)

    session.add(db_service)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "update service", "service", current_user["email"]) from exc
    session.refresh(db_service)

    log_interaction(
        session, "update", f"Updated service: {db_service.name}", "service", db_service.id, current_user["email"],
        details={"payload": changes},
    )
    return db_service


@router.delete("/{service_id}", status_code=204)
def delete_service(
    service_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    db_service = session.get(Service, service_id)
    if db_service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    booked = session.exec(select(Appointment.id).where(Appointment.service_id == service_id)).first()
    if booked is not None:
        raise HTTPException(status_code=409, detail="Service has appointments and cannot be deleted")

    session.delete(db_service)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "delete service", "service", current_user["email"]) from exc

    log_interaction(session, "delete", f"Deleted service with ID: {service_id}", "service", service_id, current_user["email"])
