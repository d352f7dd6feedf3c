# chair_app/routers/barbers_routes.py

from datetime import datetime, timezone, date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from chair_app.audit import log_interaction
from chair_app.booking import barber_blocks, day_appointments
from chair_app.config import SHOP_TIMEZONE, SLOT_MINUTES
from chair_app.core import available_start_times, to_shop_time
from chair_app.db import get_session
from chair_app.deps import database_error, get_admin_user
from chair_app.models import Appointment, Barber, Service
from chair_app.schemas import AvailabilityResponse, BarberCreate, BarberPublic, BarberUpdate

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


def _dump_blocks(blocks) -> list[dict]:
    return [block.model_dump(by_alias=True) for block in blocks]


@router.get("", response_model=List[BarberPublic])
def list_barbers(session: Session = Depends(get_session)):
    return session.exec(select(Barber).order_by(Barber.name)).all()


@router.get("/{barber_id}", response_model=BarberPublic)
def get_barber(barber_id: int, session: Session = Depends(get_session)):
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber Not Found")
    return barber


@router.post("", response_model=BarberPublic, status_code=201)
def create_barber(
    barber: BarberCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    existing = session.exec(select(Barber).where(Barber.slug == barber.slug)).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Barber slug already in use")

    db_barber = Barber(
        name=barber.name,
        slug=barber.slug,
        bio=barber.bio,
        image_url=barber.image_url,
        daily_availability=_dump_blocks(barber.daily_availability),
    )

    session.add(db_barber)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "create barber", "barber", current_user["email"]) from exc
    session.refresh(db_barber)

    log_interaction(
        session, "create", f"Created new barber: {db_barber.name}", "barber", db_barber.id, current_user["email"],
        details={"payload": db_barber.model_dump()},
    )
    return db_barber


@router.put("/{barber_id}", response_model=BarberPublic)
def update_barber(
    barber_id: int,
    update: BarberUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    db_barber = session.get(Barber, barber_id)
    if db_barber is None:
        raise HTTPException(status_code=404, detail="Barber Not Found")

    changes = update.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    if "slug" in changes and changes["slug"] != db_barber.slug:
        taken = session.exec(select(Barber).where(Barber.slug == changes["slug"])).first()
        if taken is not None:
            raise HTTPException(status_code=409, detail="Barber slug already in use")

    if "daily_availability" in changes:
        # whole schedule is replaced
        changes["daily_availability"] = _dump_blocks(update.daily_availability or [])

    for field, value in changes.items():
        setattr(db_barber, field, value)

    session.add(db_barber)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "update barber", "barber", current_user["email"]) from exc
    session.refresh(db_barber)

    log_interaction(
        session, "update", f"Updated barber: {db_barber.name}", "barber", db_barber.id, current_user["email"],
        details={"payload": changes},
    )
    return db_barber


@router.delete("/{barber_id}", status_code=204)
def delete_barber(
    barber_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    db_barber = session.get(Barber, barber_id)
    if db_barber is None:
        raise HTTPException(status_code=404, detail="Barber Not Found")

    booked = session.exec(select(Appointment.id).where(Appointment.barber_id == barber_id)).first()
    if booked is not None:
        raise HTTPException(status_code=409, detail="Barber has appointments and cannot be deleted")

    session.delete(db_barber)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "delete barber", "barber", current_user["email"]) from exc

    log_interaction(session, "delete", f"Deleted barber with ID: {barber_id}", "barber", barber_id, current_user["email"])


@router.get("/{barber_id}/availability", response_model=AvailabilityResponse)
def barber_availability(
    barber_id: int,
    on_date: date = Query(alias="date"),
    service_id: int = Query(alias="serviceId"),
    session: Session = Depends(get_session),
):
    # 1) Lookup barber and service
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber Not Found")
    service = session.get(Service, service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Service Not Found")

    # 2) Booked intervals that day, then walk the blocks
    existing = day_appointments(session, barber_id, on_date)
    now_local = to_shop_time(datetime.now(timezone.utc), SHOP_TIMEZONE)

    available = available_start_times(
        barber_blocks(barber),
        existing,
        on_date,
        service.duration,
        SLOT_MINUTES,
        not_before=now_local,
    )

    return {"barber_id": barber_id, "service_id": service_id, "date": on_date, "available_starts": available}
