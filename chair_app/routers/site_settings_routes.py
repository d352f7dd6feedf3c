# chair_app/routers/site_settings_routes.py

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from chair_app.audit import log_interaction
from chair_app.db import get_session
from chair_app.deps import database_error, get_admin_user
from chair_app.models import SiteSettings
from chair_app.schemas import SiteSettingsPublic, SiteSettingsUpdate

router = APIRouter(
    prefix="/site-settings",
    tags=["site settings"],
)


def current_settings(session: Session):
    return session.exec(select(SiteSettings).order_by(SiteSettings.id)).first()


@router.get("", response_model=SiteSettingsPublic)
def get_site_settings(session: Session = Depends(get_session)):
    """Shop-wide settings; empty until an admin saves them."""
    settings = current_settings(session)
    if settings is None:
        return SiteSettingsPublic()
    return settings


@router.put("", response_model=SiteSettingsPublic)
def save_site_settings(
    update: SiteSettingsUpdate,
    response: Response,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_admin_user),
):
    changes = update.model_dump(exclude_unset=True, mode="json")
    if not changes:
        raise HTTPException(status_code=400, detail="No fields provided for update")
    if "social_links" in changes and changes["social_links"] is None:
        changes["social_links"] = []

    settings = current_settings(session)
    operation_type = "update"
    if settings is None:
        settings = SiteSettings()
        operation_type = "create"
        response.status_code = 201

    for field, value in changes.items():
        setattr(settings, field, value)

    session.add(settings)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        raise database_error(session, exc, "save site settings", "siteSettings", current_user["email"]) from exc
    session.refresh(settings)

    log_interaction(
        session,
        operation_type,
        f"Site settings {operation_type}d.",
        "siteSettings",
        settings.id,
        current_user["email"],
        details={"payload": changes},
    )
    return settings
