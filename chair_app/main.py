# chair_app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

from chair_app.auth import ensure_admin_user
from chair_app.config import ADMIN_EMAIL, ADMIN_PASSWORD, CORS_ORIGINS, LOG_LEVEL, validate_runtime_config
from chair_app.db import engine, init_db
from chair_app.routers import (
    appointments_routes,
    auth_routes,
    barbers_routes,
    contact_routes,
    customers_routes,
    reports_routes,
    services_routes,
    site_settings_routes,
    testimonials_routes,
    users_routes,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_runtime_config()
    init_db(engine)
    logger.info("Database tables ready")

    if ADMIN_EMAIL and ADMIN_PASSWORD:
        with Session(engine) as session:
            if ensure_admin_user(session, ADMIN_EMAIL, ADMIN_PASSWORD):
                logger.info("Seed admin account created for %s", ADMIN_EMAIL)
    yield


app = FastAPI(title="The Chair API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(barbers_routes.router)
app.include_router(services_routes.router)
app.include_router(customers_routes.router)
app.include_router(appointments_routes.router)
app.include_router(contact_routes.router)
app.include_router(reports_routes.router)
app.include_router(testimonials_routes.router)
app.include_router(site_settings_routes.router)
