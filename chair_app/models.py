# chair_app/models.py

from typing import Optional, List
from datetime import datetime

from pydantic import NaiveDatetime
from sqlalchemy.types import JSON, DateTime
from sqlmodel import SQLModel, Field, Column


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str
    email: str = Field(index=True, unique=True)
    phone_number: Optional[str] = None
    password_hash: str
    role: str  # admin, receptionist or barber
    barber_id: Optional[int] = Field(default=None, foreign_key="barber.id")


class Barber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)
    bio: Optional[str] = None
    image_url: Optional[str] = None
    # [{"dayOfWeek": "monday", "startTime": "09:00", "endTime": "17:00"}, ...]
    daily_availability: List[dict] = Field(default_factory=list, sa_column=Column(JSON))


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)
    description: Optional[str] = None
    duration: int  # minutes
    price: float


class Customer(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    phone: Optional[str] = None
    loyalty_points: int = 0
    notes: Optional[str] = None


class Appointment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    customer_id: int = Field(foreign_key="customer.id", index=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    service_id: int = Field(foreign_key="service.id")
    date_time: NaiveDatetime = Field(index=True, sa_type=DateTime(timezone=False))  # shop-local start
    status: str = "pending"
    notes: Optional[str] = None
    log: List[dict] = Field(default_factory=list, sa_column=Column(JSON))


class Contact(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    sent_at: NaiveDatetime = Field(default_factory=datetime.utcnow, index=True, sa_type=DateTime(timezone=False))
    status: str = "new"
    resolution_notes: Optional[str] = None


class AuditLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    timestamp: NaiveDatetime = Field(default_factory=datetime.utcnow, index=True, sa_type=DateTime(timezone=False))
    operation_type: str = Field(index=True)
    message: str
    document_type: str = "N/A"
    document_id: str = "N/A"
    user_id: str = "anonymous"
    success: bool = True
    details: dict = Field(default_factory=dict, sa_column=Column(JSON))


class Testimonial(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    customer_name: str
    quote: str
    rating: int  # 1-5 stars
    date: NaiveDatetime = Field(default_factory=datetime.utcnow, sa_type=DateTime(timezone=False))
    image_url: Optional[str] = None


class SiteSettings(SQLModel, table=True):
    # single row
    id: Optional[int] = Field(default=None, primary_key=True)
    title: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None
    # [{"platform": "instagram", "url": "https://..."}, ...]
    social_links: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
