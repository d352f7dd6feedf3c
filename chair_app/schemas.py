# chair_app/schemas.py

import re
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from enum import Enum
from datetime import datetime, date, timezone
from typing import List, Optional

from chair_app.core import WEEKDAYS, parse_clock

CLOCK_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
URL_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    return value


def _reject_null(value):
    # Update bodies may omit a column but not null it out
    if value is None:
        raise ValueError("Field cannot be null")
    return value


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    admin = "admin"
    receptionist = "receptionist"
    barber = "barber"


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


class ContactStatus(str, Enum):
    new = "new"
    in_progress = "inProgress"
    resolved = "resolved"
    spam = "spam"


class UserPublic(BaseModel):
    id: int
    username: str
    email: str
    role: UserRole
    phone_number: Optional[str] = None
    barber_id: Optional[int] = None


class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=8, max_length=72)
    role: UserRole
    phone_number: Optional[str] = None
    barber_id: Optional[int] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class AvailabilityBlock(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day_of_week: str = Field(alias="dayOfWeek")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in WEEKDAYS:
            raise ValueError("dayOfWeek must be a weekday name (monday..sunday)")
        return normalized

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        value = value.strip()
        if not CLOCK_PATTERN.match(value):
            raise ValueError("Must be in HH:MM format (e.g., 09:00)")
        return value

    @model_validator(mode="after")
    def check_order(self):
        if parse_clock(self.start_time) >= parse_clock(self.end_time):
            raise ValueError("startTime must be earlier than endTime")
        return self


class BarberCreate(BaseModel):
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    bio: Optional[str] = None
    image_url: Optional[str] = None
    daily_availability: List[AvailabilityBlock] = []


class BarberUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    bio: Optional[str] = None
    image_url: Optional[str] = None
    daily_availability: Optional[List[AvailabilityBlock]] = None

    @field_validator("name", "slug", "daily_availability")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


class BarberPublic(BaseModel):
    id: int
    name: str
    slug: str
    bio: Optional[str] = None
    image_url: Optional[str] = None
    daily_availability: List[AvailabilityBlock]


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    description: Optional[str] = None
    duration: int = Field(gt=0)
    price: float = Field(ge=0)


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, ge=0)

    @field_validator("name", "slug", "duration", "price")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


class ServicePublic(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    duration: int
    price: float


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str
    phone: Optional[str] = None
    loyalty_points: int = Field(default=0, ge=0)
    notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not EMAIL_PATTERN.match(normalized):
            raise ValueError("Invalid email format.")
        return normalized


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    loyalty_points: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @field_validator("name", "loyalty_points")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("Field cannot be null")
        normalized = value.strip().lower()
        if not EMAIL_PATTERN.match(normalized):
            raise ValueError("Invalid email format.")
        return normalized


class CustomerPublic(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    loyalty_points: int
    notes: Optional[str] = None


class BookingRequest(BaseModel):
    """Public booking form. Presence of fields is checked by the booking decision."""

    model_config = ConfigDict(populate_by_name=True)

    customer_name: Optional[str] = Field(default=None, alias="customerName")
    customer_email: Optional[str] = Field(default=None, alias="customerEmail")
    customer_phone: Optional[str] = Field(default=None, alias="customerPhone")
    barber_id: Optional[int] = Field(default=None, alias="barberId")
    service_id: Optional[int] = Field(default=None, alias="serviceId")
    date_time: Optional[datetime] = Field(default=None, alias="dateTime")
    notes: Optional[str] = None
    create_account: bool = Field(default=False, alias="createAccount")

    @field_validator("customer_name", "customer_email", "customer_phone", "notes", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _blank_to_none(value)

    @field_validator("customer_email")
    @classmethod
    def lower_email(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else value


class BookingResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    appointment_id: int = Field(alias="appointmentId")


class LogEntry(BaseModel):
    key: str
    timestamp: datetime
    type: str
    message: str
    user: Optional[str] = None
    details: dict = {}


class AppointmentPublic(BaseModel):
    id: int
    customer_id: int
    barber_id: int
    service_id: int
    date_time: datetime
    status: AppointmentStatus
    notes: Optional[str] = None
    log: List[LogEntry] = []


class BookedSlotPublic(BaseModel):
    id: int
    date_time: datetime
    duration: int


class StatusUpdate(BaseModel):
    status: AppointmentStatus


class ContactCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str
    phone: Optional[str] = None
    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip()
        if not EMAIL_PATTERN.match(normalized):
            raise ValueError("Invalid email format.")
        return normalized


class ContactUpdate(BaseModel):
    status: Optional[ContactStatus] = None
    resolution_notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


class ContactPublic(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    sent_at: datetime
    status: ContactStatus
    resolution_notes: Optional[str] = None


class AvailabilityResponse(BaseModel):
    barber_id: int
    service_id: int
    date: date
    available_starts: List[str]


class ServicePerformance(BaseModel):
    service_id: int
    name: str
    count: int
    total_revenue: float


class BarberActivity(BaseModel):
    barber_id: int
    name: str
    count: int


class ReportSummary(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    status_counts: dict[str, int]
    total_completed_appointments: int
    total_revenue: float
    average_appointment_value: float
    services: List[ServicePerformance]
    barbers: List[BarberActivity]


class AuditLogPublic(BaseModel):
    id: int
    timestamp: datetime
    operation_type: str
    message: str
    document_type: str
    document_id: str
    user_id: str
    success: bool
    details: dict


class TestimonialCreate(BaseModel):
    customer_name: str = Field(min_length=1)
    quote: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    date: Optional[datetime] = None
    image_url: Optional[str] = None

    @field_validator("date")
    @classmethod
    def store_naive(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _naive_utc(value)


class TestimonialUpdate(BaseModel):
    customer_name: Optional[str] = None
    quote: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    date: Optional[datetime] = None
    image_url: Optional[str] = None

    @field_validator("customer_name", "quote", "rating", "date")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)

    @field_validator("date")
    @classmethod
    def store_naive(cls, value: datetime) -> datetime:
        return _naive_utc(value)


class TestimonialPublic(BaseModel):
    id: int
    customer_name: str
    quote: str
    rating: int
    date: datetime
    image_url: Optional[str] = None


class SocialPlatform(str, Enum):
    facebook = "facebook"
    instagram = "instagram"
    twitter = "twitter"
    linkedin = "linkedin"
    tiktok = "tiktok"


class SocialLink(BaseModel):
    platform: SocialPlatform
    url: str

    @field_validator("url")
    @classmethod
    def absolute_url(cls, value: str) -> str:
        value = value.strip()
        if not URL_PATTERN.match(value):
            raise ValueError("url must be an absolute http(s) URL")
        return value


class SiteSettingsUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None
    social_links: Optional[List[SocialLink]] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = value.strip()
        if not EMAIL_PATTERN.match(normalized):
            raise ValueError("Invalid email format.")
        return normalized


class SiteSettingsPublic(BaseModel):
    id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None
    social_links: List[SocialLink] = []
