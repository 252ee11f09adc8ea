# youneed/models.py

from enum import Enum
from typing import Optional
from datetime import datetime, time

from sqlalchemy import UniqueConstraint
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

from .core import utcnow


class UserRole(str, Enum):
    client = "client"
    provider = "provider"
    admin = "admin"


class OrderStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    cancelled = "cancelled"
    completed = "completed"
    rejected = "rejected"


class DayOfWeek(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"


# index 0 = Monday, same as date.weekday()
WEEKDAYS = list(DayOfWeek)


class NotificationType(str, Enum):
    announcement = "announcement"
    warning = "warning"
    account = "account"
    order = "order"
    feedback = "feedback"
    message = "message"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: UserRole
    first_name: str = ""
    last_name: str = ""
    company_name: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def display_name(self) -> str:
        if self.company_name:
            return self.company_name
        return f"{self.first_name} {self.last_name}".strip() or self.email


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)

    client_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)
    provider_id: int = Field(foreign_key="users.id", index=True)
    service_id: Optional[int] = Field(default=None, foreign_key="services.id")

    title: str
    description: str = ""
    start_at: datetime = Field(index=True)
    end_at: Optional[datetime] = None
    status: OrderStatus = Field(default=OrderStatus.pending, index=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class OpeningHour(SQLModel, table=True):
    __tablename__ = "opening_hours"
    __table_args__ = (
        UniqueConstraint("provider_id", "day_of_week", name="uq_provider_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    provider_id: int = Field(foreign_key="users.id", index=True)
    day_of_week: DayOfWeek
    is_open: bool
    open_time: Optional[time] = None
    close_time: Optional[time] = None


class Service(SQLModel, table=True):
    __tablename__ = "services"

    id: Optional[int] = Field(default=None, primary_key=True)
    provider_id: int = Field(foreign_key="users.id", index=True)
    name: str
    description: str = ""
    price: float = 0.0
    duration: Optional[int] = None  # minutes
    category: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    message: str
    type: NotificationType = NotificationType.order
    is_read: bool = False
    related_id: Optional[int] = None
    related_type: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class AuditLog(SQLModel, table=True):
    __tablename__ = "audit_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    admin_id: Optional[int] = Field(default=None, foreign_key="users.id")
    action: str = Field(index=True)
    details: dict = Field(default_factory=dict, sa_column=Column(JSON))
    ip: Optional[str] = None
    target_user_id: Optional[int] = None
    target_resource_id: Optional[int] = None
    target_resource_type: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
