# youneed/schemas.py

from datetime import datetime, time
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import NotificationType, OrderStatus, UserRole


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: UserRole
    first_name: str
    last_name: str
    company_name: Optional[str] = None


class UserCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: str
    password: str = Field(min_length=8, max_length=72)
    role: Literal["client", "provider"]
    first_name: str = ""
    last_name: str = ""
    company_name: Optional[str] = None


# Request bodies accept both camelCase (web client) and snake_case keys.
class OrderCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    description: Optional[str] = None
    start_at: datetime
    end_at: Optional[datetime] = None
    provider_id: int
    service_id: Optional[int] = None

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class StatusUpdate(BaseModel):
    status: Literal["accepted", "cancelled"]


class OrderPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: Optional[int]
    provider_id: int
    service_id: Optional[int] = None
    title: str
    description: str
    start_at: datetime
    end_at: Optional[datetime]
    status: OrderStatus
    created_at: datetime
    updated_at: datetime


class OrderList(BaseModel):
    orders: List[OrderPublic]
    total: int
    page: int
    limit: int


class ProviderOrderPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    start_at: datetime
    end_at: Optional[datetime]
    status: OrderStatus


class ProviderOrderList(BaseModel):
    orders: List[ProviderOrderPublic]
    total: int
    page: int
    limit: int


class StatusUpdateResponse(BaseModel):
    message: str
    order: OrderPublic


class OrderStats(BaseModel):
    pending: int = 0
    accepted: int = 0
    cancelled: int = 0
    completed: int = 0
    rejected: int = 0


class OpeningHourIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    day_of_week: int = Field(ge=0, le=6)  # 0 = Monday
    is_closed: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None


class OpeningHourOut(BaseModel):
    day_of_week: int
    is_closed: bool
    start_time: Optional[str]  # HH:MM
    end_time: Optional[str]


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    price: float = Field(default=0.0, ge=0)
    duration: Optional[int] = Field(default=None, gt=0)
    category: Optional[str] = None


class ServicePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    provider_id: int
    name: str
    description: str
    price: float
    duration: Optional[int]
    category: Optional[str]


class NotificationPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    message: str
    type: NotificationType
    is_read: bool
    related_id: Optional[int]
    related_type: Optional[str]
    created_at: datetime


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class NotificationPage(BaseModel):
    notifications: List[NotificationPublic]
    pagination: Pagination


class AuditLogPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    admin_id: Optional[int]
    action: str
    details: dict
    ip: Optional[str]
    target_user_id: Optional[int]
    target_resource_id: Optional[int]
    target_resource_type: Optional[str]
    created_at: datetime


class AuditLogPage(BaseModel):
    logs: List[AuditLogPublic]
    total: int
    page: int
    limit: int
