# youneed/routers/providers_routes.py

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import func
from sqlmodel import Session, select

from youneed.audit import log_audit_action
from youneed.auth import get_current_user
from youneed.db import get_session
from youneed.deps import Page, client_ip, require_role
from youneed.errors import NotFoundError, ValidationError
from youneed.models import OpeningHour, Order, OrderStatus, Service, User, UserRole, WEEKDAYS
from youneed.schemas import (
    OpeningHourIn,
    OpeningHourOut,
    ProviderOrderList,
    ProviderOrderPublic,
    ServiceCreate,
    ServicePublic,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/provider",
    tags=["providers"],
)


def _get_provider(session: Session, provider_id: int) -> User:
    provider = session.get(User, provider_id)
    if provider is None or provider.role != UserRole.provider:
        raise NotFoundError("Usługodawca nie znaleziony")
    return provider


def _format_hours(rows: List[OpeningHour]) -> List[dict]:
    formatted = [
        {
            "day_of_week": WEEKDAYS.index(row.day_of_week),
            "is_closed": not row.is_open,
            "start_time": row.open_time.strftime("%H:%M") if row.open_time else None,
            "end_time": row.close_time.strftime("%H:%M") if row.close_time else None,
        }
        for row in rows
    ]
    return sorted(formatted, key=lambda h: h["day_of_week"])


def _hours_for(session: Session, provider_id: int) -> List[OpeningHour]:
    return session.exec(
        select(OpeningHour).where(OpeningHour.provider_id == provider_id)
    ).all()


@router.get("/opening-hours", response_model=List[OpeningHourOut])
def get_my_opening_hours(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.provider)
    return _format_hours(_hours_for(session, current_user.id))


@router.put("/opening-hours", response_model=List[OpeningHourOut])
def put_my_opening_hours(
    hours: List[OpeningHourIn],
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.provider)

    days = [h.day_of_week for h in hours]
    if len(days) != len(set(days)):
        raise ValidationError("Każdy dzień tygodnia może wystąpić tylko raz")

    for h in hours:
        if h.is_closed:
            continue
        if h.start_time is None or h.end_time is None:
            raise ValidationError("Otwarty dzień wymaga godziny otwarcia i zamknięcia")
        if h.start_time >= h.end_time:
            raise ValidationError("Godzina otwarcia musi być wcześniejsza niż godzina zamknięcia")

    # replace the whole week in one transaction
    for row in _hours_for(session, current_user.id):
        session.delete(row)
    session.flush()
    for h in hours:
        session.add(
            OpeningHour(
                provider_id=current_user.id,
                day_of_week=WEEKDAYS[h.day_of_week],
                is_open=not h.is_closed,
                open_time=None if h.is_closed else h.start_time,
                close_time=None if h.is_closed else h.end_time,
            )
        )
    session.commit()
    logger.info(f"Provider {current_user.id} replaced opening hours ({len(hours)} days)")

    log_audit_action(
        session,
        "update_opening_hours",
        {"days": days},
        actor=current_user,
        ip=client_ip(request),
    )
    return _format_hours(_hours_for(session, current_user.id))


@router.get("/{provider_id}/opening-hours", response_model=List[OpeningHourOut])
def get_provider_opening_hours(
    provider_id: int,
    session: Session = Depends(get_session),
):
    _get_provider(session, provider_id)
    return _format_hours(_hours_for(session, provider_id))


@router.get("/{provider_id}/orders", response_model=ProviderOrderList)
def list_provider_orders(
    provider_id: int,
    request: Request,
    page: Page = Depends(),
    session: Session = Depends(get_session),
):
    _get_provider(session, provider_id)

    orders = session.exec(
        select(Order)
        .where(Order.provider_id == provider_id)
        .where(Order.status == OrderStatus.accepted)
        .order_by(Order.start_at)
        .offset(page.offset)
        .limit(page.limit)
    ).all()

    total = session.exec(
        select(func.count(Order.id))
        .where(Order.provider_id == provider_id)
        .where(Order.status == OrderStatus.accepted)
    ).one()

    result = {
        "orders": [ProviderOrderPublic.model_validate(o) for o in orders],
        "total": total,
        "page": page.page,
        "limit": page.limit,
    }

    log_audit_action(
        session,
        "get_provider_orders",
        {"provider_id": provider_id, "page": page.page, "limit": page.limit},
        ip=client_ip(request),
    )
    return result


@router.get("/{provider_id}/services", response_model=List[ServicePublic])
def list_provider_services(
    provider_id: int,
    session: Session = Depends(get_session),
):
    _get_provider(session, provider_id)
    return session.exec(
        select(Service).where(Service.provider_id == provider_id).order_by(Service.name)
    ).all()


@router.post("/services", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceCreate,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.provider)

    db_service = Service(provider_id=current_user.id, **service.model_dump())
    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    result = ServicePublic.model_validate(db_service)

    log_audit_action(
        session,
        "create_service",
        {"service_id": db_service.id, "name": db_service.name},
        actor=current_user,
        ip=client_ip(request),
        target_resource_id=db_service.id,
        target_resource_type="service",
    )
    return result


@router.delete("/services/{service_id}", status_code=204)
def delete_service(
    service_id: int,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.provider)

    service = session.get(Service, service_id)
    if service is None or service.provider_id != current_user.id:
        raise NotFoundError("Usługa nie znaleziona")

    session.delete(service)
    session.commit()

    log_audit_action(
        session,
        "delete_service",
        {"service_id": service_id},
        actor=current_user,
        ip=client_ip(request),
        target_resource_id=service_id,
        target_resource_type="service",
    )
    return Response(status_code=204)
