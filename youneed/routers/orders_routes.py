# youneed/routers/orders_routes.py

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy import func
from sqlmodel import Session, select

from youneed.audit import log_audit_action
from youneed.auth import get_current_user
from youneed.booking import ActorRelation, change_status, create_order, relation_of
from youneed.db import get_session
from youneed.deps import Page, client_ip
from youneed.errors import AuthorizationError, NotFoundError
from youneed.models import Order, OrderStatus, User, UserRole
from youneed.notifications import notify_order_created, notify_status_changed
from youneed.schemas import (
    OrderCreate,
    OrderList,
    OrderPublic,
    OrderStats,
    StatusUpdate,
    StatusUpdateResponse,
)

router = APIRouter(
    prefix="/orders",
    tags=["orders"],
)

RECENT_LIMIT = 10


def _scope(stmt, user: User):
    if user.role == UserRole.provider:
        return stmt.where(Order.provider_id == user.id)
    if user.role == UserRole.client:
        return stmt.where(Order.client_id == user.id)
    if user.role == UserRole.admin:
        return stmt
    raise AuthorizationError("Nieprawidłowa rola użytkownika")


@router.get("", response_model=OrderList)
def list_orders(
    request: Request,
    page: Page = Depends(),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    stmt = _scope(select(Order), current_user)
    stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc())
    orders = session.exec(stmt.offset(page.offset).limit(page.limit)).all()

    total = session.exec(_scope(select(func.count(Order.id)), current_user)).one()

    result = {
        "orders": [OrderPublic.model_validate(o) for o in orders],
        "total": total,
        "page": page.page,
        "limit": page.limit,
    }

    log_audit_action(
        session,
        "get_orders",
        {"page": page.page, "limit": page.limit},
        actor=current_user,
        ip=client_ip(request),
    )
    return result


@router.get("/stats", response_model=OrderStats)
def order_stats(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    stmt = _scope(select(Order.status, func.count(Order.id)), current_user).group_by(Order.status)
    counts = {status: count for status, count in session.exec(stmt).all()}

    return {s.value: counts.get(s, 0) for s in OrderStatus}


@router.get("/recent", response_model=List[OrderPublic])
def recent_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    stmt = _scope(select(Order), current_user)
    return session.exec(
        stmt.order_by(Order.created_at.desc(), Order.id.desc()).limit(RECENT_LIMIT)
    ).all()


@router.post("", response_model=OrderPublic, status_code=201)
def post_order(
    payload: OrderCreate,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = create_order(session, current_user, payload)
    result = OrderPublic.model_validate(order)

    # side effects run after the order is committed and never fail the request
    log_audit_action(
        session,
        "create_order",
        {
            "client_id": order.client_id,
            "provider_id": order.provider_id,
            "order_id": order.id,
            "title": order.title,
        },
        actor=current_user,
        ip=client_ip(request),
        target_user_id=order.provider_id,
        target_resource_id=order.id,
        target_resource_type="order",
    )
    notify_order_created(session, order, current_user.display_name)

    return result


@router.api_route("/{order_id}/status", methods=["PATCH", "PUT"], response_model=StatusUpdateResponse)
def update_order_status(
    order_id: int,
    body: StatusUpdate,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = change_status(session, current_user, order_id, OrderStatus(body.status))
    result = OrderPublic.model_validate(order)

    log_audit_action(
        session,
        "update_order_status",
        {"order_id": order.id, "status": body.status},
        actor=current_user,
        ip=client_ip(request),
        target_resource_id=order.id,
        target_resource_type="order",
    )
    notify_status_changed(session, order)

    return {"message": "Status zlecenia zaktualizowany", "order": result}


@router.get("/{order_id}", response_model=OrderPublic)
def get_order(
    order_id: int,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Zlecenie nie znalezione")

    if current_user.role != UserRole.admin and relation_of(current_user, order) == ActorRelation.other:
        raise AuthorizationError("Brak dostępu do tego zlecenia")

    result = OrderPublic.model_validate(order)
    log_audit_action(
        session,
        "get_order",
        {"order_id": order.id},
        actor=current_user,
        ip=client_ip(request),
        target_resource_id=order.id,
        target_resource_type="order",
    )
    return result
