# youneed/routers/notifications_routes.py

import math
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import func
from sqlmodel import Session, select

from youneed.auth import get_current_user
from youneed.config import settings
from youneed.db import get_session
from youneed.errors import NotFoundError
from youneed.models import Notification, User
from youneed.schemas import NotificationPage, NotificationPublic

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
)


def _own_notification(session: Session, user: User, notification_id: int) -> Notification:
    note = session.exec(
        select(Notification)
        .where(Notification.id == notification_id)
        .where(Notification.user_id == user.id)
    ).first()
    if note is None:
        raise NotFoundError("Nie znaleziono powiadomienia.")
    return note


@router.get("", response_model=NotificationPage)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status: Optional[Literal["unread", "all"]] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    limit = min(limit or settings.notification_page_limit, settings.max_page_limit)

    stmt = select(Notification).where(Notification.user_id == current_user.id)
    count_stmt = select(func.count(Notification.id)).where(Notification.user_id == current_user.id)
    if status == "unread":
        stmt = stmt.where(Notification.is_read == False)  # noqa: E712
        count_stmt = count_stmt.where(Notification.is_read == False)  # noqa: E712

    notes = session.exec(
        stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    total = session.exec(count_stmt).one()

    return {
        "notifications": notes,
        "pagination": {
            "current_page": page,
            "total_pages": math.ceil(total / limit),
            "total_items": total,
            "items_per_page": limit,
        },
    }


@router.patch("/read-all")
def mark_all_read(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    unread = session.exec(
        select(Notification)
        .where(Notification.user_id == current_user.id)
        .where(Notification.is_read == False)  # noqa: E712
    ).all()
    for note in unread:
        note.is_read = True
        session.add(note)
    session.commit()
    return {"marked_as_read_count": len(unread)}


@router.patch("/{notification_id}/read", response_model=NotificationPublic)
def mark_read(
    notification_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    note = _own_notification(session, current_user, notification_id)
    if not note.is_read:
        note.is_read = True
        session.add(note)
        session.commit()
        session.refresh(note)
    return note


@router.delete("/{notification_id}", status_code=204)
def delete_notification(
    notification_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    note = _own_notification(session, current_user, notification_id)
    session.delete(note)
    session.commit()
    return Response(status_code=204)
