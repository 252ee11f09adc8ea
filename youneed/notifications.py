# youneed/notifications.py
"""Notification sink.

Notifications are written after the order change they describe has been
committed. Delivery is best effort: a failed write is logged and dropped.
"""

import logging
from typing import Optional

from sqlmodel import Session

from .models import Notification, NotificationType, Order

logger = logging.getLogger(__name__)


def notify(
    session: Session,
    user_id: int,
    message: str,
    type: NotificationType = NotificationType.order,
    related_id: Optional[int] = None,
    related_type: Optional[str] = None,
) -> Optional[Notification]:
    try:
        note = Notification(
            user_id=user_id,
            message=message,
            type=type,
            related_id=related_id,
            related_type=related_type,
        )
        session.add(note)
        session.commit()
        session.refresh(note)
        return note
    except Exception:
        session.rollback()
        logger.exception(f"Failed to store notification for user {user_id}: {message!r}")
        return None


def notify_order_created(session: Session, order: Order, client_name: str) -> None:
    notify(
        session,
        order.provider_id,
        f'Nowe zlecenie: "{order.title}" od {client_name}',
        related_id=order.id,
        related_type="order",
    )
    if order.client_id is not None:
        notify(
            session,
            order.client_id,
            f'Zlecenie "{order.title}" zostało utworzone.',
            related_id=order.id,
            related_type="order",
        )


def notify_status_changed(session: Session, order: Order) -> None:
    message = f'Status zlecenia "{order.title}" zmieniono na: {order.status.value}'
    for user_id in (order.client_id, order.provider_id):
        if user_id is None:
            continue
        notify(session, user_id, message, related_id=order.id, related_type="order")
