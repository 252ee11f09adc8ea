# youneed/booking.py
"""Order booking rules.

Creation runs the opening-hours gate, then the conflict checker, then
inserts the order. Status changes go through a closed table keyed on who
the actor is relative to the order and which status they ask for.
"""

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlmodel import Session, select

from .config import settings
from .core import overlaps, to_local, to_naive_utc, utcnow, within_window
from .errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from .models import OpeningHour, Order, OrderStatus, Service, User, UserRole, WEEKDAYS
from .schemas import OrderCreate

logger = logging.getLogger(__name__)


OUTSIDE_HOURS = "Wybrany termin poza godzinami otwarcia usługodawcy"
PROVIDER_BUSY = "Usługodawca jest zajęty w wybranym terminie"


def weekday_of(moment: datetime):
    return WEEKDAYS[moment.weekday()]


def check_opening_hours(session: Session, provider_id: int, start_at: datetime) -> None:
    """Reject a start time outside the provider's configured window for that weekday.

    Only a row marked open with both times set restricts anything. A missing
    row, or a row marked closed, lets the booking through.
    """
    day = weekday_of(start_at)
    hours = session.exec(
        select(OpeningHour)
        .where(OpeningHour.provider_id == provider_id)
        .where(OpeningHour.day_of_week == day)
        .where(OpeningHour.is_open == True)  # noqa: E712
    ).first()

    if hours is None or hours.open_time is None or hours.close_time is None:
        return

    if not within_window(start_at, hours.open_time, hours.close_time):
        logger.info(
            f"Provider {provider_id}: {start_at:%H:%M} outside {day.value} "
            f"{hours.open_time:%H:%M}-{hours.close_time:%H:%M}"
        )
        raise ConflictError(OUTSIDE_HOURS)


def find_conflicts(
    session: Session,
    provider_id: int,
    start_at: datetime,
    end_at: Optional[datetime],
    exclude_order_id: Optional[int] = None,
) -> List[Order]:
    """Accepted orders of the provider overlapping [start_at, end_at], endpoints included."""
    new_end = end_at or start_at
    existing_end = func.coalesce(Order.end_at, Order.start_at)

    stmt = (
        select(Order)
        .where(Order.provider_id == provider_id)
        .where(Order.status == OrderStatus.accepted)
        .where(Order.start_at <= new_end)
        .where(existing_end >= start_at)
    )
    if exclude_order_id is not None:
        stmt = stmt.where(Order.id != exclude_order_id)

    candidates = session.exec(stmt).all()
    # re-check in Python so the result does not depend on how the backend compares datetimes
    return [o for o in candidates if overlaps(start_at, end_at, o.start_at, o.end_at)]


def ensure_no_conflict(
    session: Session,
    provider_id: int,
    start_at: datetime,
    end_at: Optional[datetime],
    exclude_order_id: Optional[int] = None,
) -> None:
    conflicts = find_conflicts(session, provider_id, start_at, end_at, exclude_order_id)
    if conflicts:
        logger.info(
            f"Provider {provider_id}: {start_at} clashes with orders "
            f"{[o.id for o in conflicts]}"
        )
        raise ConflictError(PROVIDER_BUSY)


# Per-provider locks serialise check-then-insert inside one process.
# One lock per provider id, never evicted; bounded by the number of providers.
_provider_locks: Dict[int, threading.Lock] = defaultdict(threading.Lock)
_registry_lock = threading.Lock()


@contextmanager
def provider_lock(session: Session, provider_id: int):
    with _registry_lock:
        lock = _provider_locks[provider_id]
    with lock:
        # row lock on the provider for backends that support SELECT ... FOR UPDATE
        session.exec(
            select(User.id).where(User.id == provider_id).with_for_update()
        ).first()
        yield


def create_order(session: Session, client: User, payload: OrderCreate) -> Order:
    if client.role != UserRole.client:
        raise AuthorizationError("Tylko klienci mogą tworzyć zlecenia")

    provider = session.get(User, payload.provider_id)
    if provider is None or provider.role != UserRole.provider:
        raise NotFoundError("Usługodawca nie znaleziony")

    # stored and compared for overlaps in UTC; opening hours are read on the local clock
    local_start = to_local(payload.start_at, settings.timezone)
    start_at = to_naive_utc(payload.start_at)
    end_at = to_naive_utc(payload.end_at) if payload.end_at is not None else None
    if end_at is not None and end_at <= start_at:
        raise ValidationError("Data końcowa musi być późniejsza niż data początkowa")

    if payload.service_id is not None:
        service = session.get(Service, payload.service_id)
        if service is None or service.provider_id != provider.id:
            raise NotFoundError("Usługa nie znaleziona")

    with provider_lock(session, provider.id):
        check_opening_hours(session, provider.id, local_start)
        ensure_no_conflict(session, provider.id, start_at, end_at)

        order = Order(
            client_id=client.id,
            provider_id=provider.id,
            service_id=payload.service_id,
            title=payload.title,
            description=payload.description or "",
            start_at=start_at,
            end_at=end_at,
            status=OrderStatus.pending,
        )
        session.add(order)
        session.commit()

    session.refresh(order)
    logger.info(f"Order {order.id} created by client {client.id} for provider {provider.id}")
    return order


class ActorRelation(str, Enum):
    owning_provider = "owning_provider"
    owning_client = "owning_client"
    other = "other"


def relation_of(actor: User, order: Order) -> ActorRelation:
    if actor.role == UserRole.provider and order.provider_id == actor.id:
        return ActorRelation.owning_provider
    if actor.role == UserRole.client and order.client_id == actor.id:
        return ActorRelation.owning_client
    return ActorRelation.other


def _provider_accepts(session: Session, order: Order) -> None:
    if order.status != OrderStatus.pending:
        raise ValidationError("Tylko oczekujące zlecenia mogą być zaakceptowane")
    # two pending orders may overlap; only one of them can become accepted
    ensure_no_conflict(
        session, order.provider_id, order.start_at, order.end_at, exclude_order_id=order.id
    )


def _provider_cancels(session: Session, order: Order) -> None:
    if order.status != OrderStatus.pending:
        raise ValidationError("Tylko oczekujące zlecenia mogą być anulowane")


def _client_cancels(session: Session, order: Order) -> None:
    if order.status != OrderStatus.pending:
        raise AuthorizationError("Klient może tylko anulować oczekujące zlecenia")


def _client_forbidden(session: Session, order: Order) -> None:
    raise AuthorizationError("Klient może tylko anulować oczekujące zlecenia")


def _forbidden(session: Session, order: Order) -> None:
    raise AuthorizationError("Brak uprawnień do zmiany statusu tego zlecenia")


TransitionCheck = Callable[[Session, Order], None]

TRANSITIONS: Dict[Tuple[ActorRelation, OrderStatus], TransitionCheck] = {
    (ActorRelation.owning_provider, OrderStatus.accepted): _provider_accepts,
    (ActorRelation.owning_provider, OrderStatus.cancelled): _provider_cancels,
    (ActorRelation.owning_client, OrderStatus.accepted): _client_forbidden,
    (ActorRelation.owning_client, OrderStatus.cancelled): _client_cancels,
    (ActorRelation.other, OrderStatus.accepted): _forbidden,
    (ActorRelation.other, OrderStatus.cancelled): _forbidden,
}


def change_status(session: Session, actor: User, order_id: int, target: OrderStatus) -> Order:
    order = session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Zlecenie nie znalezione")

    check = TRANSITIONS.get((relation_of(actor, order), target))
    if check is None:
        raise ValidationError("Nieprawidłowy status")

    with provider_lock(session, order.provider_id):
        session.refresh(order)
        check(session, order)
        _apply_status(session, order, target)

    session.refresh(order)
    logger.info(f"Order {order.id} -> {target.value} by user {actor.id}")
    return order


def _apply_status(session: Session, order: Order, target: OrderStatus) -> None:
    order.status = target
    order.updated_at = utcnow()
    session.add(order)
    session.commit()
