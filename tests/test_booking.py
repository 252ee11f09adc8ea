from datetime import datetime, time

import pytest
from sqlmodel import select

from youneed.booking import (
    ActorRelation,
    TRANSITIONS,
    change_status,
    check_opening_hours,
    create_order,
    find_conflicts,
    relation_of,
)
from youneed.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from youneed.models import Order, OrderStatus, UserRole
from youneed.schemas import OrderCreate

MONDAY = 0
# 2030-01-07 is a Monday
MON = datetime(2030, 1, 7)
TUE = datetime(2030, 1, 8)


def at(day, hour, minute=0):
    return day.replace(hour=hour, minute=minute)


class TestOpeningHours:
    def test_inside_window_passes(self, session, provider, add_hours):
        add_hours(provider.id, MONDAY, time(9), time(17))
        check_opening_hours(session, provider.id, at(MON, 9))
        check_opening_hours(session, provider.id, at(MON, 17))

    def test_outside_window_rejected(self, session, provider, add_hours):
        add_hours(provider.id, MONDAY, time(9), time(17))
        with pytest.raises(ConflictError):
            check_opening_hours(session, provider.id, at(MON, 8, 59))
        with pytest.raises(ConflictError):
            check_opening_hours(session, provider.id, at(MON, 17, 1))

    def test_unconfigured_day_is_open(self, session, provider, add_hours):
        add_hours(provider.id, MONDAY, time(9), time(17))
        check_opening_hours(session, provider.id, at(TUE, 6))

    def test_closed_row_does_not_restrict(self, session, provider, add_hours):
        add_hours(provider.id, MONDAY, time(9), time(17), is_open=False)
        check_opening_hours(session, provider.id, at(MON, 20))

    def test_other_provider_hours_ignored(self, session, provider, make_user, add_hours):
        other = make_user(UserRole.provider)
        add_hours(other.id, MONDAY, time(9), time(17))
        check_opening_hours(session, provider.id, at(MON, 20))


class TestConflicts:
    def test_only_accepted_orders_count(self, session, provider, customer, add_order):
        for status in (OrderStatus.pending, OrderStatus.cancelled, OrderStatus.rejected):
            add_order(provider.id, customer.id, at(MON, 10), at(MON, 11), status=status)
        assert find_conflicts(session, provider.id, at(MON, 10), at(MON, 11)) == []

        accepted = add_order(provider.id, customer.id, at(MON, 10), at(MON, 11))
        found = find_conflicts(session, provider.id, at(MON, 10, 30), at(MON, 11, 30))
        assert [o.id for o in found] == [accepted.id]

    def test_touching_boundary_conflicts(self, session, provider, customer, add_order):
        add_order(provider.id, customer.id, at(MON, 10), at(MON, 11))
        assert find_conflicts(session, provider.id, at(MON, 11), at(MON, 12))
        assert not find_conflicts(session, provider.id, at(MON, 11, 1), at(MON, 12))

    def test_existing_without_end_is_a_point(self, session, provider, customer, add_order):
        add_order(provider.id, customer.id, at(MON, 10))
        assert find_conflicts(session, provider.id, at(MON, 9), at(MON, 10))
        assert not find_conflicts(session, provider.id, at(MON, 10, 1), at(MON, 11))

    def test_other_provider_ignored(self, session, provider, customer, make_user, add_order):
        other = make_user(UserRole.provider)
        add_order(other.id, customer.id, at(MON, 10), at(MON, 11))
        assert not find_conflicts(session, provider.id, at(MON, 10), at(MON, 11))

    def test_excluded_order_ignored(self, session, provider, customer, add_order):
        order = add_order(provider.id, customer.id, at(MON, 10), at(MON, 11))
        assert not find_conflicts(session, provider.id, at(MON, 10), at(MON, 11), exclude_order_id=order.id)


class TestCreateOrder:
    def payload(self, provider, **fields):
        data = {"title": "Strzyżenie", "start_at": at(MON, 10), "provider_id": provider.id}
        data.update(fields)
        return OrderCreate(**data)

    def test_creates_pending_order(self, session, provider, customer):
        order = create_order(session, customer, self.payload(provider, end_at=at(MON, 11)))
        assert order.id is not None
        assert order.status == OrderStatus.pending
        assert order.client_id == customer.id
        assert order.description == ""

    def test_only_clients_create(self, session, provider, make_user):
        for role in (UserRole.provider, UserRole.admin):
            with pytest.raises(AuthorizationError):
                create_order(session, make_user(role), self.payload(provider))

    def test_target_must_be_provider(self, session, customer, make_user):
        other_client = make_user(UserRole.client)
        with pytest.raises(NotFoundError):
            create_order(session, customer, self.payload(other_client))

    def test_end_must_follow_start(self, session, provider, customer):
        with pytest.raises(ValidationError):
            create_order(session, customer, self.payload(provider, end_at=at(MON, 10)))
        with pytest.raises(ValidationError):
            create_order(session, customer, self.payload(provider, end_at=at(MON, 9)))

    def test_hours_checked_before_conflicts(self, session, provider, customer, add_hours, add_order):
        add_hours(provider.id, MONDAY, time(9), time(17))
        add_order(provider.id, customer.id, at(MON, 18), at(MON, 19))
        with pytest.raises(ConflictError) as exc:
            create_order(session, customer, self.payload(provider, start_at=at(MON, 18)))
        assert "godzinami otwarcia" in exc.value.message

    def test_unknown_service_rejected(self, session, provider, customer):
        with pytest.raises(NotFoundError):
            create_order(session, customer, self.payload(provider, service_id=999))


class TestTransitions:
    def test_matrix_is_exhaustive(self):
        targets = (OrderStatus.accepted, OrderStatus.cancelled)
        assert set(TRANSITIONS) == {(r, t) for r in ActorRelation for t in targets}

    def test_relation_of(self, provider, customer, make_user, add_order):
        order = add_order(provider.id, customer.id, at(MON, 10), status=OrderStatus.pending)
        assert relation_of(provider, order) == ActorRelation.owning_provider
        assert relation_of(customer, order) == ActorRelation.owning_client
        assert relation_of(make_user(UserRole.provider), order) == ActorRelation.other
        assert relation_of(make_user(UserRole.client), order) == ActorRelation.other
        assert relation_of(make_user(UserRole.admin), order) == ActorRelation.other

    @pytest.mark.parametrize("target", [OrderStatus.accepted, OrderStatus.cancelled])
    def test_provider_moves_pending(self, session, provider, customer, add_order, target):
        order = add_order(provider.id, customer.id, at(MON, 10), status=OrderStatus.pending)
        assert change_status(session, provider, order.id, target).status == target

    @pytest.mark.parametrize("target", [OrderStatus.accepted, OrderStatus.cancelled])
    def test_provider_cannot_move_non_pending(self, session, provider, customer, add_order, target):
        order = add_order(provider.id, customer.id, at(MON, 10), status=OrderStatus.cancelled)
        with pytest.raises(ValidationError):
            change_status(session, provider, order.id, target)
        session.refresh(order)
        assert order.status == OrderStatus.cancelled

    def test_client_cancels_pending(self, session, provider, customer, add_order):
        order = add_order(provider.id, customer.id, at(MON, 10), status=OrderStatus.pending)
        assert change_status(session, customer, order.id, OrderStatus.cancelled).status == OrderStatus.cancelled

    def test_client_cannot_accept(self, session, provider, customer, add_order):
        order = add_order(provider.id, customer.id, at(MON, 10), status=OrderStatus.pending)
        with pytest.raises(AuthorizationError):
            change_status(session, customer, order.id, OrderStatus.accepted)
        session.refresh(order)
        assert order.status == OrderStatus.pending

    def test_client_cannot_cancel_accepted(self, session, provider, customer, add_order):
        order = add_order(provider.id, customer.id, at(MON, 10))
        with pytest.raises(AuthorizationError):
            change_status(session, customer, order.id, OrderStatus.cancelled)

    @pytest.mark.parametrize("role", [UserRole.provider, UserRole.client, UserRole.admin])
    @pytest.mark.parametrize("target", [OrderStatus.accepted, OrderStatus.cancelled])
    def test_strangers_rejected(self, session, provider, customer, make_user, add_order, role, target):
        order = add_order(provider.id, customer.id, at(MON, 10), status=OrderStatus.pending)
        with pytest.raises(AuthorizationError):
            change_status(session, make_user(role), order.id, target)
        session.refresh(order)
        assert order.status == OrderStatus.pending

    def test_missing_order(self, session, provider):
        with pytest.raises(NotFoundError):
            change_status(session, provider, 12345, OrderStatus.accepted)

    def test_accepting_overlapping_pending_order_rejected(self, session, provider, customer, add_order):
        first = add_order(provider.id, customer.id, at(MON, 10), at(MON, 11), status=OrderStatus.pending)
        second = add_order(provider.id, customer.id, at(MON, 10, 30), at(MON, 11, 30), status=OrderStatus.pending)

        change_status(session, provider, first.id, OrderStatus.accepted)
        with pytest.raises(ConflictError):
            change_status(session, provider, second.id, OrderStatus.accepted)

        session.refresh(second)
        assert second.status == OrderStatus.pending
        accepted = session.exec(
            select(Order).where(Order.status == OrderStatus.accepted)
        ).all()
        assert [o.id for o in accepted] == [first.id]
