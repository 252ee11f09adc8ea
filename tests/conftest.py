# tests/conftest.py

from datetime import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from youneed.auth import hash_password, token_for
from youneed.db import get_session, init_db
from youneed.main import app
from youneed.models import OpeningHour, Order, OrderStatus, User, UserRole, WEEKDAYS

PASSWORD = "secret-pass-123"


@pytest.fixture(scope="session")
def password_hash():
    return hash_password(PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session, password_hash):
    counter = {"n": 0}

    def _make(role: UserRole, **fields) -> User:
        counter["n"] += 1
        user = User(
            email=fields.pop("email", f"{role.value}{counter['n']}@example.com"),
            password_hash=password_hash,
            role=role,
            first_name=fields.pop("first_name", role.value.title()),
            last_name=fields.pop("last_name", str(counter["n"])),
            **fields,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def provider(make_user):
    return make_user(UserRole.provider)


@pytest.fixture
def customer(make_user):
    return make_user(UserRole.client)


@pytest.fixture
def add_hours(session):
    def _add(provider_id: int, weekday: int, open_at: time, close_at: time, is_open: bool = True):
        row = OpeningHour(
            provider_id=provider_id,
            day_of_week=WEEKDAYS[weekday],
            is_open=is_open,
            open_time=open_at,
            close_time=close_at,
        )
        session.add(row)
        session.commit()
        return row

    return _add


@pytest.fixture
def add_order(session):
    def _add(provider_id, client_id, start_at, end_at=None, status=OrderStatus.accepted, title="Strzyżenie"):
        order = Order(
            provider_id=provider_id,
            client_id=client_id,
            title=title,
            start_at=start_at,
            end_at=end_at,
            status=status,
        )
        session.add(order)
        session.commit()
        session.refresh(order)
        return order

    return _add


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}
