# tests/conftest.py

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session

from barberqueue import core
from barberqueue.db import make_engine, get_session
from barberqueue.main import app
from barberqueue.models import User, Profile, Shop

PASSWORD = "correct-horse"


class FrozenClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def tick(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def clock(monkeypatch):
    frozen = FrozenClock(datetime(2025, 8, 4, 9, 0))
    monkeypatch.setattr(core, "utcnow", frozen)
    return frozen


@pytest.fixture
def make_user(session):
    def _make(email, role="customer", name="", phone=""):
        user = User(email=email, password_hash="not-a-real-hash")
        session.add(user)
        session.flush()
        session.add(Profile(user_id=user.id, role=role, name=name, phone=phone))
        session.commit()
        session.refresh(user)
        return user
    return _make


@pytest.fixture
def make_shop(session, make_user):
    counter = {"n": 0}

    def _make(owner=None, **fields):
        if owner is None:
            counter["n"] += 1
            owner = make_user(f"barber{counter['n']}@shop.test", role="barber")
        fields.setdefault("shop_name", "Fade Factory")
        fields.setdefault("shop_address", "1 Main St")
        shop = Shop(user_id=owner.id, shop_name=fields.pop("shop_name"), shop_address=fields.pop("shop_address"))
        for key, value in fields.items():
            setattr(shop, key, value)
        session.add(shop)
        session.commit()
        session.refresh(shop)
        return shop
    return _make


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register through the API and return bearer headers."""
    def _signup(email, role=None, name="", phone=""):
        body = {"email": email, "password": PASSWORD, "name": name, "phone": phone}
        if role is not None:
            body["role"] = role
        response = client.post("/users", json=body)
        assert response.status_code == 201, response.text
        return login(client, email)
    return _signup


def login(client, email, password=PASSWORD):
    response = client.post("/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
