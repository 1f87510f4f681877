"""Shared fixtures: temporary SQLite databases, seeded accounts and a recording notifier."""

from collections.abc import Callable, Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from deligo.core.security import get_password_hash
from deligo.db import session as db_session
from deligo.db.base import Base
from deligo.main import app
from deligo.models import Restaurant
from deligo.services.notification_service import NotificationSender, get_notification_sender
from deligo.services.user_service import create_user

PASSWORD = "secret123"


class RecordingSender(NotificationSender):
    """Collects notifications instead of delivering them."""

    def __init__(self) -> None:
        self.sent: list[tuple[int, str, dict[str, str]]] = []

    def send(self, user_id: int, title: str, body: str, payload: dict[str, str]) -> None:
        self.sent.append((user_id, title, payload))

    def types_for(self, user_id: int) -> list[str]:
        return [payload["type"] for recipient, _, payload in self.sent if recipient == user_id]


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'deligo_test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[Session]:
    session: Session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def world(session_factory: sessionmaker) -> SimpleNamespace:
    """Two restaurants with owners, a customer, two drivers and an admin."""
    hashed = get_password_hash(PASSWORD)
    with session_factory() as session:
        luigis = Restaurant(name="Luigi's", is_active=True)
        sushi = Restaurant(name="Sushi Bar", is_active=True)
        session.add_all([luigis, sushi])
        session.commit()

        owner = create_user(session, "luigi", hashed, "restaurant", email="luigi@example.com", restaurant_id=luigis.id)
        other_owner = create_user(session, "sushi", hashed, "restaurant", email="sushi@example.com", restaurant_id=sushi.id)
        customer = create_user(session, "carla", hashed, "customer", email="carla@example.com", display_name="Carla")
        other_customer = create_user(session, "dave", hashed, "customer", email="dave@example.com")
        driver = create_user(session, "dino", hashed, "driver", email="dino@example.com", display_name="Dino")
        second_driver = create_user(session, "dora", hashed, "driver", email="dora@example.com", display_name="Dora")
        admin = create_user(session, "root", hashed, "admin", email="admin@example.com")

        luigis.owner_user_id = owner.id
        sushi.owner_user_id = other_owner.id
        session.commit()

        return SimpleNamespace(
            restaurant_id=luigis.id,
            other_restaurant_id=sushi.id,
            owner_id=owner.id,
            other_owner_id=other_owner.id,
            customer_id=customer.id,
            other_customer_id=other_customer.id,
            driver_id=driver.id,
            second_driver_id=second_driver.id,
            admin_id=admin.id,
        )


@pytest.fixture
def order_payload(world: SimpleNamespace) -> dict:
    """Order whose subtotal is 35.27: 2 x (12.50 + 0.75) plus 8.77."""
    return {
        "restaurant_id": world.restaurant_id,
        "items": [
            {
                "menu_item_id": "burger",
                "name": "Burger",
                "quantity": 2,
                "unit_price": "12.50",
                "customizations": [
                    {
                        "option_id": "extras",
                        "option_name": "Extras",
                        "selected_items": [{"id": "cheese", "name": "Cheese", "price": "0.75"}],
                    }
                ],
            },
            {"menu_item_id": "fries", "name": "Fries", "quantity": 1, "unit_price": "8.77"},
        ],
        "delivery_option": "delivery",
        "delivery_address": {
            "street": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "postal_code": "62701",
        },
        "payment_method": "card",
        "delivery_fee": "5.00",
        "tip": "1.00",
    }


@pytest.fixture
def notifications() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def client(
    engine: Engine,
    session_factory: sessionmaker,
    notifications: RecordingSender,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[TestClient]:
    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", session_factory)
    app.dependency_overrides[get_notification_sender] = lambda: notifications
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def login(client: TestClient, world: SimpleNamespace) -> Callable[[str], dict[str, str]]:
    """Return a helper that logs in by email and builds the bearer header."""

    def _login(email: str) -> dict[str, str]:
        response = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login
