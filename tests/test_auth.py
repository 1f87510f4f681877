"""Authentication API tests."""

from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import Session

from deligo.core.config import settings
from deligo.models import DriverProfile, Restaurant, User


def test_register_login_and_me(client: TestClient) -> None:
    register_response = client.post(
        "/api/v1/auth/register",
        json={"email": "new-customer@example.com", "password": "secret123", "role": "customer"},
    )
    assert register_response.status_code == 201
    assert register_response.json()["role"] == "CUSTOMER"

    login_response = client.post(
        "/api/v1/auth/login",
        json={"email": "new-customer@example.com", "password": "secret123"},
    )
    assert login_response.status_code == 200
    token = login_response.json()["access_token"]

    me_response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me_response.status_code == 200
    assert me_response.json()["email"] == "new-customer@example.com"


def test_login_rejects_wrong_password(client: TestClient) -> None:
    client.post(
        "/api/v1/auth/register",
        json={"email": "someone@example.com", "password": "secret123", "role": "customer"},
    )
    response = client.post("/api/v1/auth/login", json={"email": "someone@example.com", "password": "nope"})
    assert response.status_code == 401


def test_me_requires_valid_token(client: TestClient) -> None:
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_register_duplicate_email_rejected(client: TestClient) -> None:
    payload = {"email": "dup@example.com", "password": "secret123", "role": "customer"}
    assert client.post("/api/v1/auth/register", json=payload).status_code == 201
    assert client.post("/api/v1/auth/register", json=payload).status_code == 400


def test_register_unknown_role_rejected(client: TestClient) -> None:
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "manager@example.com", "password": "secret123", "role": "manager"},
    )
    assert response.status_code == 400
    assert "Invalid role" in response.json()["detail"]


def test_register_driver_creates_available_profile(client: TestClient, db: Session) -> None:
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "new-driver@example.com",
            "password": "secret123",
            "role": "driver",
            "display_name": "Nina",
            "phone": "555-0101",
        },
    )
    assert response.status_code == 201

    profile = db.get(DriverProfile, response.json()["id"])
    assert profile is not None
    assert profile.name == "Nina"
    assert profile.is_available is True
    assert profile.current_order_id is None


def test_register_restaurant_requires_existing_restaurant(client: TestClient, db: Session) -> None:
    missing = client.post(
        "/api/v1/auth/register",
        json={"email": "owner@example.com", "password": "secret123", "role": "restaurant"},
    )
    assert missing.status_code == 400

    restaurant = Restaurant(name="Taqueria", is_active=True)
    db.add(restaurant)
    db.commit()

    created = client.post(
        "/api/v1/auth/register",
        json={
            "email": "owner@example.com",
            "password": "secret123",
            "role": "restaurant",
            "restaurant_id": restaurant.id,
        },
    )
    assert created.status_code == 201
    assert created.json()["restaurant_id"] == restaurant.id


def test_token_carries_role_and_issuer(client: TestClient, login, world) -> None:
    token = login("dino@example.com")["Authorization"].removeprefix("Bearer ")
    claims = jwt.get_unverified_claims(token)

    assert claims["sub"] == str(world.driver_id)
    assert claims["role"] == "DRIVER"
    assert claims["iss"] == settings.jwt_issuer


def test_role_change_ends_existing_session(client: TestClient, login, world, db: Session) -> None:
    headers = login("dave@example.com")
    user = db.get(User, world.other_customer_id)
    user.role = "ADMIN"
    db.commit()

    response = client.get("/api/v1/auth/me", headers=headers)
    assert response.status_code == 401
    assert "sign in again" in response.json()["detail"]


def test_token_from_another_issuer_is_rejected(client: TestClient, world) -> None:
    token = jwt.encode(
        {"sub": str(world.customer_id), "role": "CUSTOMER", "iss": "someone-else"},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
