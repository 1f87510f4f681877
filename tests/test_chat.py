"""Chat thread tests: idempotent append, access rules, read flags and admin inbox."""

from types import SimpleNamespace

from fastapi.testclient import TestClient

CUSTOMER = "carla@example.com"
OWNER = "luigi@example.com"
DRIVER = "dino@example.com"
ADMIN = "admin@example.com"


def _order_id(client: TestClient, login, payload: dict) -> str:
    return client.post("/api/v1/orders", json=payload, headers=login(CUSTOMER)).json()["id"]


def test_order_channel_messages_in_order(client: TestClient, login, order_payload: dict) -> None:
    order_id = _order_id(client, login, order_payload)
    url = f"/api/v1/chat/orders/{order_id}/restaurant_customer/messages"

    first = client.post(url, json={"id": "m-1", "body": "Extra napkins please"}, headers=login(CUSTOMER))
    assert first.status_code == 201
    assert first.json()["thread_id"] == f"order:{order_id}:restaurant_customer"
    assert first.json()["sender_role"] == "CUSTOMER"
    second = client.post(url, json={"id": "m-2", "body": "Sure thing"}, headers=login(OWNER))
    assert second.status_code == 201

    messages = client.get(url, headers=login(CUSTOMER)).json()
    assert [message["id"] for message in messages] == ["m-1", "m-2"]
    assert [message["body"] for message in messages] == ["Extra napkins please", "Sure thing"]


def test_resending_same_message_is_idempotent(client: TestClient, login, order_payload: dict) -> None:
    order_id = _order_id(client, login, order_payload)
    url = f"/api/v1/chat/orders/{order_id}/restaurant_customer/messages"
    customer = login(CUSTOMER)

    first = client.post(url, json={"id": "dup-1", "body": "Hello"}, headers=customer)
    again = client.post(url, json={"id": "dup-1", "body": "Hello"}, headers=customer)
    assert again.status_code == 201
    assert again.json()["created_at"] == first.json()["created_at"]
    assert len(client.get(url, headers=customer).json()) == 1


def test_message_id_reused_by_other_sender_conflicts(client: TestClient, login, order_payload: dict) -> None:
    order_id = _order_id(client, login, order_payload)
    url = f"/api/v1/chat/orders/{order_id}/restaurant_customer/messages"
    client.post(url, json={"id": "taken", "body": "Hello"}, headers=login(CUSTOMER))

    response = client.post(url, json={"id": "taken", "body": "Hi"}, headers=login(OWNER))
    assert response.status_code == 409
    assert response.json()["code"] == "conflict"
    assert response.json()["retryable"] is False


def test_driver_channel_requires_assigned_driver(client: TestClient, login, order_payload: dict) -> None:
    order_id = _order_id(client, login, order_payload)
    url = f"/api/v1/chat/orders/{order_id}/driver_customer/messages"
    driver = login(DRIVER)

    before_claim = client.post(url, json={"id": "d-1", "body": "On my way"}, headers=driver)
    assert before_claim.status_code == 403

    client.post(f"/api/v1/drivers/me/orders/{order_id}/claim", headers=driver)
    after_claim = client.post(url, json={"id": "d-1", "body": "On my way"}, headers=driver)
    assert after_claim.status_code == 201

    restaurant_view = client.get(url, headers=login(OWNER))
    assert restaurant_view.status_code == 403
    assert client.get(url, headers=login(ADMIN)).status_code == 200


def test_mark_read_only_touches_other_senders(client: TestClient, login, order_payload: dict) -> None:
    order_id = _order_id(client, login, order_payload)
    url = f"/api/v1/chat/orders/{order_id}/restaurant_customer/messages"
    customer = login(CUSTOMER)
    owner = login(OWNER)
    client.post(url, json={"id": "c-1", "body": "Hi"}, headers=customer)
    client.post(url, json={"id": "o-1", "body": "Hello"}, headers=owner)
    client.post(url, json={"id": "o-2", "body": "Ready soon"}, headers=owner)

    thread_id = f"order:{order_id}:restaurant_customer"
    marked = client.post(f"/api/v1/chat/threads/{thread_id}/read", headers=customer)
    assert marked.status_code == 200
    assert marked.json() == {"thread_id": thread_id, "marked": 2}

    read_flags = {message["id"]: message["is_read"] for message in client.get(url, headers=customer).json()}
    assert read_flags == {"c-1": False, "o-1": True, "o-2": True}


def test_support_threads_listed_for_admin_with_unread_counts(
    client: TestClient, login, world: SimpleNamespace
) -> None:
    customer = login(CUSTOMER)
    driver = login(DRIVER)
    admin = login(ADMIN)

    client.post(f"/api/v1/chat/support/{world.customer_id}/messages", json={"id": "s-1", "body": "Help"}, headers=customer)
    client.post(
        f"/api/v1/chat/support/{world.customer_id}/messages", json={"id": "s-2", "body": "Anyone?"}, headers=customer
    )
    client.post(f"/api/v1/chat/support/{world.driver_id}/messages", json={"id": "s-3", "body": "App crash"}, headers=driver)
    reply = client.post(
        f"/api/v1/chat/support/{world.customer_id}/messages", json={"id": "s-4", "body": "Here"}, headers=admin
    )
    assert reply.status_code == 201

    threads = client.get("/api/v1/chat/support-threads", headers=admin).json()
    assert [thread["id"] for thread in threads] == [f"support:{world.customer_id}", f"support:{world.driver_id}"]
    assert [thread["unread_count"] for thread in threads] == [2, 1]
    assert threads[0]["last_message"] == "Here"
    assert threads[1]["owner_role"] == "DRIVER"

    assert client.get("/api/v1/chat/support-threads", headers=customer).status_code == 403


def test_support_thread_hidden_from_other_users(client: TestClient, login, world: SimpleNamespace) -> None:
    response = client.get(f"/api/v1/chat/support/{world.customer_id}/messages", headers=login("dave@example.com"))
    assert response.status_code == 403

    read = client.post(f"/api/v1/chat/threads/support:{world.customer_id}/read", headers=login("dave@example.com"))
    assert read.status_code == 404
