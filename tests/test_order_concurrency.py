"""Optimistic concurrency: two sessions racing on the same order or driver."""

from types import SimpleNamespace

import pytest
from sqlalchemy.orm import Session, sessionmaker

from deligo.models import DriverProfile, Order, User
from deligo.models.enums import OrderEvent, OrderStatus
from deligo.schemas.order import OrderCreate
from deligo.services.errors import ConflictError, InvalidTransitionError
from deligo.services.order_service import place_order, transition_order


def _place(session_factory: sessionmaker, world: SimpleNamespace, order_payload: dict) -> str:
    with session_factory() as session:
        customer = session.get(User, world.customer_id)
        return place_order(session, customer=customer, payload=OrderCreate(**order_payload)).id


def test_two_drivers_claiming_same_order_one_wins(
    session_factory: sessionmaker, world: SimpleNamespace, order_payload: dict
) -> None:
    order_id = _place(session_factory, world, order_payload)
    session_a: Session = session_factory()
    session_b: Session = session_factory()
    try:
        driver_a = session_a.get(User, world.driver_id)
        driver_b = session_b.get(User, world.second_driver_id)
        # Session A reads the order before B commits its claim.
        assert session_a.get(Order, order_id).version == 1

        transition_order(
            session_b,
            order_id=order_id,
            event=OrderEvent.ASSIGN_DRIVER,
            actor=driver_b,
            driver_user_id=driver_b.id,
        )
        with pytest.raises(ConflictError) as exc_info:
            transition_order(
                session_a,
                order_id=order_id,
                event=OrderEvent.ASSIGN_DRIVER,
                actor=driver_a,
                driver_user_id=driver_a.id,
            )
        assert exc_info.value.retryable is True
    finally:
        session_a.close()
        session_b.close()

    with session_factory() as session:
        order = session.get(Order, order_id)
        assert order.state is OrderStatus.ASSIGNED_DRIVER
        assert order.driver_id == world.second_driver_id
        assert order.version == 2
        loser = session.get(DriverProfile, world.driver_id)
        assert loser.current_order_id is None
        assert loser.is_available is True


def test_driver_cannot_hold_two_orders(
    session_factory: sessionmaker, world: SimpleNamespace, order_payload: dict
) -> None:
    first_id = _place(session_factory, world, order_payload)
    second_id = _place(session_factory, world, order_payload)
    session_a: Session = session_factory()
    session_b: Session = session_factory()
    try:
        admin = session_a.get(User, world.admin_id)
        # Session A sees the driver as free.
        assert session_a.get(DriverProfile, world.driver_id).current_order_id is None

        driver = session_b.get(User, world.driver_id)
        transition_order(
            session_b,
            order_id=first_id,
            event=OrderEvent.ASSIGN_DRIVER,
            actor=driver,
            driver_user_id=driver.id,
        )
        with pytest.raises(ConflictError):
            transition_order(
                session_a,
                order_id=second_id,
                event=OrderEvent.ASSIGN_DRIVER,
                actor=admin,
                driver_user_id=world.driver_id,
            )
    finally:
        session_a.close()
        session_b.close()

    with session_factory() as session:
        second = session.get(Order, second_id)
        assert second.state is OrderStatus.PENDING
        assert second.driver_id is None
        assert second.version == 1
        assert session.get(DriverProfile, world.driver_id).current_order_id == first_id


def test_busy_driver_is_rejected_without_race(
    session_factory: sessionmaker, world: SimpleNamespace, order_payload: dict
) -> None:
    first_id = _place(session_factory, world, order_payload)
    second_id = _place(session_factory, world, order_payload)

    with session_factory() as session:
        admin = session.get(User, world.admin_id)
        transition_order(
            session, order_id=first_id, event=OrderEvent.ASSIGN_DRIVER, actor=admin, driver_user_id=world.driver_id
        )
        with pytest.raises(InvalidTransitionError):
            transition_order(
                session,
                order_id=second_id,
                event=OrderEvent.ASSIGN_DRIVER,
                actor=admin,
                driver_user_id=world.driver_id,
            )
        assert session.get(Order, second_id).state is OrderStatus.PENDING


def test_driver_id_matches_driver_bound_states(
    session_factory: sessionmaker, world: SimpleNamespace, order_payload: dict
) -> None:
    order_id = _place(session_factory, world, order_payload)

    with session_factory() as session:
        driver = session.get(User, world.driver_id)
        steps = [
            OrderEvent.ASSIGN_DRIVER,
            OrderEvent.DRIVER_REJECT,
            OrderEvent.ASSIGN_DRIVER,
            OrderEvent.DRIVER_ACCEPT,
            OrderEvent.PICK_UP,
            OrderEvent.DELIVER,
        ]
        for event in steps:
            order = transition_order(
                session,
                order_id=order_id,
                event=event,
                actor=driver,
                driver_user_id=driver.id if event is OrderEvent.ASSIGN_DRIVER else None,
            )
            bound = order.state not in (OrderStatus.PENDING, OrderStatus.CANCELLED)
            assert (order.driver_id is not None) is bound
            assert order.total == order.subtotal + order.delivery_fee + order.tip

        assert order.state is OrderStatus.DELIVERED
        assert order.version == len(steps) + 1
