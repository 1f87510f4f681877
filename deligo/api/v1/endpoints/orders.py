"""Order endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from deligo.core.security import get_current_user
from deligo.db.session import get_db
from deligo.models.enums import OrderStatus
from deligo.models.order import Order
from deligo.models.user import User
from deligo.schemas.order import OrderCreate, OrderResponse, OrderTransitionRequest
from deligo.services.notification_service import NotificationSender, get_notification_sender
from deligo.services.order_service import get_order_for, list_orders_for, place_order, transition_order
from deligo.services.order_status import allowed_events

router: APIRouter = APIRouter()


def serialize_order(order: Order) -> OrderResponse:
    response = OrderResponse.model_validate(order)
    response.allowed_events = sorted(allowed_events(order.state), key=lambda event: event.value)
    return response


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderResponse:
    """Place a new order; it starts as ``pending``."""
    return serialize_order(place_order(db, customer=current_user, payload=payload))


@router.get("", response_model=list[OrderResponse])
def list_orders(
    status_filter: OrderStatus | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[OrderResponse]:
    return [serialize_order(order) for order in list_orders_for(db, current_user, status_filter)]


@router.get("/{order_id}", response_model=OrderResponse)
def read_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderResponse:
    return serialize_order(get_order_for(db, order_id, current_user))


@router.post("/{order_id}/transitions", response_model=OrderResponse)
def apply_transition(
    order_id: str,
    payload: OrderTransitionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: NotificationSender = Depends(get_notification_sender),
) -> OrderResponse:
    """Apply a lifecycle event such as ``driver_accept`` or ``cancel``."""
    get_order_for(db, order_id, current_user)
    order = transition_order(
        db,
        order_id=order_id,
        event=payload.event,
        actor=current_user,
        driver_user_id=payload.driver_id,
        expected_version=payload.expected_version,
        notifier=notifier,
    )
    return serialize_order(order)
