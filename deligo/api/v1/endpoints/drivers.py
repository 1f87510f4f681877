"""Driver pool endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from deligo.api.v1.endpoints.orders import serialize_order
from deligo.core.security import require_role
from deligo.db.session import get_db
from deligo.models.user import User
from deligo.schemas.driver import AvailabilityUpdate, ClaimRequest, DriverEarningsResponse, DriverProfileResponse
from deligo.schemas.order import OrderResponse
from deligo.services import driver_pool
from deligo.services.notification_service import NotificationSender, get_notification_sender

router: APIRouter = APIRouter()
require_driver = require_role("DRIVER")


@router.get("/me", response_model=DriverProfileResponse)
def read_profile(db: Session = Depends(get_db), current_user: User = Depends(require_driver)) -> DriverProfileResponse:
    return DriverProfileResponse.model_validate(driver_pool.get_driver_profile(db, current_user))


@router.get("/me/available-orders", response_model=list[OrderResponse])
def available_orders(db: Session = Depends(get_db), current_user: User = Depends(require_driver)) -> list[OrderResponse]:
    return [serialize_order(order) for order in driver_pool.available_orders(db, current_user)]


@router.get("/me/orders", response_model=list[OrderResponse])
def my_orders(
    active_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_driver),
) -> list[OrderResponse]:
    return [serialize_order(order) for order in driver_pool.my_orders(db, current_user, active_only=active_only)]


@router.post("/me/orders/{order_id}/claim", response_model=OrderResponse)
def claim_order(
    order_id: str,
    payload: ClaimRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_driver),
    notifier: NotificationSender = Depends(get_notification_sender),
) -> OrderResponse:
    order = driver_pool.claim_order(
        db,
        order_id=order_id,
        actor=current_user,
        expected_version=payload.expected_version if payload else None,
        notifier=notifier,
    )
    return serialize_order(order)


@router.put("/me/availability", response_model=DriverProfileResponse)
def update_availability(
    payload: AvailabilityUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_driver),
) -> DriverProfileResponse:
    return DriverProfileResponse.model_validate(driver_pool.set_availability(db, current_user, payload.is_available))


@router.get("/me/earnings", response_model=DriverEarningsResponse)
def read_earnings(
    since: datetime | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_driver),
) -> DriverEarningsResponse:
    return driver_pool.earnings(db, current_user, since=since)
