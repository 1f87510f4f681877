"""Driver pool schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class DriverProfileResponse(BaseModel):
    user_id: int
    name: str
    phone: str | None
    is_available: bool
    current_order_id: str | None
    rejected_orders_count: int
    total_deliveries: int

    model_config = ConfigDict(from_attributes=True)


class AvailabilityUpdate(BaseModel):
    is_available: bool


class ClaimRequest(BaseModel):
    expected_version: int | None = None


class DeliveryEarning(BaseModel):
    order_id: str
    delivered_at: datetime | None
    delivery_fee: Decimal
    tip: Decimal
    total: Decimal


class DriverEarningsResponse(BaseModel):
    """Delivery fees and tips over the driver's delivered orders."""

    delivery_count: int
    delivery_fees: Decimal
    tips: Decimal
    total: Decimal
    deliveries: list[DeliveryEarning]
