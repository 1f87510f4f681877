"""Order API schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from deligo.models.enums import DeliveryOption, OrderEvent, OrderStatus


class SelectedItem(BaseModel):
    id: str
    name: str
    price: Decimal = Field(default=Decimal("0.00"), ge=0)


class CustomizationSelection(BaseModel):
    """One customization option with the choices the customer picked."""

    option_id: str
    option_name: str
    selected_items: list[SelectedItem] = []


class DeliveryAddress(BaseModel):
    street: str
    unit: str | None = None
    city: str
    state: str
    postal_code: str
    instructions: str | None = None


class OrderItemPayload(BaseModel):
    """Single order line as placed by the customer."""

    menu_item_id: str
    name: str
    quantity: int = Field(default=1, ge=1)
    unit_price: Decimal = Field(ge=0)
    customizations: list[CustomizationSelection] = []
    special_instructions: str | None = None


class OrderCreate(BaseModel):
    """Place a new order."""

    restaurant_id: int
    items: list[OrderItemPayload] = Field(min_length=1)
    delivery_option: DeliveryOption = DeliveryOption.DELIVERY
    delivery_address: DeliveryAddress | None = None
    payment_method: str
    delivery_fee: Decimal | None = Field(default=None, ge=0)
    tip: Decimal = Field(default=Decimal("0.00"), ge=0)
    notes: str | None = None

    @model_validator(mode="after")
    def _address_required_for_delivery(self) -> "OrderCreate":
        if self.delivery_option is DeliveryOption.DELIVERY and self.delivery_address is None:
            raise ValueError("delivery_address is required for delivery orders")
        return self


class OrderTransitionRequest(BaseModel):
    """Request to apply a lifecycle event to an order."""

    event: OrderEvent
    driver_id: int | None = None
    expected_version: int | None = None


class OrderItemResponse(BaseModel):
    menu_item_id: str
    name: str
    quantity: int
    unit_price: Decimal
    customizations: list[CustomizationSelection] | None = None
    special_instructions: str | None = None
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    """Serialized order."""

    id: str
    restaurant_id: int
    customer_id: int
    driver_id: int | None
    driver_name: str | None
    status: OrderStatus
    version: int
    items: list[OrderItemResponse]
    subtotal: Decimal
    delivery_fee: Decimal
    tip: Decimal
    total: Decimal
    delivery_option: DeliveryOption
    delivery_address: DeliveryAddress | None
    payment_method: str
    notes: str | None
    created_at: datetime
    updated_at: datetime
    assigned_at: datetime | None = None
    accepted_at: datetime | None = None
    picked_up_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    allowed_events: list[OrderEvent] = []

    model_config = ConfigDict(from_attributes=True)


class LegacyImportResponse(BaseModel):
    """Outcome of a legacy document import."""

    imported: list[str]
    skipped: dict[str, str]
