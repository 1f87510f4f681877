"""Canonical enumerations shared by models, schemas and services."""

import enum


class OrderStatus(str, enum.Enum):
    """Single canonical order state."""

    PENDING = "pending"
    ASSIGNED_DRIVER = "assigned_driver"
    DRIVER_ACCEPTED = "driver_accepted"
    PICKED_UP = "picked_up"
    DELIVERING = "delivering"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderEvent(str, enum.Enum):
    """Events that move an order between states."""

    ASSIGN_DRIVER = "assign_driver"
    DRIVER_ACCEPT = "driver_accept"
    DRIVER_REJECT = "driver_reject"
    PICK_UP = "pick_up"
    START_DELIVERY = "start_delivery"
    DELIVER = "deliver"
    CANCEL = "cancel"


class DeliveryOption(str, enum.Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


class RatingTarget(str, enum.Enum):
    RESTAURANT = "restaurant"
    DRIVER = "driver"


class ChatChannel(str, enum.Enum):
    RESTAURANT_CUSTOMER = "restaurant_customer"
    DRIVER_CUSTOMER = "driver_customer"


class ThreadKind(str, enum.Enum):
    ORDER = "order"
    SUPPORT = "support"
