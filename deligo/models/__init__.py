"""Application models package."""

from deligo.models.audit_log import AuditLog
from deligo.models.chat import ChatMessage, ChatThread
from deligo.models.driver import DriverProfile
from deligo.models.enums import ChatChannel, DeliveryOption, OrderEvent, OrderStatus, RatingTarget, ThreadKind
from deligo.models.order import Order, OrderItem
from deligo.models.rating import Rating
from deligo.models.restaurant import Restaurant
from deligo.models.user import User

__all__ = [
    "AuditLog", "ChatMessage", "ChatThread", "DriverProfile", "Order", "OrderItem", "Rating", "Restaurant", "User",
    "ChatChannel", "DeliveryOption", "OrderEvent", "OrderStatus", "RatingTarget", "ThreadKind",
]
