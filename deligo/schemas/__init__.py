"""Schema exports."""

from deligo.schemas.auth import AuthUserResponse, LoginRequest, RegisterRequest, TokenResponse
from deligo.schemas.chat import ChatMessageCreate, ChatMessageResponse, ChatThreadResponse, MarkReadResponse
from deligo.schemas.driver import AvailabilityUpdate, ClaimRequest, DriverProfileResponse
from deligo.schemas.order import (
    LegacyImportResponse,
    OrderCreate,
    OrderItemPayload,
    OrderItemResponse,
    OrderResponse,
    OrderTransitionRequest,
)
from deligo.schemas.rating import RatingCreate, RatingResponse, RatingSummary
from deligo.schemas.restaurant import RestaurantCreate, RestaurantResponse

__all__ = [
    "AuthUserResponse",
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "ChatMessageCreate",
    "ChatMessageResponse",
    "ChatThreadResponse",
    "MarkReadResponse",
    "AvailabilityUpdate",
    "ClaimRequest",
    "DriverProfileResponse",
    "LegacyImportResponse",
    "OrderCreate",
    "OrderItemPayload",
    "OrderItemResponse",
    "OrderResponse",
    "OrderTransitionRequest",
    "RatingCreate",
    "RatingResponse",
    "RatingSummary",
    "RestaurantCreate",
    "RestaurantResponse",
]
