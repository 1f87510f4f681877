"""Chat schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ChatMessageCreate(BaseModel):
    """New message; ``id`` is generated by the client and makes re-sends idempotent."""

    id: str = Field(min_length=1, max_length=64)
    body: str = Field(min_length=1, max_length=4000)


class ChatMessageResponse(BaseModel):
    id: str
    thread_id: str
    sender_id: int
    sender_name: str
    sender_role: str
    body: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatThreadResponse(BaseModel):
    id: str
    kind: str
    order_id: str | None = None
    channel: str | None = None
    owner_user_id: int | None = None
    owner_name: str | None = None
    owner_role: str | None = None
    last_message: str | None = None
    last_message_at: datetime | None = None
    unread_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class MarkReadResponse(BaseModel):
    thread_id: str
    marked: int
