"""Order and support chat threads with idempotent message append."""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from deligo.models import ChatMessage, ChatThread, Order, User
from deligo.models.enums import ChatChannel, ThreadKind
from deligo.services.errors import ConflictError, NotFoundError, UnauthorizedError
from deligo.services.order_service import get_order
from deligo.services.order_status import owns_restaurant
from deligo.utils.time import utcnow

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 140


def order_thread_id(order_id: str, channel: ChatChannel) -> str:
    return f"order:{order_id}:{channel.value}"


def support_thread_id(user_id: int) -> str:
    return f"support:{user_id}"


def can_access_order_channel(actor: User, order: Order, channel: ChatChannel) -> bool:
    if actor.role == "ADMIN":
        return True
    if actor.role == "CUSTOMER":
        return order.customer_id == actor.id
    if channel is ChatChannel.RESTAURANT_CUSTOMER:
        return owns_restaurant(actor, order)
    return actor.role == "DRIVER" and order.driver_id is not None and order.driver_id == actor.id


def can_access_thread(db: Session, actor: User, thread: ChatThread) -> bool:
    if actor.role == "ADMIN":
        return True
    if thread.kind == ThreadKind.SUPPORT.value:
        return thread.owner_user_id == actor.id
    order = db.get(Order, thread.order_id)
    return order is not None and can_access_order_channel(actor, order, ChatChannel(thread.channel))


def get_order_thread(db: Session, *, order_id: str, channel: ChatChannel, actor: User) -> ChatThread:
    """Return the order channel thread, creating it on first access."""
    order = get_order(db, order_id)
    if not can_access_order_channel(actor, order, channel):
        raise UnauthorizedError("You are not a participant of this conversation")

    thread_id = order_thread_id(order.id, channel)
    thread = db.get(ChatThread, thread_id)
    if thread is None:
        thread = ChatThread(id=thread_id, kind=ThreadKind.ORDER.value, order_id=order.id, channel=channel.value)
        db.add(thread)
        db.flush()
    return thread


def get_support_thread(db: Session, *, owner_user_id: int, actor: User) -> ChatThread:
    """Return the support thread between ``owner_user_id`` and the admins."""
    if actor.role != "ADMIN" and actor.id != owner_user_id:
        raise UnauthorizedError("You are not a participant of this conversation")

    thread_id = support_thread_id(owner_user_id)
    thread = db.get(ChatThread, thread_id)
    if thread is None:
        owner = db.get(User, owner_user_id)
        if owner is None:
            raise NotFoundError(f"User {owner_user_id} not found")
        thread = ChatThread(
            id=thread_id,
            kind=ThreadKind.SUPPORT.value,
            owner_user_id=owner.id,
            owner_name=owner.name,
            owner_role=owner.role,
        )
        db.add(thread)
        db.flush()
    return thread


def get_thread_for(db: Session, thread_id: str, actor: User) -> ChatThread:
    thread = db.get(ChatThread, thread_id)
    if thread is None or not can_access_thread(db, actor, thread):
        raise NotFoundError(f"Thread {thread_id} not found")
    return thread


def post_message(db: Session, *, thread: ChatThread, message_id: str, sender: User, body: str) -> ChatMessage:
    """Append a message; re-sending the same id returns the stored copy."""
    existing = db.scalar(select(ChatMessage).where(ChatMessage.id == message_id).limit(1))
    if existing is not None:
        if existing.thread_id == thread.id and existing.sender_id == sender.id:
            db.commit()
            return existing
        raise ConflictError(f"Message id {message_id} is already in use", retryable=False)

    now = utcnow()
    message = ChatMessage(
        id=message_id,
        thread_id=thread.id,
        sender_id=sender.id,
        sender_name=sender.name,
        sender_role=sender.role,
        body=body,
        is_read=False,
        created_at=now,
    )
    db.add(message)
    thread.last_message = body[:PREVIEW_LENGTH]
    thread.last_message_at = now
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f"Message id {message_id} was written concurrently") from exc
    db.refresh(message)
    logger.info("[CHAT] Message %s appended to %s by user_id=%s", message.id, thread.id, sender.id)
    return message


def list_messages(db: Session, thread: ChatThread) -> list[ChatMessage]:
    query = (
        select(ChatMessage)
        .where(ChatMessage.thread_id == thread.id)
        .order_by(ChatMessage.created_at.asc(), ChatMessage.seq.asc())
    )
    return list(db.scalars(query).all())


def mark_read(db: Session, thread: ChatThread, reader: User) -> int:
    """Mark messages from other participants as read; return how many changed."""
    result = db.execute(
        update(ChatMessage)
        .where(
            ChatMessage.thread_id == thread.id,
            ChatMessage.sender_id != reader.id,
            ChatMessage.is_read.is_(False),
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount or 0


def list_support_threads(db: Session, actor: User) -> list[tuple[ChatThread, int]]:
    """Admin inbox: support threads by latest activity with unread counts."""
    if actor.role != "ADMIN":
        raise UnauthorizedError("Only admins can list support threads")

    unread = (
        select(ChatMessage.thread_id, func.count(ChatMessage.seq).label("unread"))
        .where(ChatMessage.is_read.is_(False), ChatMessage.sender_role != "ADMIN")
        .group_by(ChatMessage.thread_id)
        .subquery()
    )
    query = (
        select(ChatThread, func.coalesce(unread.c.unread, 0))
        .outerjoin(unread, unread.c.thread_id == ChatThread.id)
        .where(ChatThread.kind == ThreadKind.SUPPORT.value)
        .order_by(ChatThread.last_message_at.desc().nulls_last(), ChatThread.created_at.desc())
    )
    return [(thread, int(count)) for thread, count in db.execute(query).all()]
