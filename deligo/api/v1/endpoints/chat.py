"""Chat endpoints for order channels and admin support."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from deligo.core.security import get_current_user, require_role
from deligo.db.session import get_db
from deligo.models.enums import ChatChannel
from deligo.models.user import User
from deligo.schemas.chat import ChatMessageCreate, ChatMessageResponse, ChatThreadResponse, MarkReadResponse
from deligo.services import chat_service

router: APIRouter = APIRouter()


@router.get("/orders/{order_id}/{channel}/messages", response_model=list[ChatMessageResponse])
def list_order_messages(
    order_id: str,
    channel: ChatChannel,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[ChatMessageResponse]:
    thread = chat_service.get_order_thread(db, order_id=order_id, channel=channel, actor=current_user)
    messages = chat_service.list_messages(db, thread)
    db.commit()
    return [ChatMessageResponse.model_validate(message) for message in messages]


@router.post(
    "/orders/{order_id}/{channel}/messages",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def post_order_message(
    order_id: str,
    channel: ChatChannel,
    payload: ChatMessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ChatMessageResponse:
    thread = chat_service.get_order_thread(db, order_id=order_id, channel=channel, actor=current_user)
    message = chat_service.post_message(
        db, thread=thread, message_id=payload.id, sender=current_user, body=payload.body
    )
    return ChatMessageResponse.model_validate(message)


@router.get("/support/{user_id}/messages", response_model=list[ChatMessageResponse])
def list_support_messages(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[ChatMessageResponse]:
    thread = chat_service.get_support_thread(db, owner_user_id=user_id, actor=current_user)
    messages = chat_service.list_messages(db, thread)
    db.commit()
    return [ChatMessageResponse.model_validate(message) for message in messages]


@router.post("/support/{user_id}/messages", response_model=ChatMessageResponse, status_code=status.HTTP_201_CREATED)
def post_support_message(
    user_id: int,
    payload: ChatMessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ChatMessageResponse:
    thread = chat_service.get_support_thread(db, owner_user_id=user_id, actor=current_user)
    message = chat_service.post_message(
        db, thread=thread, message_id=payload.id, sender=current_user, body=payload.body
    )
    return ChatMessageResponse.model_validate(message)


@router.post("/threads/{thread_id}/read", response_model=MarkReadResponse)
def mark_thread_read(
    thread_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MarkReadResponse:
    thread = chat_service.get_thread_for(db, thread_id, current_user)
    return MarkReadResponse(thread_id=thread.id, marked=chat_service.mark_read(db, thread, current_user))


@router.get("/support-threads", response_model=list[ChatThreadResponse])
def list_support_threads(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role("ADMIN")),
) -> list[ChatThreadResponse]:
    threads = chat_service.list_support_threads(db, current_user)
    return [
        ChatThreadResponse.model_validate(thread).model_copy(update={"unread_count": unread})
        for thread, unread in threads
    ]
