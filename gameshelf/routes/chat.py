import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import ChatMessage, ChatThread, User
from ..schemas import ChatMessageIn, ChatMessageOut
from ..services.social import friend_id_of, get_friendship, get_thread, ordered_pair
from ..services.text import strip_html
from .deps import commit_or_raise, get_target_user

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_MESSAGE_LENGTH = 2000


def _thread_with_friend(db: Session, user: User, friend_id: int) -> ChatThread:
    if friend_id == user.id or not get_friendship(db, user.id, friend_id):
        raise HTTPException(status_code=403, detail="You can only chat with friends")
    thread = get_thread(db, user.id, friend_id)
    if thread is None:
        # Friendships created before chat threads existed get one lazily.
        low, high = ordered_pair(user.id, friend_id)
        db.add(ChatThread(user_low_id=low, user_high_id=high))
        try:
            db.commit()
        except IntegrityError:
            # A concurrent request opened the same thread first.
            db.rollback()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Error opening chat between %s and %s", low, high)
            raise HTTPException(status_code=500, detail="Error opening chat") from exc
        thread = get_thread(db, user.id, friend_id)
    return thread


@router.get("/api/chats/{userId}")
def list_chats(
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    threads = (
        db.query(ChatThread)
        .filter((ChatThread.user_low_id == user.id) | (ChatThread.user_high_id == user.id))
        .all()
    )
    results = []
    for thread in threads:
        friend = db.get(User, friend_id_of(thread, user.id))
        last = (
            db.query(ChatMessage)
            .filter(ChatMessage.thread_id == thread.id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .first()
        )
        results.append(
            {
                "threadid": thread.id,
                "friend": {
                    "userid": friend.id,
                    "username": friend.username,
                    "avatar_url": friend.avatar_url,
                },
                "last_message": ChatMessageOut.model_validate(last).model_dump() if last else None,
            }
        )
    results.sort(
        key=lambda item: (item["last_message"] or {}).get("created_at") or datetime.min,
        reverse=True,
    )
    return {"results": results}


@router.get("/api/chats/{userId}/{friendId}/messages")
def list_messages(
    friendId: int,
    after: Optional[int] = Query(None, ge=0),
    limit: int = Query(100, ge=1, le=500),
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    thread = _thread_with_friend(db, user, friendId)
    query = db.query(ChatMessage).filter(ChatMessage.thread_id == thread.id)
    if after is not None:
        query = query.filter(ChatMessage.id > after)
    messages = query.order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc()).limit(limit).all()
    return {
        "threadid": thread.id,
        "results": [ChatMessageOut.model_validate(message).model_dump() for message in messages],
    }


@router.post("/api/chats/{userId}/{friendId}/messages", status_code=201)
def send_message(
    friendId: int,
    payload: ChatMessageIn,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    thread = _thread_with_friend(db, user, friendId)
    text = strip_html(payload.text)
    if not text:
        raise HTTPException(status_code=400, detail="Message is empty")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise HTTPException(status_code=400, detail="Message is too long")
    message = ChatMessage(thread_id=thread.id, sender_id=user.id, text=text)
    db.add(message)
    commit_or_raise(db, failure_detail="Error sending message")
    db.refresh(message)
    return ChatMessageOut.model_validate(message).model_dump()
