from __future__ import annotations

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models import ChatThread, FriendRequest, Friendship


def ordered_pair(user_a: int, user_b: int) -> tuple[int, int]:
    if user_a == user_b:
        raise ValueError("A user cannot pair with themselves")
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


def get_friendship(db: Session, user_a: int, user_b: int) -> Optional[Friendship]:
    if user_a == user_b:
        return None
    low, high = ordered_pair(user_a, user_b)
    return (
        db.query(Friendship)
        .filter(Friendship.user_low_id == low, Friendship.user_high_id == high)
        .first()
    )


def get_thread(db: Session, user_a: int, user_b: int) -> Optional[ChatThread]:
    if user_a == user_b:
        return None
    low, high = ordered_pair(user_a, user_b)
    return (
        db.query(ChatThread)
        .filter(ChatThread.user_low_id == low, ChatThread.user_high_id == high)
        .first()
    )


def create_friendship(db: Session, user_a: int, user_b: int) -> Friendship:
    """Stage the friendship row and its chat thread; the caller commits."""
    low, high = ordered_pair(user_a, user_b)
    friendship = Friendship(user_low_id=low, user_high_id=high)
    db.add(friendship)
    if get_thread(db, low, high) is None:
        db.add(ChatThread(user_low_id=low, user_high_id=high))
    return friendship


def friend_id_of(friendship, user_id: int) -> int:
    return friendship.user_high_id if friendship.user_low_id == user_id else friendship.user_low_id


def list_friendships(db: Session, user_id: int) -> list[Friendship]:
    return (
        db.query(Friendship)
        .filter(or_(Friendship.user_low_id == user_id, Friendship.user_high_id == user_id))
        .order_by(Friendship.created_at.asc(), Friendship.id.asc())
        .all()
    )


def pending_request(db: Session, sender_id: int, recipient_id: int) -> Optional[FriendRequest]:
    return (
        db.query(FriendRequest)
        .filter(
            FriendRequest.sender_id == sender_id,
            FriendRequest.recipient_id == recipient_id,
            FriendRequest.status == "pending",
        )
        .first()
    )
