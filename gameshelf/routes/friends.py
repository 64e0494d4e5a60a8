import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import ChatThread, FriendRequest, User
from ..services.social import (
    create_friendship,
    friend_id_of,
    get_friendship,
    get_thread,
    list_friendships,
    pending_request,
)
from .deps import HTTP_DUPLICATE, commit_or_raise, get_target_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _serialize_user_brief(user: User) -> dict:
    return {
        "userid": user.id,
        "username": user.username,
        "avatar_url": user.avatar_url,
    }


def _serialize_request(request: FriendRequest) -> dict:
    return {
        "requestid": request.id,
        "sender": _serialize_user_brief(request.sender),
        "recipient": _serialize_user_brief(request.recipient),
        "status": request.status,
        "created_at": request.created_at,
    }


def _accept(db: Session, request: FriendRequest) -> None:
    request.status = "accepted"
    request.responded_at = datetime.utcnow()
    create_friendship(db, request.sender_id, request.recipient_id)


@router.post("/api/friend-requests/{userId}/{recipientId}", status_code=201)
def send_friend_request(
    recipientId: int,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    if recipientId == user.id:
        raise HTTPException(status_code=400, detail="Cannot send a friend request to yourself.")
    recipient = db.get(User, recipientId)
    if not recipient:
        raise HTTPException(status_code=404, detail="User not found")
    if get_friendship(db, user.id, recipientId):
        raise HTTPException(status_code=HTTP_DUPLICATE, detail="Already friends.")
    if pending_request(db, user.id, recipientId):
        raise HTTPException(status_code=HTTP_DUPLICATE, detail="Friend request already sent.")

    reverse = pending_request(db, recipientId, user.id)
    if reverse:
        # Both sides asked: treat it as acceptance of the earlier request.
        _accept(db, reverse)
        commit_or_raise(
            db,
            failure_detail="Error accepting friend request.",
            duplicate_detail="Already friends.",
        )
        logger.info("Friendship created between %s and %s", user.id, recipientId)
        db.refresh(reverse)
        return _serialize_request(reverse)

    request = FriendRequest(sender_id=user.id, recipient_id=recipientId)
    db.add(request)
    commit_or_raise(
        db,
        failure_detail="Error sending friend request.",
        duplicate_detail="Friend request already sent.",
    )
    db.refresh(request)
    return _serialize_request(request)


@router.get("/api/friend-requests/{userId}")
def list_friend_requests(
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    pending = (
        db.query(FriendRequest)
        .filter(FriendRequest.status == "pending")
        .filter((FriendRequest.sender_id == user.id) | (FriendRequest.recipient_id == user.id))
        .order_by(FriendRequest.created_at.asc(), FriendRequest.id.asc())
        .all()
    )
    return {
        "incoming": [_serialize_request(r) for r in pending if r.recipient_id == user.id],
        "outgoing": [_serialize_request(r) for r in pending if r.sender_id == user.id],
    }


def _incoming_pending(db: Session, request_id: int, user: User) -> FriendRequest:
    request = db.get(FriendRequest, request_id)
    if not request or request.recipient_id != user.id or request.status != "pending":
        raise HTTPException(status_code=404, detail="Friend request not found")
    return request


@router.post("/api/friend-requests/{userId}/{requestId}/accept")
def accept_friend_request(
    requestId: int,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    request = _incoming_pending(db, requestId, user)
    if get_friendship(db, request.sender_id, request.recipient_id):
        request.status = "accepted"
        request.responded_at = datetime.utcnow()
    else:
        _accept(db, request)
    commit_or_raise(
        db,
        failure_detail="Error accepting friend request.",
        duplicate_detail="Already friends.",
    )
    logger.info("Friendship created between %s and %s", request.sender_id, request.recipient_id)
    return {"message": "Friend request accepted", "friend": _serialize_user_brief(request.sender)}


@router.post("/api/friend-requests/{userId}/{requestId}/decline")
def decline_friend_request(
    requestId: int,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    request = _incoming_pending(db, requestId, user)
    request.status = "declined"
    request.responded_at = datetime.utcnow()
    commit_or_raise(db, failure_detail="Error declining friend request.")
    return {"message": "Friend request declined"}


@router.get("/api/friends/{userId}")
def list_friends(
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    results = []
    for friendship in list_friendships(db, user.id):
        friend = db.get(User, friend_id_of(friendship, user.id))
        results.append({**_serialize_user_brief(friend), "since": friendship.created_at})
    return {"results": results}


@router.delete("/api/friends/{userId}/{friendId}")
def remove_friend(
    friendId: int,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    friendship = get_friendship(db, user.id, friendId)
    if not friendship:
        raise HTTPException(status_code=404, detail="Not friends")
    thread: ChatThread = get_thread(db, user.id, friendId)
    if thread is not None:
        db.delete(thread)
    db.delete(friendship)
    commit_or_raise(db, failure_detail="Error removing friend.")
    logger.info("Friendship removed between %s and %s", user.id, friendId)
    return {"message": "Friend removed"}
