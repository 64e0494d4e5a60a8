import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload, selectinload

from ..db import get_db
from ..models import Game, User, WishlistEntry
from ..schemas import WishlistAdd
from .deps import HTTP_DUPLICATE, commit_or_raise, get_target_user
from .games import resolve_consoles, serialize_game_card

logger = logging.getLogger(__name__)

router = APIRouter()


def _find_entry(db: Session, user_id: int, game_id: int):
    return (
        db.query(WishlistEntry)
        .filter(WishlistEntry.user_id == user_id, WishlistEntry.game_id == game_id)
        .first()
    )


@router.post("/api/add-to-wishlist/{userId}/{gameId}")
def add_to_wishlist(
    gameId: int,
    payload: Optional[WishlistAdd] = None,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    if not db.get(Game, gameId):
        raise HTTPException(status_code=404, detail="Game not found")
    if _find_entry(db, user.id, gameId):
        raise HTTPException(status_code=HTTP_DUPLICATE, detail="Game already in wishlist.")

    entry = WishlistEntry(user_id=user.id, game_id=gameId)
    entry.consoles = resolve_consoles(db, payload.consoleIds if payload else [])
    db.add(entry)
    commit_or_raise(
        db,
        failure_detail="Could not add to wishlist.",
        duplicate_detail="Game already in wishlist.",
    )
    return {"message": "Added to wishlist."}


@router.get("/api/mywishlist/{userId}")
def get_wishlist(
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    entries = (
        db.query(WishlistEntry)
        .options(joinedload(WishlistEntry.game), selectinload(WishlistEntry.consoles))
        .filter(WishlistEntry.user_id == user.id)
        .order_by(WishlistEntry.created_at.asc(), WishlistEntry.id.asc())
        .all()
    )
    return {"results": [serialize_game_card(entry.game, entry.consoles) for entry in entries]}


@router.delete("/api/removewishlist/{userId}/{gameId}")
def remove_from_wishlist(
    gameId: int,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    entry = _find_entry(db, user.id, gameId)
    if not entry:
        raise HTTPException(status_code=404, detail="Game not found in the wishlist")
    db.delete(entry)
    commit_or_raise(db, failure_detail="Error removing game from wishlist")
    logger.info("Removed game id=%s from wishlist of user id=%s", gameId, user.id)
    return {"message": "Game removed successfully"}
