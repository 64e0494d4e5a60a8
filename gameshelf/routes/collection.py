import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload, selectinload

from ..db import get_db
from ..models import CollectionEntry, Game, GameDetails, User
from ..schemas import GameDetailsEdit, GameDetailsIn
from .deps import HTTP_DUPLICATE, commit_or_raise, get_target_user
from .games import resolve_consoles, serialize_consoles, serialize_game_card

logger = logging.getLogger(__name__)

router = APIRouter()

_DETAIL_FIELDS = ("ownership", "included", "notes", "completion", "review", "spoiler", "price", "rating")


def join_condition(checkboxes: Optional[Union[List[str], str]]) -> Optional[str]:
    if checkboxes is None:
        return None
    if isinstance(checkboxes, str):
        return checkboxes.strip() or None
    flags = [flag.strip() for flag in checkboxes if flag and flag.strip()]
    return ", ".join(flags) or None


def split_condition(condition: Optional[str]) -> list[str]:
    if not condition:
        return []
    return [flag.strip() for flag in condition.split(",") if flag.strip()]


def _serialize_details(details: GameDetails) -> dict:
    return {
        "ownership": details.ownership,
        "included": details.included,
        "condition": split_condition(details.condition),
        "notes": details.notes,
        "price": details.price,
        "completion": details.completion,
        "rating": details.rating,
        "review": details.review,
        "spoiler": bool(details.spoiler),
    }


def _find_entry(db: Session, user_id: int, game_id: int) -> Optional[CollectionEntry]:
    return (
        db.query(CollectionEntry)
        .filter(CollectionEntry.user_id == user_id, CollectionEntry.game_id == game_id)
        .first()
    )


@router.get("/api/mycollection/{userId}")
def get_collection(
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    entries = (
        db.query(CollectionEntry)
        .options(joinedload(CollectionEntry.game), selectinload(CollectionEntry.consoles))
        .filter(CollectionEntry.user_id == user.id)
        .order_by(CollectionEntry.created_at.asc(), CollectionEntry.id.asc())
        .all()
    )
    return {"results": [serialize_game_card(entry.game, entry.consoles) for entry in entries]}


@router.get("/api/check-gamedetails/{userId}/{gameId}")
def check_game_details(
    gameId: int,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    entry = _find_entry(db, user.id, gameId)
    return {"hasDetails": bool(entry and entry.details_id is not None)}


@router.post("/api/add-game-details/{userId}/{gameId}")
def add_game_details(
    gameId: int,
    payload: GameDetailsIn,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    if not db.get(Game, gameId):
        raise HTTPException(status_code=404, detail="Game not found")
    if _find_entry(db, user.id, gameId):
        raise HTTPException(status_code=HTTP_DUPLICATE, detail="Game already in collection.")

    details = GameDetails(
        ownership=payload.ownership,
        included=payload.included,
        condition=join_condition(payload.checkboxes),
        notes=payload.notes,
        completion=payload.completion,
        review=payload.review,
        spoiler=payload.spoiler,
        price=payload.price,
        rating=payload.rating,
    )
    entry = CollectionEntry(user_id=user.id, game_id=gameId, details=details)
    entry.consoles = resolve_consoles(db, payload.consoleIds)
    db.add(entry)
    commit_or_raise(
        db,
        failure_detail="Error adding game details.",
        duplicate_detail="Game already in collection.",
    )
    logger.info("User id=%s added game id=%s to collection", user.id, gameId)
    return {"message": "Game details added successfully!"}


@router.get("/api/get-game-details/{userId}/{gameId}")
def get_game_details(
    gameId: int,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    entry = _find_entry(db, user.id, gameId)
    if not entry or entry.details is None:
        raise HTTPException(status_code=404, detail="Game details not found")
    game = entry.game
    return {
        "gameinfo": {
            "gameid": game.id,
            "name": game.name,
            "coverart": game.cover_art_url,
            "consoles": serialize_consoles(entry.consoles),
        },
        "gamedetails": _serialize_details(entry.details),
    }


@router.put("/api/edit-game-details/{userId}/{gameId}")
def edit_game_details(
    gameId: int,
    payload: GameDetailsEdit,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    entry = _find_entry(db, user.id, gameId)
    if not entry:
        raise HTTPException(status_code=404, detail="Game not found in the collection")
    details = entry.details
    if details is None:
        details = GameDetails()
        entry.details = details

    provided = payload.model_fields_set
    for field in _DETAIL_FIELDS:
        if field in provided:
            setattr(details, field, getattr(payload, field))
    if "checkboxes" in provided:
        details.condition = join_condition(payload.checkboxes)
    if payload.consoleIds is not None:
        entry.consoles = resolve_consoles(db, payload.consoleIds)

    commit_or_raise(db, failure_detail="Failed to update game details")
    return {"message": "Game details updated successfully"}


@router.delete("/api/removecollection/{userId}/{gameId}")
def remove_from_collection(
    gameId: int,
    user: User = Depends(get_target_user),
    db: Session = Depends(get_db),
):
    entry = _find_entry(db, user.id, gameId)
    if not entry:
        raise HTTPException(status_code=404, detail="Game not found in the collection")
    # delete-orphan on CollectionEntry.details removes the details row too.
    db.delete(entry)
    commit_or_raise(db, failure_detail="Error removing game from collection")
    logger.info("Removed game id=%s from collection of user id=%s", gameId, user.id)
    return {"message": "Game removed successfully"}
