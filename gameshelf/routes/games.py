import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Console, Game, User
from ..schemas import ConsoleOut
from ..services.search import search_games, search_key
from ..services.storage import StorageError, get_storage_client, store_image
from .deps import commit_or_raise, get_current_user, read_upload

logger = logging.getLogger(__name__)

router = APIRouter()


def serialize_consoles(consoles) -> list[dict]:
    return [ConsoleOut.model_validate(console).model_dump() for console in consoles]


def serialize_game_card(game: Game, consoles=None) -> dict:
    """Shape shared by search, wishlist and collection listings."""
    return {
        "GameId": game.id,
        "Name": game.name,
        "CoverArt": game.cover_art_url,
        "Consoles": serialize_consoles(game.consoles if consoles is None else consoles),
    }


def resolve_consoles(db: Session, console_ids: List[int]) -> list[Console]:
    """Load consoles by id, rejecting unknown ids with a 400."""
    wanted = list(dict.fromkeys(console_ids))
    if not wanted:
        return []
    consoles = db.query(Console).filter(Console.id.in_(wanted)).all()
    found = {console.id for console in consoles}
    missing = [console_id for console_id in wanted if console_id not in found]
    if missing:
        raise HTTPException(status_code=400, detail=f"Unknown console ids: {missing}")
    return consoles


def _parse_console_ids(raw: Optional[str]) -> List[int]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Consoles must be a JSON array.") from exc
    if not isinstance(value, list) or not all(
        isinstance(item, int) and not isinstance(item, bool) for item in value
    ):
        raise HTTPException(status_code=400, detail="Consoles must be a JSON array of ids.")
    return value


@router.get("/api/consoles", response_model=List[ConsoleOut])
def list_consoles(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return db.query(Console).order_by(Console.name.asc()).all()


@router.post("/add-game-to-database")
def add_game_to_database(
    Name: str = Form(..., min_length=1, max_length=200),
    Consoles: Optional[str] = Form(None),
    CoverArt: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    name = Name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required.")
    if CoverArt is None:
        raise HTTPException(status_code=400, detail="CoverArt is required.")
    consoles = resolve_consoles(db, _parse_console_ids(Consoles))

    content = read_upload(CoverArt)
    try:
        cover_url = store_image(
            get_storage_client(),
            "covers",
            current_user.id,
            CoverArt.filename,
            content,
            CoverArt.content_type,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StorageError as exc:
        logger.exception("Cover art upload failed for %r", name)
        raise HTTPException(status_code=500, detail="Error adding game.") from exc

    game = Game(name=name, search_name=search_key(name), cover_art_url=cover_url)
    game.consoles = consoles
    db.add(game)
    commit_or_raise(db, failure_detail="Error adding game.")
    db.refresh(game)
    logger.info("Added game %r (id=%s) by user id=%s", game.name, game.id, current_user.id)
    return {"message": "Game added successfully.", "gameid": game.id}


@router.get("/api/search")
def search(
    q: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Search query is required.")
    games = search_games(db, q, limit=limit)
    return {"results": [serialize_game_card(game) for game in games]}


@router.get("/api/game-info/{gameId}")
def get_game_info(
    gameId: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    game = db.get(Game, gameId)
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")
    return {
        "gameDetails": {
            "gameid": game.id,
            "name": game.name,
            "coverart": game.cover_art_url,
            "consoles": serialize_consoles(game.consoles),
        }
    }
