from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import CollectionEntry, Game, GameDetails, User, WishlistEntry

logger = logging.getLogger(__name__)


def serialize_game_summary(game: Game) -> dict[str, Any]:
    return {
        "gameid": game.id,
        "name": game.name,
        "coverart": game.cover_art_url,
    }


def _count(db: Session, column) -> dict[str, int]:
    return {"count": int(db.query(func.count(column)).scalar() or 0)}


def _most_common_game(db: Session, entry_model) -> dict[str, Any]:
    entry_count = func.count(entry_model.id)
    row = (
        db.query(entry_model.game_id, entry_count.label("count"))
        .group_by(entry_model.game_id)
        .order_by(entry_count.desc(), entry_model.game_id.asc())
        .first()
    )
    if row is None:
        return {"count": 0}
    game = db.get(Game, row.game_id)
    return {**serialize_game_summary(game), "count": int(row.count)}


def highest_reviewed_game(db: Session) -> dict[str, Any]:
    row = (
        db.query(Game, GameDetails.rating)
        .join(CollectionEntry, CollectionEntry.game_id == Game.id)
        .join(GameDetails, GameDetails.id == CollectionEntry.details_id)
        .filter(GameDetails.rating.isnot(None))
        .order_by(GameDetails.rating.desc(), Game.id.asc())
        .first()
    )
    if row is None:
        return {"name": "N/A", "rating": "N/A"}
    game, rating = row
    return {**serialize_game_summary(game), "rating": rating}


_REPORTS: dict[str, tuple[str, Callable[[Session], dict[str, Any]]]] = {
    "TotalUsers": ("totalUsers", lambda db: _count(db, User.id)),
    "TotalCollections": ("totalCollections", lambda db: _count(db, CollectionEntry.id)),
    "TotalWishlists": ("totalWishlists", lambda db: _count(db, WishlistEntry.id)),
    "MostCollectedGame": ("mostCollectedGame", lambda db: _most_common_game(db, CollectionEntry)),
    "MostWantedGame": ("mostWantedGame", lambda db: _most_common_game(db, WishlistEntry)),
    "HighestReviewedGame": ("highestReviewedGame", highest_reviewed_game),
}


def parse_report_types(raw: str) -> list[str]:
    names: list[str] = []
    for part in (raw or "").split(","):
        cleaned = part.strip()
        if cleaned and cleaned not in names:
            names.append(cleaned)
    return names


def build_reports(db: Session, report_types: Iterable[str]) -> dict[str, Any]:
    """Run each named report once; unknown names are skipped."""
    results: dict[str, Any] = {}
    for report_type in report_types:
        entry = _REPORTS.get(report_type)
        if entry is None:
            logger.info("Ignoring unknown report type %r", report_type)
            continue
        key, compute = entry
        results[key] = compute(db)
    return results
