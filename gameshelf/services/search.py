from __future__ import annotations

import re
import unicodedata

from sqlalchemy.orm import Session

from ..models import SEARCH_NAME_LENGTH, Game

_WHITESPACE_RE = re.compile(r"\s+")
_LIKE_ESCAPE_RE = re.compile(r"([\\%_])")


def normalize_name(value: str) -> str:
    """Fold case, strip accents and collapse whitespace: "Pokémon  X" -> "pokemon x"."""
    decomposed = unicodedata.normalize("NFKD", value or "")
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return _WHITESPACE_RE.sub(" ", stripped).strip().casefold()


def search_key(name: str) -> str:
    """Normalized name cut to the width of the search column."""
    return normalize_name(name)[:SEARCH_NAME_LENGTH]


def search_games(db: Session, term: str, limit: int = 50) -> list[Game]:
    needle = normalize_name(term)
    if not needle:
        return []
    escaped = _LIKE_ESCAPE_RE.sub(r"\\\1", needle)
    pattern = f"%{escaped}%"
    return (
        db.query(Game)
        .filter(Game.search_name.like(pattern, escape="\\"))
        .order_by(Game.name.asc(), Game.id.asc())
        .limit(limit)
        .all()
    )
