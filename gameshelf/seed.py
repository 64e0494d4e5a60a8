import logging

from sqlalchemy.orm import Session

from .models import Console

logger = logging.getLogger(__name__)

DEFAULT_CONSOLES = (
    "Atari 2600",
    "Dreamcast",
    "Game Boy",
    "Game Boy Advance",
    "Game Boy Color",
    "GameCube",
    "Nintendo 3DS",
    "Nintendo 64",
    "Nintendo DS",
    "Nintendo Entertainment System",
    "Nintendo Switch",
    "PC",
    "PlayStation",
    "PlayStation 2",
    "PlayStation 3",
    "PlayStation 4",
    "PlayStation 5",
    "PlayStation Portable",
    "PlayStation Vita",
    "Sega Genesis",
    "Sega Saturn",
    "Super Nintendo",
    "Wii",
    "Wii U",
    "Xbox",
    "Xbox 360",
    "Xbox One",
    "Xbox Series X|S",
)


def seed_consoles(db: Session) -> int:
    """Insert any missing default consoles; returns how many were added."""
    existing = {name for (name,) in db.query(Console.name).all()}
    missing = [name for name in DEFAULT_CONSOLES if name not in existing]
    for name in missing:
        db.add(Console(name=name))
    if missing:
        db.commit()
        logger.info("Seeded %d consoles", len(missing))
    return len(missing)
