"""
Plain records passed between the storage adapters and the services.

Adapters convert their native rows/documents into these so the services never
see storage shape.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional


def seat_key(row: int, seat: int) -> str:
    """Encode a seat position as ``"<row>:<seat>"``."""
    return f"{row}:{seat}"


def unique_keys(keys: Iterable[str]) -> list[str]:
    """Drop repeated keys, keeping first-occurrence order."""
    return list(dict.fromkeys(str(k) for k in keys))


def normalize_taken(raw) -> frozenset[str]:
    """
    Normalize a stored taken-seat value to a set of seat-keys.

    Accepts a native array (text[] / BSON array) or JSON-encoded text.
    Anything else is treated as empty.
    """
    if raw is None:
        return frozenset()
    if isinstance(raw, (list, tuple, set, frozenset)):
        return frozenset(str(k) for k in raw)
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except ValueError:
            return frozenset()
        if isinstance(parsed, list):
            return frozenset(str(k) for k in parsed)
    return frozenset()


def parse_daytime(raw) -> datetime:
    """Coerce a stored showtime (datetime or ISO-8601 text) to an aware datetime."""
    if isinstance(raw, datetime):
        value = raw
    else:
        value = datetime.fromisoformat(str(raw).strip().replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class FilmRecord:
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    about: Optional[str] = None
    image: Optional[str] = None
    cover: Optional[str] = None
    director: Optional[str] = None
    rating: Optional[float] = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScreeningRecord:
    id: str
    film_id: str
    daytime: datetime
    hall: str
    rows: int
    seats: int
    price: int
    taken: frozenset[str] = frozenset()

    def contains(self, row: int, seat: int) -> bool:
        return 1 <= row <= self.rows and 1 <= seat <= self.seats


@dataclass(frozen=True)
class ReservationResult:
    reserved: bool
    conflicts: list[str] = field(default_factory=list)
