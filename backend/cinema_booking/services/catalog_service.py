"""
Catalog reader: resolves films and screenings for listing and validation.

Works only through the ScreeningStore interface, so it behaves the same
whichever backend is configured.
"""

from dataclasses import dataclass
from typing import Optional

from cinema_booking.core.logging import get_logger
from cinema_booking.services.cache_service import get_cached_schedule, set_cached_schedule
from cinema_booking.services.interfaces.records import FilmRecord, ScreeningRecord
from cinema_booking.services.interfaces.screening_store import ScreeningStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class FilmAndSession:
    film: Optional[FilmRecord]
    session: Optional[ScreeningRecord]

    @property
    def found(self) -> bool:
        return self.film is not None and self.session is not None


def _seat_sort_key(key: str) -> tuple:
    row, _, seat = key.partition(":")
    try:
        return (int(row), int(seat))
    except ValueError:
        return (float("inf"), key)


def film_summary(film: FilmRecord) -> dict:
    return {
        "id": film.id,
        "rating": film.rating,
        "director": film.director,
        "tags": list(film.tags),
        "title": film.title,
        "about": film.about,
        "description": film.description,
        "image": film.image,
        "cover": film.cover,
    }


def screening_summary(screening: ScreeningRecord) -> dict:
    return {
        "id": screening.id,
        "daytime": screening.daytime.isoformat(),
        "hall": screening.hall,
        "rows": screening.rows,
        "seats": screening.seats,
        "price": screening.price,
        "taken": sorted(screening.taken, key=_seat_sort_key),
    }


class CatalogReader:
    def __init__(self, store: ScreeningStore):
        self.store = store

    async def get_film_and_session(self, film_id: str, session_id: str) -> FilmAndSession:
        """
        Resolve a film and one of its screenings.
        Absence of either is reported as None, never raised.
        """
        film = await self.store.get_film(film_id)
        if film is None:
            return FilmAndSession(film=None, session=None)
        session = await self.store.get_screening(film_id, session_id)
        return FilmAndSession(film=film, session=session)

    async def list_films(self) -> dict:
        films = await self.store.list_films()
        return {"total": len(films), "items": [film_summary(f) for f in films]}

    async def list_schedule(self, film_id: str) -> dict:
        """
        Screenings of a film ordered by daytime.
        Served from Redis when cached; the cache is dropped per film after
        each successful reservation.
        """
        cached = await get_cached_schedule(film_id)
        if cached is not None:
            logger.debug("schedule_cache_hit", film_id=film_id)
            return cached

        screenings = await self.store.list_screenings_for_film(film_id)
        data = {"total": len(screenings), "items": [screening_summary(s) for s in screenings]}
        await set_cached_schedule(film_id, data)
        return data
