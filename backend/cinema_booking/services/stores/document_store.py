"""
Document screening store on MongoDB.

Layout: a `films` collection and a `screenings` collection linked by
`filmId`. Each screening document carries its own `taken` array.

Reservation is one update_one whose filter only matches while none of the
requested keys are in `taken`:

    filter: {"id": session_id, "filmId": film_id, "taken": {"$nin": keys}}
    update: {"$addToSet": {"taken": {"$each": keys}}}

MongoDB applies filter and update to a single document atomically, so two
overlapping requests cannot both match. matched_count == 0 means failure;
a follow-up read separates "already taken" from "no such screening".
"""

from contextlib import asynccontextmanager
from typing import Optional

from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from cinema_booking.core.errors import StoreFault
from cinema_booking.core.logging import get_logger
from cinema_booking.services.interfaces.records import (
    FilmRecord,
    ScreeningRecord,
    normalize_taken,
    parse_daytime,
)
from cinema_booking.services.interfaces.screening_store import CONFLICT, NOT_FOUND, RESERVED, ScreeningStore

logger = get_logger(__name__)

_NO_ID = {"_id": 0}


def _to_film_record(doc: dict) -> FilmRecord:
    rating = doc.get("rating")
    return FilmRecord(
        id=str(doc["id"]),
        title=doc.get("title"),
        description=doc.get("description"),
        about=doc.get("about"),
        image=doc.get("image"),
        cover=doc.get("cover"),
        director=doc.get("director"),
        rating=float(rating) if rating is not None else None,
        tags=tuple(doc.get("tags") or ()),
    )


def _to_screening_record(doc: dict) -> ScreeningRecord:
    return ScreeningRecord(
        id=str(doc["id"]),
        film_id=str(doc["filmId"]),
        daytime=parse_daytime(doc["daytime"]),
        hall=str(doc["hall"]),
        rows=int(doc["rows"]),
        seats=int(doc["seats"]),
        price=int(doc["price"]),
        taken=normalize_taken(doc.get("taken")),
    )


class MongoScreeningStore(ScreeningStore):
    backend_name = "document"

    def __init__(self, database, client=None):
        self._films = database["films"]
        self._screenings = database["screenings"]
        self._client = client

    @asynccontextmanager
    async def _guard(self, operation: str):
        try:
            yield
        except PyMongoError as e:
            logger.error("store_error", backend=self.backend_name, operation=operation, error=str(e))
            raise StoreFault(f"Screening store failed during {operation}") from e

    async def ensure_schema(self) -> None:
        async with self._guard("ensure_schema"):
            await self._films.create_index([("id", ASCENDING)], unique=True)
            await self._screenings.create_index([("id", ASCENDING)], unique=True)
            await self._screenings.create_index([("filmId", ASCENDING), ("daytime", ASCENDING)])

    async def get_film(self, film_id: str) -> Optional[FilmRecord]:
        async with self._guard("get_film"):
            doc = await self._films.find_one({"id": film_id}, _NO_ID)
        return _to_film_record(doc) if doc else None

    async def list_films(self) -> list[FilmRecord]:
        async with self._guard("list_films"):
            cursor = self._films.find({}, _NO_ID, sort=[("id", ASCENDING)])
            return [_to_film_record(doc) async for doc in cursor]

    async def get_screening(self, film_id: str, session_id: str) -> Optional[ScreeningRecord]:
        async with self._guard("get_screening"):
            doc = await self._screenings.find_one({"id": session_id, "filmId": film_id}, _NO_ID)
        return _to_screening_record(doc) if doc else None

    async def list_screenings_for_film(self, film_id: str) -> list[ScreeningRecord]:
        async with self._guard("list_screenings"):
            cursor = self._screenings.find(
                {"filmId": film_id},
                _NO_ID,
                sort=[("daytime", ASCENDING), ("id", ASCENDING)],
            )
            return [_to_screening_record(doc) async for doc in cursor]

    async def _conditional_reserve(
        self,
        film_id: str,
        session_id: str,
        keys: list[str],
    ) -> tuple[str, list[str]]:
        async with self._guard("reserve_seats"):
            result = await self._screenings.update_one(
                {"id": session_id, "filmId": film_id, "taken": {"$nin": keys}},
                {"$addToSet": {"taken": {"$each": keys}}},
            )
            if result.matched_count > 0:
                return RESERVED, []

            doc = await self._screenings.find_one(
                {"id": session_id, "filmId": film_id},
                {"_id": 0, "taken": 1},
            )

        if doc is None:
            return NOT_FOUND, []
        taken = normalize_taken(doc.get("taken"))
        return CONFLICT, [k for k in keys if k in taken]

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
