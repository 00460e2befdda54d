"""
Relational screening store (PostgreSQL in production, SQLite for local runs).

CONCURRENCY STRATEGY: Conditional UPDATE on seat overlap
========================================================

Problem:
  Two orders try to reserve seat 1:1 of the same screening at the same time.
  Reading `taken`, adding the seat in Python and writing it back loses one
  of the updates, and both orders get a ticket.

Solution:
  The write itself carries the precondition:

    UPDATE screenings SET taken = taken ∪ :keys
     WHERE id = :session_id AND film_id = :film_id
       AND NOT (taken && :keys)

  1. If no requested key is taken, the row matches and all keys are added
     in the same statement.
  2. If any key is taken, the row does not match and nothing is written.
  3. rowcount == 0 means failure; a follow-up read tells a conflict apart
     from a missing screening and lists the conflicting keys.

  PostgreSQL takes the row lock for the UPDATE and re-evaluates the WHERE
  clause against the committed row when a concurrent UPDATE finishes first,
  so the loser sees the winner's seats and matches zero rows. SQLite
  serializes writers on the database lock, which gives the same outcome.

  No SELECT FOR UPDATE, no version column, no retry loop: a conflict here is
  a real conflict, not a lost optimistic race.
"""

import json
from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy import bindparam, select, text
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from cinema_booking.core.errors import StoreFault
from cinema_booking.core.logging import get_logger
from cinema_booking.db.session import create_session_factory
from cinema_booking.models.film import Film
from cinema_booking.models.screening import Screening
from cinema_booking.services.interfaces.records import (
    FilmRecord,
    ScreeningRecord,
    normalize_taken,
    parse_daytime,
)
from cinema_booking.services.interfaces.screening_store import CONFLICT, NOT_FOUND, RESERVED, ScreeningStore

logger = get_logger(__name__)

_POSTGRES_RESERVE = text(
    """
    UPDATE screenings
       SET taken = ARRAY(
               SELECT DISTINCT seat
                 FROM unnest(taken || CAST(:keys AS TEXT[])) AS seat
           ),
           updated_at = now()
     WHERE id = :session_id
       AND film_id = :film_id
       AND NOT (taken && CAST(:keys AS TEXT[]))
    """
).bindparams(bindparam("keys", type_=postgresql.ARRAY(postgresql.TEXT)))

_SQLITE_RESERVE = text(
    """
    UPDATE screenings
       SET taken = (
               SELECT json_group_array(value)
                 FROM (
                       SELECT value FROM json_each(screenings.taken)
                       UNION
                       SELECT value FROM json_each(:keys)
                 )
           ),
           updated_at = CURRENT_TIMESTAMP
     WHERE id = :session_id
       AND film_id = :film_id
       AND NOT EXISTS (
               SELECT 1
                 FROM json_each(screenings.taken)
                WHERE value IN (SELECT value FROM json_each(:keys))
           )
    """
)

_RESERVE_STATEMENTS = {
    "postgresql": (_POSTGRES_RESERVE, list),
    "sqlite": (_SQLITE_RESERVE, json.dumps),
}


def _to_film_record(film: Film) -> FilmRecord:
    return FilmRecord(
        id=str(film.id),
        title=film.title,
        description=film.description,
        about=film.about,
        image=film.image,
        cover=film.cover,
        director=film.director,
        rating=float(film.rating) if film.rating is not None else None,
        tags=tuple(film.tags or ()),
    )


def _to_screening_record(screening: Screening) -> ScreeningRecord:
    return ScreeningRecord(
        id=str(screening.id),
        film_id=str(screening.film_id),
        daytime=parse_daytime(screening.daytime),
        hall=str(screening.hall),
        rows=int(screening.rows),
        seats=int(screening.seats),
        price=int(screening.price),
        taken=normalize_taken(screening.taken),
    )


class SqlScreeningStore(ScreeningStore):
    backend_name = "relational"

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        dialect = engine.dialect.name
        if dialect not in _RESERVE_STATEMENTS:
            raise ValueError(f"Unsupported database dialect for seat reservation: {dialect}")
        self._engine = engine
        self._session_factory = session_factory or create_session_factory(engine)
        self._reserve_statement, self._encode_keys = _RESERVE_STATEMENTS[dialect]

    @asynccontextmanager
    async def _session(self, operation: str):
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error("store_error", backend=self.backend_name, operation=operation, error=str(e))
            raise StoreFault(f"Screening store failed during {operation}") from e

    async def get_film(self, film_id: str) -> Optional[FilmRecord]:
        async with self._session("get_film") as session:
            film = await session.get(Film, film_id)
            return _to_film_record(film) if film else None

    async def list_films(self) -> list[FilmRecord]:
        async with self._session("list_films") as session:
            result = await session.execute(select(Film).order_by(Film.id.asc()))
            return [_to_film_record(f) for f in result.scalars().all()]

    async def get_screening(self, film_id: str, session_id: str) -> Optional[ScreeningRecord]:
        async with self._session("get_screening") as session:
            result = await session.execute(
                select(Screening).where(
                    Screening.id == session_id,
                    Screening.film_id == film_id,
                )
            )
            screening = result.scalar_one_or_none()
            return _to_screening_record(screening) if screening else None

    async def list_screenings_for_film(self, film_id: str) -> list[ScreeningRecord]:
        async with self._session("list_screenings") as session:
            result = await session.execute(
                select(Screening)
                .where(Screening.film_id == film_id)
                .order_by(Screening.daytime.asc(), Screening.id.asc())
            )
            return [_to_screening_record(s) for s in result.scalars().all()]

    async def _conditional_reserve(
        self,
        film_id: str,
        session_id: str,
        keys: list[str],
    ) -> tuple[str, list[str]]:
        async with self._session("reserve_seats") as session:
            async with session.begin():
                update_result = await session.execute(
                    self._reserve_statement,
                    {
                        "session_id": session_id,
                        "film_id": film_id,
                        "keys": self._encode_keys(keys),
                    },
                )
                if update_result.rowcount > 0:
                    return RESERVED, []

                # Nothing written: the screening is missing or seats overlap.
                # taken only grows, so the overlap that blocked the UPDATE is
                # still visible to this read.
                row = (
                    await session.execute(
                        select(Screening.taken).where(
                            Screening.id == session_id,
                            Screening.film_id == film_id,
                        )
                    )
                ).first()

        if row is None:
            return NOT_FOUND, []
        taken = normalize_taken(row[0])
        return CONFLICT, [k for k in keys if k in taken]

    async def close(self) -> None:
        await self._engine.dispose()
