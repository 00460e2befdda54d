"""
Screening store interface.
Both storage backends implement this contract; the services only ever talk
to it, never to a driver.
"""

import time
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from cinema_booking.core.errors import StoreFault
from cinema_booking.core.logging import get_logger
from cinema_booking.core.metrics import record_reservation, reservation_latency
from cinema_booking.services.interfaces.records import (
    FilmRecord,
    ReservationResult,
    ScreeningRecord,
    unique_keys,
)

logger = get_logger(__name__)

RESERVED = "reserved"
CONFLICT = "conflict"
NOT_FOUND = "not_found"


class ScreeningStore(ABC):
    """
    Interface for screening persistence.

    Implementations:
    - SqlScreeningStore: relational tables, conditional UPDATE
    - MongoScreeningStore: document collections, conditional update_one
    """

    backend_name: str = "abstract"

    @abstractmethod
    async def get_film(self, film_id: str) -> Optional[FilmRecord]:
        pass

    @abstractmethod
    async def list_films(self) -> list[FilmRecord]:
        """All films ordered by id."""
        pass

    @abstractmethod
    async def get_screening(self, film_id: str, session_id: str) -> Optional[ScreeningRecord]:
        """Current screening state including taken seats. No side effects."""
        pass

    @abstractmethod
    async def list_screenings_for_film(self, film_id: str) -> list[ScreeningRecord]:
        """Screenings of one film ordered by daytime ascending."""
        pass

    @abstractmethod
    async def _conditional_reserve(
        self,
        film_id: str,
        session_id: str,
        keys: list[str],
    ) -> tuple[str, list[str]]:
        """
        Backend-specific single conditional write.

        Returns one of (RESERVED, []), (CONFLICT, conflicting_keys) or
        (NOT_FOUND, []). Driver errors must be raised as StoreFault.
        """
        pass

    async def reserve_seats(
        self,
        film_id: str,
        session_id: str,
        seat_keys: Iterable[str],
    ) -> ReservationResult:
        """
        Add every seat-key to the screening's taken set in one conditional write.

        Returns:
            reserved=True, conflicts=[] when all keys were free and are now taken.
            reserved=False with every already-taken key when any overlap
            existed at commit time; nothing is written in that case.
            reserved=False with all requested keys when the screening does
            not exist.

        Raises:
            StoreFault: the storage engine failed for a reason other than a
            seat conflict.

        Repeating a successful call reports all its keys as conflicts, so
        callers may retry after a timeout without double-reserving.
        """
        keys = unique_keys(seat_keys)
        if not keys:
            return ReservationResult(reserved=True)

        start = time.perf_counter()
        try:
            outcome, conflicts = await self._conditional_reserve(film_id, session_id, keys)
        except StoreFault:
            record_reservation(self.backend_name, "error")
            raise
        finally:
            reservation_latency.labels(backend=self.backend_name).observe(time.perf_counter() - start)

        record_reservation(self.backend_name, outcome)

        if outcome == RESERVED:
            logger.info("seats_reserved", backend=self.backend_name, film_id=film_id, session_id=session_id, seats=keys)
            return ReservationResult(reserved=True)

        if outcome == NOT_FOUND:
            logger.warning("reservation_screening_missing", backend=self.backend_name, film_id=film_id, session_id=session_id)
            return ReservationResult(reserved=False, conflicts=list(keys))

        logger.info(
            "reservation_conflict",
            backend=self.backend_name,
            film_id=film_id,
            session_id=session_id,
            conflicts=conflicts,
        )
        return ReservationResult(reserved=False, conflicts=list(conflicts))

    async def ensure_schema(self) -> None:
        """Create indexes or tables the backend owns. Default: nothing."""

    async def close(self) -> None:
        """Release driver resources."""
