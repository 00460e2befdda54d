"""
Order assembly: turns a batch of ticket requests into a confirmed order.

WORKFLOW
========

  1. Reject tickets without film/session or with non-integer row/seat.
  2. Drop repeated (film, session, row, seat) tickets; the first one wins.
  3. Group tickets by (film, session) in order of first appearance.
  4. For every group, before anything is written:
       - resolve film and screening through the catalog
       - check each seat lies inside the hall
       - compare against the screening's current taken set and fail fast
  5. Reserve each group with one conditional write in the screening store.
     A conflict here means another order won the race after step 4.
  6. Confirm the surviving tickets in submission order with fresh ids.

Groups are committed one after another. If a later group fails, seats
written for earlier groups of the same order stay taken; the ConflictFault
lists them in `committed_sessions` so the caller can see the partial effect.
Nothing is retried here.
"""

import uuid
from dataclasses import asdict, dataclass
from typing import Any, Callable, Iterable, Optional

from cinema_booking.core.errors import BookingFault, ConflictFault, NotFoundFault, StoreFault, ValidationFault
from cinema_booking.core.logging import get_logger
from cinema_booking.core.metrics import record_order, record_seat_conflicts
from cinema_booking.services.cache_service import invalidate_schedule
from cinema_booking.services.catalog_service import CatalogReader
from cinema_booking.services.interfaces.records import ScreeningRecord, seat_key
from cinema_booking.services.interfaces.screening_store import ScreeningStore

logger = get_logger(__name__)

GroupKey = tuple[str, str]  # (film_id, session_id)

MISSING_REJECT = "reject"
MISSING_SKIP = "skip"


@dataclass(frozen=True)
class TicketRequest:
    film: Optional[str]
    session: Optional[str]
    row: Any
    seat: Any
    price: int = 0
    daytime: Optional[str] = None

    @property
    def seat_key(self) -> str:
        return seat_key(self.row, self.seat)

    @property
    def group_key(self) -> GroupKey:
        return (self.film, self.session)

    @property
    def dedup_key(self) -> str:
        return f"{self.film}|{self.session}|{self.seat_key}"


@dataclass(frozen=True)
class ConfirmedTicket:
    id: str
    film: str
    session: str
    daytime: str
    row: int
    seat: int
    price: int


@dataclass(frozen=True)
class OrderConfirmation:
    total: int
    items: list[ConfirmedTicket]

    def to_dict(self) -> dict:
        return {"total": self.total, "items": [asdict(item) for item in self.items]}


def normalize_daytime(value) -> str:
    """Trim the informational daytime; empty or absent becomes "null"."""
    if value is None:
        return "null"
    text = str(value).strip()
    return text or "null"


def _is_seat_number(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def assert_ticket_basics(ticket: TicketRequest) -> None:
    if not ticket.film or not ticket.session:
        raise ValidationFault("ticket must contain film and session ids")
    if not _is_seat_number(ticket.row) or not _is_seat_number(ticket.seat):
        raise ValidationFault(
            f"row and seat must be non-negative integers, got {ticket.row!r}:{ticket.seat!r}"
        )


class OrderAssembler:
    def __init__(
        self,
        catalog: CatalogReader,
        store: ScreeningStore,
        missing_policy: str = MISSING_REJECT,
        id_factory: Callable[[], Any] = uuid.uuid4,
    ):
        if missing_policy not in (MISSING_REJECT, MISSING_SKIP):
            raise ValueError(f"Unknown missing screening policy: {missing_policy}")
        self.catalog = catalog
        self.store = store
        self.missing_policy = missing_policy
        self._id_factory = id_factory

    async def create_order(self, tickets: Iterable[TicketRequest]) -> OrderConfirmation:
        try:
            confirmation = await self._create_order(list(tickets))
        except BookingFault as e:
            record_order(e.kind)
            logger.warning("order_rejected", kind=e.kind, reason=e.message)
            raise
        record_order("confirmed", confirmation.total)
        return confirmation

    async def _create_order(self, tickets: list[TicketRequest]) -> OrderConfirmation:
        if not tickets:
            raise ValidationFault("tickets array is required")

        for ticket in tickets:
            assert_ticket_basics(ticket)

        unique = self._deduplicate(tickets)
        groups = self._group(unique)

        # Validate every group before the first write
        for key in list(groups):
            film_id, session_id = key
            resolved = await self.catalog.get_film_and_session(film_id, session_id)
            if not resolved.found:
                if self.missing_policy == MISSING_SKIP:
                    logger.warning("order_group_skipped", film_id=film_id, session_id=session_id)
                    del groups[key]
                    continue
                if resolved.film is None:
                    raise NotFoundFault(f"Film {film_id} not found")
                raise NotFoundFault(f"Session {session_id} not found for film {film_id}")

            self._check_range(resolved.session, groups[key])
            self._check_taken(resolved.session, groups[key])

        committed = await self._commit(groups)

        items = [self._confirm(t) for t in unique if t.group_key in groups]
        logger.info(
            "order_created",
            tickets=len(items),
            sessions=committed,
        )
        return OrderConfirmation(total=len(items), items=items)

    @staticmethod
    def _deduplicate(tickets: list[TicketRequest]) -> list[TicketRequest]:
        seen = set()
        unique = []
        for ticket in tickets:
            if ticket.dedup_key in seen:
                continue
            seen.add(ticket.dedup_key)
            unique.append(ticket)
        return unique

    @staticmethod
    def _group(tickets: list[TicketRequest]) -> dict[GroupKey, list[TicketRequest]]:
        groups: dict[GroupKey, list[TicketRequest]] = {}
        for ticket in tickets:
            groups.setdefault(ticket.group_key, []).append(ticket)
        return groups

    @staticmethod
    def _check_range(session: ScreeningRecord, tickets: list[TicketRequest]) -> None:
        for ticket in tickets:
            if not session.contains(ticket.row, ticket.seat):
                raise ValidationFault(
                    f"Seat out of range (row 1..{session.rows}, seat 1..{session.seats}): {ticket.seat_key}",
                    seats=[ticket.seat_key],
                    session=session.id,
                )

    @staticmethod
    def _check_taken(session: ScreeningRecord, tickets: list[TicketRequest]) -> None:
        # Advisory only; the conditional write in _commit is what guarantees it
        conflicts = [t.seat_key for t in tickets if t.seat_key in session.taken]
        if conflicts:
            record_seat_conflicts("precheck", len(conflicts))
            raise ConflictFault(
                f"Already taken: {', '.join(conflicts)}",
                seats=conflicts,
                session=session.id,
            )

    async def _commit(self, groups: dict[GroupKey, list[TicketRequest]]) -> list[str]:
        committed: list[str] = []
        for (film_id, session_id), tickets in groups.items():
            keys = [t.seat_key for t in tickets]
            try:
                result = await self.store.reserve_seats(film_id, session_id, keys)
            except StoreFault as e:
                if committed:
                    raise StoreFault(e.message, committed_sessions=list(committed)) from e
                raise

            if not result.reserved:
                record_seat_conflicts("commit", len(result.conflicts))
                message = (
                    f"Already taken: {', '.join(result.conflicts)}"
                    if result.conflicts
                    else "Reservation failed"
                )
                raise ConflictFault(
                    message,
                    seats=result.conflicts,
                    session=session_id,
                    committed_sessions=committed,
                )

            committed.append(session_id)
            await invalidate_schedule(film_id)
        return committed

    def _confirm(self, ticket: TicketRequest) -> ConfirmedTicket:
        return ConfirmedTicket(
            id=str(self._id_factory()),
            film=ticket.film,
            session=ticket.session,
            daytime=normalize_daytime(ticket.daytime),
            row=ticket.row,
            seat=ticket.seat,
            price=ticket.price,
        )
