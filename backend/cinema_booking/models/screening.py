"""
Screening (schedule entry) with its taken-seat set.

Key design decisions:
- `taken` is a native text[] on PostgreSQL so the reservation UPDATE can test
  overlap with the && operator inside its WHERE clause. SQLite stores the
  same value as JSON text.
- Composite index on (film_id, daytime) serves the per-film schedule listing.
- No version column: the reservation write is conditioned on the seat
  overlap itself, not on a row version.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.dialects import postgresql

from cinema_booking.db.base import Base, TimestampMixin

TakenSeats = postgresql.ARRAY(Text).with_variant(JSON(), "sqlite")


class Screening(Base, TimestampMixin):
    __tablename__ = "screenings"

    id = Column(String(64), primary_key=True)
    film_id = Column(String(64), ForeignKey("films.id", ondelete="CASCADE"), nullable=False)
    daytime = Column(DateTime(timezone=True), nullable=False)
    hall = Column(String(16), nullable=False)
    rows = Column(Integer, nullable=False)
    seats = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)
    taken = Column(TakenSeats, nullable=False, default=list)

    __table_args__ = (
        CheckConstraint("rows > 0", name="check_screening_rows_positive"),
        CheckConstraint("seats > 0", name="check_screening_seats_positive"),
        CheckConstraint("price >= 0", name="check_screening_price_non_negative"),
        Index("ix_screenings_film_daytime", "film_id", "daytime"),
    )

    def __repr__(self) -> str:
        return f"<Screening(id={self.id}, film={self.film_id}, taken={len(self.taken or [])})>"
