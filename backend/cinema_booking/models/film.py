"""
Film catalog entry. Read-only from the booking side; rows are seeded by the
catalog import.
"""

from sqlalchemy import Column, Float, String, Text, JSON

from cinema_booking.db.base import Base, TimestampMixin


class Film(Base, TimestampMixin):
    __tablename__ = "films"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    about = Column(Text, nullable=True)
    image = Column(String(255), nullable=True)
    cover = Column(String(255), nullable=True)
    director = Column(String(255), nullable=True)
    rating = Column(Float, nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<Film(id={self.id}, title={self.title})>"
