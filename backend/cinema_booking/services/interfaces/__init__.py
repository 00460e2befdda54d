"""
Service interfaces for dependency inversion.
Allows swapping storage backends without changing business logic.
"""

from .records import FilmRecord, ReservationResult, ScreeningRecord, seat_key
from .screening_store import ScreeningStore

__all__ = ['FilmRecord', 'ReservationResult', 'ScreeningRecord', 'ScreeningStore', 'seat_key']
