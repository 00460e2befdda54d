from cinema_booking.models.film import Film
from cinema_booking.models.screening import Screening

__all__ = ["Film", "Screening"]
