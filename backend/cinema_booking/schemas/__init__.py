from cinema_booking.schemas.film import FilmListResponse, FilmResponse, ScheduleItemResponse, ScheduleResponse
from cinema_booking.schemas.order import ConfirmedTicketResponse, OrderCreate, OrderResponse, TicketCreate

__all__ = [
    "FilmListResponse", "FilmResponse", "ScheduleItemResponse", "ScheduleResponse",
    "ConfirmedTicketResponse", "OrderCreate", "OrderResponse", "TicketCreate",
]
