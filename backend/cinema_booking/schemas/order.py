"""
Pydantic schemas for order creation.

Ticket fields are optional on purpose: the order service reports missing
ids and bad seat numbers as a validation fault naming the ticket, instead of
a generic 422.
"""

from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field


class TicketCreate(BaseModel):
    film: Optional[str] = None
    session: Optional[str] = None
    daytime: Optional[str] = None
    # Taken as sent; anything but a non-negative integer is a validation fault
    row: Any = None
    seat: Any = None
    price: int = Field(default=0, ge=0)


class OrderCreate(BaseModel):
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=32)
    tickets: list[TicketCreate]


class ConfirmedTicketResponse(BaseModel):
    id: str
    film: str
    session: str
    daytime: str
    row: int
    seat: int
    price: int

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    total: int
    items: list[ConfirmedTicketResponse]

    model_config = {"from_attributes": True}
