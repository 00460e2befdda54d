"""
Order endpoint with concurrency-safe seat reservation.
"""

from fastapi import APIRouter, Depends, status

from cinema_booking.api.deps import get_order_assembler
from cinema_booking.core.logging import get_logger
from cinema_booking.schemas.order import OrderCreate, OrderResponse
from cinema_booking.services.order_service import OrderAssembler, TicketRequest

logger = get_logger(__name__)
router = APIRouter(prefix="/order", tags=["Orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order_endpoint(
    order_data: OrderCreate,
    assembler: OrderAssembler = Depends(get_order_assembler),
):
    """
    Reserve seats across one or more screenings.

    Returns 400 for malformed tickets or seats outside the hall, 404 for an
    unknown film or screening and 409 when any seat is already taken. On a
    409 raised after some screenings were already reserved, the response
    lists those under `committed_sessions`; they are not rolled back.
    """
    logger.info("order_received", tickets=len(order_data.tickets))
    tickets = [TicketRequest(**t.model_dump()) for t in order_data.tickets]
    confirmation = await assembler.create_order(tickets)
    return confirmation.to_dict()
