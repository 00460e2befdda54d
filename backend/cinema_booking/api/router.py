"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter

from cinema_booking.api.routes import films, orders
from cinema_booking.core.config import get_settings

api_router = APIRouter(prefix=get_settings().API_PREFIX)
api_router.include_router(films.router)
api_router.include_router(orders.router)
