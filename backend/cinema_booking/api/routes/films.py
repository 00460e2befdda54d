"""
Film catalog endpoints: film list and per-film schedule.
"""

from fastapi import APIRouter, Depends

from cinema_booking.api.deps import get_catalog
from cinema_booking.schemas.film import FilmListResponse, ScheduleResponse
from cinema_booking.services.catalog_service import CatalogReader

router = APIRouter(prefix="/films", tags=["Films"])


@router.get("/", response_model=FilmListResponse)
async def list_films_endpoint(catalog: CatalogReader = Depends(get_catalog)):
    """List all films."""
    return await catalog.list_films()


@router.get("/{film_id}/schedule", response_model=ScheduleResponse)
async def film_schedule_endpoint(film_id: str, catalog: CatalogReader = Depends(get_catalog)):
    """
    Screenings of a film ordered by showtime, with taken seats.
    An unknown film yields an empty schedule.
    """
    return await catalog.list_schedule(film_id)
