"""
FastAPI dependencies wiring the services to the store built at startup.
"""

from fastapi import Depends, Request

from cinema_booking.core.config import Settings, get_settings
from cinema_booking.services.catalog_service import CatalogReader
from cinema_booking.services.interfaces.screening_store import ScreeningStore
from cinema_booking.services.order_service import OrderAssembler


def get_screening_store(request: Request) -> ScreeningStore:
    return request.app.state.screening_store


def get_catalog(store: ScreeningStore = Depends(get_screening_store)) -> CatalogReader:
    return CatalogReader(store)


def get_order_assembler(
    catalog: CatalogReader = Depends(get_catalog),
    store: ScreeningStore = Depends(get_screening_store),
    settings: Settings = Depends(get_settings),
) -> OrderAssembler:
    return OrderAssembler(catalog, store, missing_policy=settings.ORDER_MISSING_SCREENING_POLICY)
